"""Clients for external collaborators."""
from bizpulse.clients.companies_registry_client import CompaniesRegistryClient
from bizpulse.clients.notification_client import NotificationClient
from bizpulse.clients.openai_client import OpenAIClient
from bizpulse.clients.places_client import PlacesClient
from bizpulse.clients.registry_client import RegistryClient, RegistryQuery
from bizpulse.clients.storage_client import StorageClient

__all__ = [
    "CompaniesRegistryClient",
    "NotificationClient",
    "OpenAIClient",
    "PlacesClient",
    "RegistryClient",
    "RegistryQuery",
    "StorageClient",
]
