import asyncio
import os
import sys
from typing import List, Optional

import pandas as pd
from loguru import logger

from bizpulse.batch import BatchRunner, format_batch_report
from bizpulse.clients import (
    CompaniesRegistryClient,
    NotificationClient,
    OpenAIClient,
    PlacesClient,
    RegistryClient,
    StorageClient,
)
from bizpulse.config import (
    COMPANIES_REGISTRY_API_KEY,
    DAYS_BACK,
    GOOGLE_PLACES_API_KEY,
    INPUT_CSV,
    LOG_LEVEL,
    OUTPUT_CSV,
    SUPABASE_SERVICE_KEY,
    SUPABASE_URL,
)
from bizpulse.generation.orchestrator import GenerationOrchestrator
from bizpulse.models import GenerationOptions
from bizpulse.retry import RetryPolicy
from bizpulse.verifiers.verification_engine import VerificationEngine, build_sources

IDENTIFIER_COLUMNS = ("identifier", "license_number", "_id")


def load_identifiers_from_csv(file_path: str) -> List[str]:
    """Read registry identifiers from the first recognised column (or the first column)."""
    df = pd.read_csv(file_path, dtype=str)
    column = next((c for c in IDENTIFIER_COLUMNS if c in df.columns), df.columns[0])
    return [v.strip() for v in df[column].dropna() if v.strip()]


async def main() -> int:
    """
    Run one scheduled generation pass.

    - Uses identifiers from INPUT_CSV when present, else new registrations from the last DAYS_BACK days.
    - Writes one row per business to OUTPUT_CSV.
    - Returns a non-zero exit code when the batch escalated.
    """
    # Initialize logs
    logger.remove()  # Remove default handler
    logger.add(sys.stderr, level=LOG_LEVEL, format="<green>{time:HH:mm:ss}</green> | <level>{message}</level>")

    retry_policy = RetryPolicy()
    registry = RegistryClient(retry_policy=retry_policy)
    companies = CompaniesRegistryClient(COMPANIES_REGISTRY_API_KEY, retry_policy=retry_policy) \
        if COMPANIES_REGISTRY_API_KEY else None
    places = PlacesClient(GOOGLE_PLACES_API_KEY, retry_policy=retry_policy) if GOOGLE_PLACES_API_KEY else None
    storage: Optional[StorageClient] = StorageClient(retry_policy=retry_policy) \
        if SUPABASE_URL and SUPABASE_SERVICE_KEY else None
    notifier = NotificationClient()
    completion_client = OpenAIClient()

    orchestrator = GenerationOrchestrator(
        registry=registry,
        verifier=VerificationEngine(build_sources(registry, companies, places)),
        completion_client=completion_client,
        storage=storage,
        notifier=notifier,
        retry_policy=retry_policy,
    )
    runner = BatchRunner(orchestrator, notifier)
    options = GenerationOptions()

    try:
        if os.path.exists(INPUT_CSV):
            identifiers = load_identifiers_from_csv(INPUT_CSV)
            logger.info(f"Loaded {len(identifiers)} identifiers from {INPUT_CSV}")
            report = await runner.run_batch(identifiers, options)
        else:
            report = await runner.run_new_registrations(DAYS_BACK, options)

        report.to_frame().to_csv(OUTPUT_CSV, index=False)
        print(format_batch_report(report))
        return 1 if report.escalated else 0
    finally:
        # Cleanup: close client sessions to prevent unclosed connector warnings
        for client in (registry, companies, places, storage, notifier, completion_client):
            if client is not None:
                await client.close()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
