from datetime import datetime, timedelta

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from bizpulse.clients import (
    CompaniesRegistryClient,
    NotificationClient,
    OpenAIClient,
    PlacesClient,
    RegistryClient,
    RegistryQuery,
    StorageClient,
)
from bizpulse.errors import MalformedResponseError, TransientError
from bizpulse.models import Notification, WelcomeMessage
from bizpulse.retry import RetryPolicy

NO_WAIT = RetryPolicy(max_attempts=2, initial_delay=0.0)


def ckan(records):
    return {"success": True, "result": {"records": records}}


@pytest.mark.asyncio
async def test_registry_lookup_builds_filters_and_reads_records():
    client = RegistryClient(base_url="https://registry.test", retry_policy=NO_WAIT)
    with patch.object(client, "_request_json", new=AsyncMock(return_value=ckan([{"_id": 1}]))) as mock_request:
        records = await client.lookup(RegistryQuery(record_id="1", status="פעיל", limit=1))

    assert records == [{"_id": 1}]
    params = mock_request.await_args.kwargs["params"]
    assert params["limit"] == 1
    assert '"_id": "1"' in params["filters"]
    assert "פעיל" in params["filters"]


@pytest.mark.asyncio
async def test_registry_lookup_is_retried():
    client = RegistryClient(base_url="https://registry.test", retry_policy=NO_WAIT)
    request = AsyncMock(side_effect=[TransientError("503"), ckan([])])
    with patch.object(client, "_request_json", new=request):
        assert await client.fetch_record("9") is None

    assert request.await_count == 2


@pytest.mark.asyncio
async def test_registry_pagination_and_new_registrations_window():
    today = datetime.now().date()
    page_one = [{"_id": i, "issue_date": today.isoformat()} for i in range(1000)]
    page_two = [{"_id": 1000, "issue_date": (today - timedelta(days=30)).isoformat()}]
    client = RegistryClient(base_url="https://registry.test", retry_policy=NO_WAIT)
    request = AsyncMock(side_effect=[ckan(page_one), ckan(page_two)])

    with patch.object(client, "_request_json", new=request):
        records = await client.fetch_new_registrations(days_back=1)

    assert len(records) == 1000
    assert request.await_args_list[1].kwargs["params"]["offset"] == 1000


@pytest.mark.asyncio
async def test_companies_registry_requires_a_search_term():
    client = CompaniesRegistryClient("key", base_url="https://companies.test", retry_policy=NO_WAIT)
    with patch.object(client, "_request_json", new=AsyncMock()) as mock_request:
        assert await client.find_companies() == []
    mock_request.assert_not_called()


@pytest.mark.asyncio
async def test_places_error_status_is_transient():
    client = PlacesClient("key", base_url="https://places.test", retry_policy=NO_WAIT)
    request = AsyncMock(return_value={"status": "OVER_QUERY_LIMIT"})
    with patch.object(client, "_request_json", new=request):
        with pytest.raises(TransientError, match="OVER_QUERY_LIMIT"):
            await client.search("Cafe Noa")
    assert request.await_count == 2


@pytest.mark.asyncio
async def test_storage_insert_returns_id_and_update_patches_by_id():
    client = StorageClient(url="https://db.test", service_key="secret", retry_policy=NO_WAIT)
    request = AsyncMock(side_effect=[[{"id": 42, "name": "Cafe Noa"}], None])
    with patch.object(client, "_request_json", new=request):
        row_id = await client.insert("businesses", {"name": "Cafe Noa"})
        await client.update("businesses", row_id, {"status": "active"})

    assert row_id == "42"
    insert_call, update_call = request.await_args_list
    assert insert_call.args == ("POST", "https://db.test/rest/v1/businesses")
    assert insert_call.kwargs["headers"]["Prefer"] == "return=representation"
    assert update_call.kwargs["params"] == {"id": "eq.42"}


@pytest.mark.asyncio
async def test_storage_insert_without_id_is_malformed():
    client = StorageClient(url="https://db.test", service_key="secret")
    with patch.object(client, "_request_json", new=AsyncMock(return_value=[])):
        with pytest.raises(MalformedResponseError):
            await client.insert("businesses", {"name": "Cafe Noa"})


def test_storage_requires_configuration():
    with patch("bizpulse.clients.storage_client.SUPABASE_URL", None):
        with pytest.raises(ValueError):
            StorageClient(url=None, service_key="secret")


@pytest.mark.asyncio
async def test_existing_external_ids():
    client = StorageClient(url="https://db.test", service_key="secret", retry_policy=NO_WAIT)
    request = AsyncMock(return_value=[{"external_id": "11"}])
    with patch.object(client, "_request_json", new=request):
        existing = await client.existing_external_ids(["11", "12"])

    assert existing == {"11"}
    assert request.await_args.kwargs["params"]["external_id"] == "in.(11,12)"


@pytest.mark.asyncio
async def test_notification_fans_out_and_reports_channel_failures():
    client = NotificationClient(slack_webhook_url="https://hooks.test/x", resend_api_key="re_key")
    email_request = AsyncMock(return_value={"id": "email-1"})
    slack_request = AsyncMock(side_effect=TransientError("HTTP 500"))
    with patch.object(client, "_request_json", new=email_request), \
            patch.object(client, "_request_text", new=slack_request):
        outcomes = await client.send(Notification(subject="Hi", message="Body", priority="critical"), ("all",))

    assert outcomes == {"email": True, "slack": False}
    slack_payload = slack_request.await_args.kwargs["json"]
    assert slack_payload["attachments"][0]["color"] == "#f44336"


@pytest.mark.asyncio
async def test_email_without_provider_is_logged_only():
    client = NotificationClient(slack_webhook_url=None, resend_api_key=None)
    with patch.object(client, "_request_json", new=AsyncMock()) as mock_request:
        outcomes = await client.send_welcome_message("owner@test", WelcomeMessage("Subject", "<p>Hi</p>"))
        slack = await client.send(Notification(subject="s", message="m"), ("slack",))

    assert outcomes == {"email": True}
    assert slack == {"slack": False}
    mock_request.assert_not_called()


@pytest.mark.asyncio
async def test_openai_client_wraps_api_errors():
    from openai import APIConnectionError

    sdk = MagicMock()
    sdk.chat.completions.create = AsyncMock(side_effect=APIConnectionError(request=MagicMock()))
    client = OpenAIClient(client=sdk)

    with pytest.raises(TransientError):
        await client.complete("system", "user")


@pytest.mark.asyncio
async def test_openai_client_requests_json_and_returns_text():
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = '{"ok": true}'
    sdk = MagicMock()
    sdk.chat.completions.create = AsyncMock(return_value=response)
    client = OpenAIClient(client=sdk, model="gpt-4o-mini")

    text = await client.complete("system", "user", temperature=0.2)

    assert text == '{"ok": true}'
    kwargs = sdk.chat.completions.create.await_args.kwargs
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["temperature"] == 0.2
    assert kwargs["messages"][0] == {"role": "system", "content": "system"}
