import pytest

from tracking_webhook_service.main import create_app
from tracking_webhook_service.settings import Settings


@pytest.mark.asyncio
async def test_healthcheck(service_client):
    response = await service_client.get("/health")
    assert response.status == 200
    payload = await response.json()
    assert payload["status"] == "ok"
    assert payload["service"] == "tracking-webhook-service"


@pytest.mark.asyncio
async def test_healthcheck_does_not_need_provider_or_credentials(aiohttp_client):
    # No credentials, no public URL and an unreachable provider: liveness still answers
    app_settings = Settings(
        subscribe_on_startup=False,
        api_key="",
        api_secret="",
        api_base_url="http://127.0.0.1:1",
    )
    client = await aiohttp_client(create_app(app_settings))
    response = await client.get("/health")
    assert response.status == 200


@pytest.mark.asyncio
async def test_responses_carry_trace_headers(service_client):
    trace_id = "5f2b7c1e-4f3a-4b4e-9a57-0d3c1b2a9e11"
    response = await service_client.get("/health", headers={"X-Trace-Id": trace_id})
    assert response.headers["X-Trace-Id"] == trace_id
    assert response.headers["X-Request-Id"]
