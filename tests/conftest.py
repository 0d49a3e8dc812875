import pytest

from tracking_webhook_service.clients.provider import ProviderClient
from tracking_webhook_service.domain.models import Credentials
from tracking_webhook_service.main import create_app
from tracking_webhook_service.services.auth import AuthSession
from tracking_webhook_service.settings import Settings

from tests.utils import API_KEY, API_SECRET, PUBLIC_BASE_URL, FakeProvider, RecordingSink


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
async def provider_server(aiohttp_server, fake_provider):
    """Fake provider API served on a random local port."""
    return await aiohttp_server(fake_provider.build_app())


@pytest.fixture
def provider_url(provider_server):
    return str(provider_server.make_url("/")).rstrip("/")


@pytest.fixture
async def provider_client(provider_url):
    async with ProviderClient(base_url=provider_url, timeout_s=2.0) as client:
        yield client


@pytest.fixture
def credentials():
    return Credentials(api_key=API_KEY, api_secret=API_SECRET)


@pytest.fixture
async def auth_session(provider_client, credentials):
    auth = AuthSession(provider_client, credentials)
    await auth.sign_in()
    return auth


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def app_settings():
    return Settings(subscribe_on_startup=False, public_base_url=PUBLIC_BASE_URL)


@pytest.fixture
async def service_client(aiohttp_client, app_settings, recording_sink):
    """Client for the webhook listener, with the startup subscription step disabled."""
    app = create_app(app_settings, sink=recording_sink)
    return await aiohttp_client(app)
