"""
Pytest fixtures for HubSpot Viewer Bridge tests.

Provides common fixtures for:
- A controllable clock for token expiry
- A stubbed HubSpot API behind httpx.MockTransport
- The application built with create_app() and its test clients
"""
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from viewer_bridge.core.config import Settings
from viewer_bridge.core.rate_limit import limiter
from viewer_bridge.hubspot import HubSpotClient
from viewer_bridge.main import create_app
from viewer_bridge.tokens import ViewerTokenStore

# =============================================================================
# Clock Fixtures
# =============================================================================


class FakeClock:
    """Clock whose time only moves when a test advances it."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def token_store(clock) -> ViewerTokenStore:
    """Token store without a scheduler, driven by the fake clock."""
    return ViewerTokenStore(clock=clock)


# =============================================================================
# HubSpot API Stub
# =============================================================================

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n%%EOF\n"
SIGNED_HOST = "signed.hubspot.test"


class FakeHubSpot:
    """
    In-memory stand-in for the HubSpot endpoints the bridge calls.

    Tests mutate ``files``, ``notes``, ``contacts`` and ``content`` to shape
    responses, set ``fail`` to force an error status on a path prefix, and
    put a canned response in ``responses`` to answer an exact path.
    """

    def __init__(self):
        self.files: Dict[str, dict] = {
            "101": {"id": "101", "name": "contract.pdf", "extension": "pdf",
                    "url": "https://f.hubspot.test/contract.pdf", "size": 2048},
            "102": {"id": "102", "name": "photo.png", "extension": "png",
                    "url": "https://f.hubspot.test/photo.png", "size": 512},
            "103": {"id": "103", "name": "notes.PDF", "extension": "PDF",
                    "url": "https://f.hubspot.test/notes.PDF", "size": 1024},
        }
        self.contacts: Dict[str, List[str]] = {"501": ["9001", "9002"]}
        self.notes: Dict[str, str] = {"9001": "101;102", "9002": "103"}
        self.content: Dict[str, bytes] = {
            "101": PDF_BYTES,
            "102": b"\x89PNG\r\n\x1a\n",
            "103": PDF_BYTES,
        }
        self.fail: Dict[str, int] = {}
        self.responses: Dict[str, httpx.Response] = {}
        self.requests: List[httpx.Request] = []
        self.next_file_id = 900

    def _failure(self, path: str) -> Optional[httpx.Response]:
        for prefix, status_code in self.fail.items():
            if path.startswith(prefix):
                return httpx.Response(status_code, json={"status": "error", "message": "stubbed failure"})
        return None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        failure = self._failure(path)
        if failure is not None:
            return failure

        if path in self.responses:
            return self.responses[path]

        if request.url.host == SIGNED_HOST:
            file_id = path.rsplit("/", 1)[-1]
            return httpx.Response(200, content=self.content.get(file_id, b""))

        parts = path.strip("/").split("/")

        if path.startswith("/crm/v4/objects/contacts/"):
            contact_id = parts[4]
            note_ids = self.contacts.get(contact_id, [])
            return httpx.Response(200, json={
                "results": [{"toObjectId": int(n)} for n in note_ids]
            })

        if path.startswith("/crm/v3/objects/notes/"):
            note_id = parts[4]
            if note_id not in self.notes:
                return httpx.Response(404, json={"message": "note not found"})
            return httpx.Response(200, json={
                "id": note_id,
                "properties": {"hs_attachment_ids": self.notes[note_id]},
            })

        if path == "/files/v3/files/search":
            return httpx.Response(200, json={"results": list(self.files.values())})

        if path.startswith("/files/v3/files/") and path.endswith("/signed-url"):
            file_id = parts[3]
            return httpx.Response(200, json={"url": f"https://{SIGNED_HOST}/content/{file_id}"})

        if path.startswith("/files/v3/files/"):
            file_id = parts[3]
            if file_id not in self.files:
                return httpx.Response(404, json={"message": "file not found"})
            return httpx.Response(200, json=self.files[file_id])

        if path.startswith("/filemanager/api/v3/files/") and path.endswith("/replace"):
            file_id = parts[4]
            info = dict(self.files.get(file_id, {"id": file_id, "name": "replaced.pdf"}))
            return httpx.Response(200, json=info)

        if path == "/filemanager/api/v3/files/upload":
            self.next_file_id += 1
            new_id = str(self.next_file_id)
            return httpx.Response(200, json={"objects": [{
                "id": new_id, "name": "edited.pdf", "extension": "pdf",
                "url": f"https://f.hubspot.test/{new_id}.pdf", "size": 64,
            }]})

        return httpx.Response(404, json={"message": f"unhandled {path}"})

    def last_request(self, path_prefix: str) -> httpx.Request:
        matching = [r for r in self.requests if r.url.path.startswith(path_prefix)]
        assert matching, f"no request to {path_prefix}"
        return matching[-1]


@pytest.fixture
def fake_hubspot() -> FakeHubSpot:
    return FakeHubSpot()


@pytest_asyncio.fixture
async def hubspot_client(fake_hubspot):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_hubspot.handler))
    client = HubSpotClient(
        access_token="test-hubspot-token",
        base_url="https://api.hubapi.test",
        http_client=http_client,
    )
    yield client
    await client.aclose()


# =============================================================================
# Application Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        HUBSPOT_PRIVATE_APP_TOKEN="test-hubspot-token",
        HUBSPOT_API_BASE_URL="https://api.hubapi.test",
        PUBLIC_BASE_URL="https://bridge.test",
        ENVIRONMENT="test",
        MAX_UPLOAD_MB=1,
    )


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """The limiter is module-global; counts must not leak between tests."""
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def make_app(settings, token_store, fake_hubspot):
    """Factory building the app around the stubs, with optional settings overrides."""
    def _make_app(**overrides):
        app_settings = settings.model_copy(update=overrides) if overrides else settings
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake_hubspot.handler))
        hubspot = HubSpotClient(
            access_token=app_settings.HUBSPOT_PRIVATE_APP_TOKEN,
            base_url=app_settings.HUBSPOT_API_BASE_URL,
            http_client=http_client,
        )
        return create_app(settings=app_settings, token_store=token_store, hubspot_client=hubspot)

    return _make_app


@pytest.fixture
def app(make_app):
    return make_app()


@pytest.fixture
def client(app) -> TestClient:
    """Test client without lifespan (no scheduler, no logging reconfiguration)."""
    return TestClient(app)


@pytest_asyncio.fixture
async def async_client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c


@pytest.fixture
def pdf_bytes() -> bytes:
    return PDF_BYTES
