"""
Pytest configuration and shared fixtures for NaviMed reports tests.

Provides settings, mocked clients, sessions, caches, and sample report data.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from jose import jwt

from navimed_reports.core.blob_saver import RecordingBlobSaver
from navimed_reports.core.cache import InMemoryQueryCache
from navimed_reports.core.config import Settings
from navimed_reports.core.notifier import RecordingNotifier
from navimed_reports.core.session import Session, SessionProvider
from navimed_reports.schemas.reports import GeneratedReport


TEST_JWT_SECRET = "test-jwt-secret"


class FakeClock:
    """Manually advanced monotonic clock for cache staleness tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_token(user_id="user-1", tenant_id="tenant-1", role="lab_technician", username="labtech"):
    """Sign a NaviMed-style access token."""
    claims = {"userId": user_id, "tenantId": tenant_id, "role": role, "username": username}
    return jwt.encode(claims, TEST_JWT_SECRET, algorithm="HS256")


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_settings(tmp_path):
    """Settings object with test defaults."""
    return Settings(
        api_base_url="http://testserver/api",
        auth_token=None,
        request_timeout_seconds=5,
        download_timeout_seconds=10,
        reports_stale_seconds=30,
        reports_cache_backend="memory",
        reports_download_dir=str(tmp_path / "downloads"),
        report_poll_interval_seconds=0,
        report_poll_max_attempts=3,
    )


# ---------------------------------------------------------------------------
# Sessions and side-effect recorders
# ---------------------------------------------------------------------------

@pytest.fixture
def token_factory():
    return make_token


@pytest.fixture
def token():
    return make_token()


@pytest.fixture
def session(token):
    return Session.from_token(token)


@pytest.fixture
def sessions(session):
    """SessionProvider with a signed-in lab technician."""
    return SessionProvider(session)


@pytest.fixture
def anonymous_sessions():
    return SessionProvider()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def saver():
    return RecordingBlobSaver()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return InMemoryQueryCache(stale_seconds=30, clock=clock)


# ---------------------------------------------------------------------------
# Clients (mocked)
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_reports_client():
    """Mocked ReportsClient."""
    client = MagicMock()
    client.create_report = AsyncMock()
    client.list_reports = AsyncMock(return_value=[])
    client.download_report = AsyncMock()
    return client


# ---------------------------------------------------------------------------
# Sample test data
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_report_payload():
    """A completed report as returned by the NaviMed API."""
    return {
        "id": "r1",
        "tenantId": "tenant-1",
        "title": "Laboratory Laboratory Summary Report - Aug 01 to Aug 31, 2025",
        "type": "laboratory_summary",
        "format": "pdf",
        "status": "completed",
        "parameters": {},
        "createdAt": "2025-09-01T10:00:00Z",
        "completedAt": "2025-09-01T10:00:05Z",
        "generatedBy": "user-1",
        "fileUrl": "/f/r1",
        "fileName": "lab.pdf",
    }


@pytest.fixture
def completed_report(sample_report_payload):
    return GeneratedReport.model_validate(sample_report_payload)


@pytest.fixture
def pending_report(sample_report_payload):
    payload = dict(sample_report_payload)
    payload.update({
        "id": "r2",
        "status": "pending",
        "completedAt": None,
        "fileUrl": None,
        "fileName": None,
    })
    return GeneratedReport.model_validate(payload)
