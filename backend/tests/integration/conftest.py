"""
Integration fixtures — an in-process fake of the NaviMed report endpoints.

The real ReportsClient talks to it through httpx.ASGITransport, so requests
go through the full HTTP encode/decode path without opening sockets.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set

import httpx
import pytest
from fastapi import FastAPI, Header
from fastapi.responses import JSONResponse, Response

from navimed_reports.clients.reports_client import ReportsClient
from navimed_reports.core.blob_saver import FileBlobSaver
from navimed_reports.core.cache import InMemoryQueryCache
from navimed_reports.core.session import Session
from navimed_reports.services.download_orchestrator import DownloadOrchestrator
from navimed_reports.services.report_registry import ReportRegistry
from navimed_reports.services.report_submitter import ReportSubmitter


FORMAT_EXTENSIONS = {"pdf": "pdf", "excel": "xlsx", "csv": "csv"}


@dataclass
class FakeNaviMedState:
    reports: List[Dict[str, Any]] = field(default_factory=list)
    files: Dict[str, bytes] = field(default_factory=dict)
    valid_tokens: Set[str] = field(default_factory=set)
    forbidden_tokens: Set[str] = field(default_factory=set)
    create_status: str = "completed"
    create_error: Optional[tuple] = None
    download_status_override: Optional[int] = None
    requests: List[str] = field(default_factory=list)


def build_fake_navimed_api(state: FakeNaviMedState) -> FastAPI:
    app = FastAPI()

    def _bearer(authorization: Optional[str]) -> Optional[str]:
        if authorization and authorization.startswith("Bearer "):
            return authorization[len("Bearer "):]
        return None

    @app.post("/api/reports")
    async def create_report(body: Dict[str, Any], authorization: Optional[str] = Header(None)):
        state.requests.append("POST /reports")
        if state.create_error:
            status_code, content = state.create_error
            return JSONResponse(status_code=status_code, content=content)

        report_id = f"r{len(state.reports) + 1}"
        now = datetime.now(timezone.utc).isoformat()
        completed = state.create_status == "completed"
        file_name = f"{body['type']}-{report_id}.{FORMAT_EXTENSIONS[body['format']]}"
        report = {
            "id": report_id,
            "tenantId": "tenant-1",
            "title": body["title"],
            "type": body["type"],
            "format": body["format"],
            "status": state.create_status,
            "parameters": body.get("parameters", {}),
            "createdAt": now,
            "completedAt": now if completed else None,
            "generatedBy": "user-1",
            "fileUrl": f"/f/{report_id}" if completed else None,
            "fileName": file_name if completed else None,
        }
        state.reports.append(report)
        if completed:
            state.files[report_id] = f"%PDF-1.7 {body['title']}".encode()
        return JSONResponse(status_code=201, content={"report": report})

    @app.get("/api/reports")
    async def list_reports():
        state.requests.append("GET /reports")
        return list(state.reports)

    @app.get("/api/reports/download/{report_id}/{file_name}")
    async def download_report(report_id: str, file_name: str, authorization: Optional[str] = Header(None)):
        state.requests.append(f"GET /reports/download/{report_id}/{file_name}")
        if state.download_status_override:
            return Response(status_code=state.download_status_override)

        token = _bearer(authorization)
        if token is None or token not in state.valid_tokens:
            return JSONResponse(status_code=401, content={"message": "Access token required"})
        if token in state.forbidden_tokens:
            return JSONResponse(status_code=403, content={"message": "Forbidden"})

        report = next((r for r in state.reports if r["id"] == report_id), None)
        if report is None or report["fileName"] != file_name or report_id not in state.files:
            return JSONResponse(status_code=404, content={"message": "Report not found"})

        return Response(content=state.files[report_id], media_type="application/pdf")

    return app


@pytest.fixture
def api_state(token):
    return FakeNaviMedState(valid_tokens={token})


@pytest.fixture
def reports_client(mock_settings, api_state):
    transport = httpx.ASGITransport(app=build_fake_navimed_api(api_state))
    return ReportsClient(mock_settings, transport=transport)


@pytest.fixture
def shared_cache():
    return InMemoryQueryCache(stale_seconds=30)


@pytest.fixture
def submitter(reports_client, shared_cache, notifier, sessions):
    return ReportSubmitter(reports_client, shared_cache, notifier, sessions)


@pytest.fixture
def registry(reports_client, shared_cache, sessions):
    return ReportRegistry(reports_client, shared_cache, sessions, poll_interval=0, poll_max_attempts=3)


@pytest.fixture
def orchestrator(reports_client, sessions, saver, notifier):
    return DownloadOrchestrator(reports_client, sessions, saver, notifier)


@pytest.fixture
def file_orchestrator(reports_client, sessions, notifier, mock_settings):
    return DownloadOrchestrator(
        reports_client, sessions, FileBlobSaver(mock_settings.reports_download_dir), notifier
    )


@pytest.fixture
def expired_sessions(sessions):
    """A session whose token the fake server does not accept."""
    sessions.sign_in(Session(user_id="user-1", token="expired-token"))
    return sessions
