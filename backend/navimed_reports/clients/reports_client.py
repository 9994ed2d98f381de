"""
NaviMed reports HTTP client — report creation, listing, and authenticated download.
Version: 1.0.0
"""
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError as PydanticValidationError

from navimed_reports.core.config import Settings
from navimed_reports.core.exceptions import (
    AccessDeniedError,
    ReportGenerationError,
    ReportListError,
    ReportNotFoundError,
    RequestTimeoutError,
    ServerError,
    SessionExpiredError,
)
from navimed_reports.schemas.reports import (
    ApiErrorBody,
    Blob,
    CreateReportResponse,
    GeneratedReport,
)

logger = logging.getLogger(__name__)


def parse_error_body(resp: httpx.Response) -> Optional[str]:
    """Read the user-facing message from a structured JSON error body."""
    try:
        body = resp.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    try:
        return ApiErrorBody.model_validate(body).user_message()
    except PydanticValidationError:
        return None


class ReportsClient:
    """Async transport for the ``/reports`` endpoints of the NaviMed API."""

    def __init__(
        self,
        settings: Settings,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._reports_url = settings.reports_url
        self._timeout = httpx.Timeout(settings.request_timeout_seconds)
        self._download_timeout = httpx.Timeout(settings.download_timeout_seconds)
        self._token = token
        self._transport = transport

    def _client(self, timeout: httpx.Timeout) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self._transport)

    def _headers(self, token: Optional[str] = None) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        bearer = token or self._token
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        return headers

    def download_url(self, report_id: str, file_name: str) -> str:
        return (
            f"{self._reports_url}/download/"
            f"{quote(str(report_id), safe='')}/{quote(file_name, safe='')}"
        )

    async def create_report(self, payload: Dict[str, Any], token: Optional[str] = None) -> GeneratedReport:
        """POST /reports and return the created report descriptor."""
        try:
            async with self._client(self._timeout) as client:
                resp = await client.post(
                    self._reports_url,
                    json=payload,
                    headers=self._headers(token),
                )
        except httpx.TimeoutException as e:
            logger.error(f"Report creation timed out: {e}")
            raise ReportGenerationError(
                "The server took too long to respond. Please try again."
            )
        except httpx.HTTPError as e:
            logger.error(f"Report creation transport error: {e}")
            raise ReportGenerationError()

        if not resp.is_success:
            message = parse_error_body(resp)
            logger.warning(
                f"Report creation rejected: status={resp.status_code} body={resp.text[:500]}"
            )
            raise ReportGenerationError(message, status_code=resp.status_code)

        try:
            return CreateReportResponse.model_validate(resp.json()).report
        except (ValueError, PydanticValidationError) as e:
            logger.error(f"Malformed report creation response: {e}")
            raise ReportGenerationError(status_code=resp.status_code)

    async def list_reports(self, token: Optional[str] = None) -> List[GeneratedReport]:
        """GET /reports. Accepts a bare list or a ``{"reports": [...]}`` envelope."""
        try:
            async with self._client(self._timeout) as client:
                resp = await client.get(self._reports_url, headers=self._headers(token))
        except httpx.TimeoutException as e:
            logger.error(f"Report list timed out: {e}")
            raise ReportListError("The server took too long to respond. Please try again.")
        except httpx.HTTPError as e:
            logger.error(f"Report list transport error: {e}")
            raise ReportListError()

        if not resp.is_success:
            logger.warning(f"Report list failed: status={resp.status_code}")
            raise ReportListError(parse_error_body(resp), status_code=resp.status_code)

        try:
            body = resp.json()
            items = body.get("reports", []) if isinstance(body, dict) else body
            return [GeneratedReport.model_validate(item) for item in items]
        except (ValueError, TypeError, AttributeError, PydanticValidationError) as e:
            logger.error(f"Malformed report list response: {e}")
            raise ReportListError(status_code=resp.status_code)

    async def download_report(self, report_id: str, file_name: str, token: str) -> Blob:
        """
        GET /reports/download/{reportId}/{fileName} with a bearer credential.

        Status codes are mapped 1:1 onto the download error taxonomy:
        401 -> SessionExpiredError, 403 -> AccessDeniedError,
        404 -> ReportNotFoundError, anything else non-2xx -> ServerError.
        """
        url = self.download_url(report_id, file_name)
        try:
            async with self._client(self._download_timeout) as client:
                resp = await client.get(url, headers={"Authorization": f"Bearer {token}"})
        except httpx.TimeoutException as e:
            logger.error(f"Download of report {report_id} timed out: {e}")
            raise RequestTimeoutError()
        except httpx.HTTPError as e:
            logger.error(f"Download of report {report_id} failed in transport: {e}")
            raise ServerError()

        if resp.status_code == 401:
            raise SessionExpiredError()
        if resp.status_code == 403:
            raise AccessDeniedError()
        if resp.status_code == 404:
            raise ReportNotFoundError()
        if not resp.is_success:
            logger.warning(
                f"Download of report {report_id} failed: status={resp.status_code} "
                f"body={resp.text[:500]}"
            )
            raise ServerError(resp.status_code)

        return Blob(
            data=resp.content,
            content_type=resp.headers.get("content-type", "application/octet-stream"),
        )
