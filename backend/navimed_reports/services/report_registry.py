"""
Report registry — cached view of the generated report collection.

Reads go through the query cache; a fresh entry (younger than the staleness
window) is served without a network call. The submitter invalidates the
entry after every successful creation, so the next read re-fetches.
Version: 1.0.0
"""
import asyncio
import logging
from enum import Enum
from typing import List, Optional

from navimed_reports.clients.reports_client import ReportsClient
from navimed_reports.core.cache import REPORTS_KEY, QueryCache
from navimed_reports.core.exceptions import ReportListError, ReportPendingTimeoutError
from navimed_reports.core.session import SessionProvider
from navimed_reports.schemas.reports import GeneratedReport

logger = logging.getLogger(__name__)


class RegistryState(str, Enum):
    LOADING = "loading"
    EMPTY = "empty"
    POPULATED = "populated"
    ERROR = "error"


class ReportRegistry:
    """List, refresh, and poll generated reports."""

    def __init__(
        self,
        client: ReportsClient,
        cache: QueryCache,
        sessions: Optional[SessionProvider] = None,
        poll_interval: float = 5.0,
        poll_max_attempts: int = 60,
    ):
        self._client = client
        self._cache = cache
        self._sessions = sessions
        self._poll_interval = poll_interval
        self._poll_max_attempts = poll_max_attempts
        self._state = RegistryState.LOADING

    @property
    def state(self) -> RegistryState:
        """Exactly one of loading / empty / populated / error."""
        return self._state

    async def list(self) -> List[GeneratedReport]:
        cached = self._cache.get(REPORTS_KEY)
        if cached is not None:
            reports = [GeneratedReport.model_validate(item) for item in cached]
            self._state = RegistryState.POPULATED if reports else RegistryState.EMPTY
            return reports
        return await self._fetch()

    async def refresh(self) -> List[GeneratedReport]:
        self._cache.invalidate(REPORTS_KEY)
        return await self._fetch()

    async def get(self, report_id: str) -> Optional[GeneratedReport]:
        for report in await self.list():
            if report.id == report_id:
                return report
        return None

    async def wait_for_completion(
        self,
        report_id: str,
        interval: Optional[float] = None,
        max_attempts: Optional[int] = None,
    ) -> GeneratedReport:
        """Poll until the report is completed or failed.

        Each check forces a refresh. Failed reports are returned, not raised;
        the caller decides how to present them.

        Raises:
            ReportPendingTimeoutError: still pending after ``max_attempts`` checks.
        """
        interval = self._poll_interval if interval is None else interval
        max_attempts = self._poll_max_attempts if max_attempts is None else max_attempts

        for attempt in range(1, max_attempts + 1):
            report = next((r for r in await self.refresh() if r.id == report_id), None)
            if report is not None and report.is_terminal:
                logger.info(f"Report {report_id} reached status {report.status}")
                return report

            status = report.status if report else "missing"
            logger.info(
                f"Report {report_id} is {status}, "
                f"checking again in {interval}s (attempt {attempt}/{max_attempts})"
            )
            if attempt < max_attempts:
                await asyncio.sleep(interval)

        raise ReportPendingTimeoutError(report_id, max_attempts)

    async def _fetch(self) -> List[GeneratedReport]:
        self._state = RegistryState.LOADING
        session = self._sessions.current() if self._sessions else None
        generation = self._cache.generation(REPORTS_KEY)
        try:
            reports = await self._client.list_reports(token=session.token if session else None)
        except ReportListError:
            self._state = RegistryState.ERROR
            raise

        if self._cache.generation(REPORTS_KEY) == generation:
            self._cache.set(
                REPORTS_KEY,
                [r.model_dump(mode="json", by_alias=True) for r in reports],
            )
        else:
            # Invalidated while in flight; this snapshot may predate a creation.
            logger.debug("Report list invalidated during fetch; result not cached")
        self._state = RegistryState.POPULATED if reports else RegistryState.EMPTY
        logger.debug(f"Fetched {len(reports)} reports")
        return reports
