"""
Report submitter — validates a report request and asks the backend to create it.
Version: 1.0.0
"""
import logging
from typing import Dict, Optional

from navimed_reports.clients.reports_client import ReportsClient
from navimed_reports.core.cache import REPORTS_KEY, QueryCache
from navimed_reports.core.exceptions import ReportGenerationError, ValidationError
from navimed_reports.core.notifier import DESTRUCTIVE, Notifier
from navimed_reports.core.session import SessionProvider
from navimed_reports.schemas.reports import GeneratedReport, ReportRequest

logger = logging.getLogger(__name__)


def validate_request(request: ReportRequest) -> None:
    """Raise ValidationError with per-field messages; never touches the network."""
    errors: Dict[str, str] = {}

    if request.report_type is None:
        errors["report_type"] = "Please select a report type"
    if request.format is None:
        errors["format"] = "Please select a format"
    if request.date_from is None:
        errors["date_from"] = "Start date is required"
    if request.date_to is None:
        errors["date_to"] = "End date is required"

    if request.date_from is not None and request.date_to is not None:
        # Single-day reports (date_to == date_from) are valid.
        if request.date_to < request.date_from:
            errors["date_to"] = "End date must be after start date"

    if errors:
        raise ValidationError(errors)


class ReportSubmitter:
    """Creates report jobs and invalidates the cached report list on success."""

    def __init__(
        self,
        client: ReportsClient,
        cache: QueryCache,
        notifier: Notifier,
        sessions: Optional[SessionProvider] = None,
    ):
        self._client = client
        self._cache = cache
        self._notifier = notifier
        self._sessions = sessions
        self._latest_report: Optional[GeneratedReport] = None

    @property
    def latest_report(self) -> Optional[GeneratedReport]:
        """The most recently created report, whatever its status."""
        return self._latest_report

    async def submit(self, request: ReportRequest) -> GeneratedReport:
        """Validate, create the report, then invalidate the report list.

        Args:
            request: The user's report parameters.

        Returns:
            The server's descriptor for the new report. It may still be pending.

        Raises:
            ValidationError: the request is incomplete or its dates are reversed.
            ReportGenerationError: the server or transport rejected the request.
        """
        validate_request(request)

        session = self._sessions.current() if self._sessions else None
        token = session.token if session else None

        logger.info(
            f"Requesting {request.report_type.value} report as {request.format.value} "
            f"for {request.date_from} to {request.date_to}"
        )
        try:
            report = await self._client.create_report(request.to_payload(), token=token)
        except ReportGenerationError as e:
            self._notifier.notify("Report Generation Failed", e.message, DESTRUCTIVE)
            raise

        self._latest_report = report
        logger.info(f"Report created: id={report.id} status={report.status}")
        self._notifier.notify(
            "Report Generated Successfully",
            "Your report has been generated and is ready for download.",
        )

        # Invalidate only after creation resolved; the list re-fetches lazily.
        self._cache.invalidate(REPORTS_KEY)
        return report
