"""
Generation dialog — one report form instance wrapped around the submitter.
Version: 1.0.0
"""
import logging
from datetime import date
from typing import Optional

from navimed_reports.core.exceptions import (
    DialogClosedError,
    ReportsClientError,
    SubmissionInProgressError,
)
from navimed_reports.schemas.reports import GeneratedReport, ReportRequest
from navimed_reports.services.report_submitter import ReportSubmitter

logger = logging.getLogger(__name__)


class GenerationDialog:
    """Form state for one report generation dialog.

    - only one submission per instance may be in flight
    - only an open dialog submits
    - a failed submission keeps the dialog open with the draft intact
    - a success closes and resets the dialog, and raises the "ready" banner
      only if the dialog was still open when the result arrived
    """

    def __init__(self, submitter: ReportSubmitter):
        self._submitter = submitter
        self.draft: ReportRequest = ReportRequest.with_defaults()
        self.is_open = False
        self.is_pending = False
        self.last_error: Optional[ReportsClientError] = None
        self.banner_report: Optional[GeneratedReport] = None

    @property
    def can_submit(self) -> bool:
        return self.is_open and not self.is_pending

    def open(self, today: Optional[date] = None) -> None:
        self.draft = ReportRequest.with_defaults(today)
        self.last_error = None
        self.is_open = True

    def close(self) -> None:
        """Dismiss the dialog. An in-flight submission still completes."""
        self.is_open = False

    def dismiss_banner(self) -> None:
        self.banner_report = None

    async def submit(self) -> GeneratedReport:
        if self.is_pending:
            raise SubmissionInProgressError()
        if not self.is_open:
            raise DialogClosedError()

        self.is_pending = True
        self.last_error = None
        try:
            report = await self._submitter.submit(self.draft)
        except ReportsClientError as e:
            self.last_error = e
            raise
        finally:
            self.is_pending = False

        if self.is_open:
            self.banner_report = report
            self.is_open = False
            self.draft = ReportRequest.with_defaults()
        else:
            logger.debug(f"Report {report.id} created after its dialog was dismissed; no banner")
        return report
