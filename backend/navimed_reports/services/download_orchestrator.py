"""
Download orchestrator — authenticated download of a completed report.

Every click runs a fresh DownloadAttempt through:

    idle -> validating -> requesting -> receiving_body -> saving -> done

or ends in ``failed`` from any step. No state is re-entered and nothing is
shared between attempts except the (immutable) report.
Version: 1.0.0
"""
import logging
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from navimed_reports.clients.reports_client import ReportsClient
from navimed_reports.core.blob_saver import BlobSaver
from navimed_reports.core.exceptions import (
    DownloadError,
    MissingFileReferenceError,
    NotAuthenticatedError,
)
from navimed_reports.core.notifier import DESTRUCTIVE, Notifier
from navimed_reports.core.session import Session, SessionProvider
from navimed_reports.schemas.reports import GeneratedReport

logger = logging.getLogger(__name__)


class DownloadState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    REQUESTING = "requesting"
    RECEIVING_BODY = "receiving_body"
    SAVING = "saving"
    DONE = "done"
    FAILED = "failed"


_NEXT = {
    DownloadState.IDLE: {DownloadState.VALIDATING},
    DownloadState.VALIDATING: {DownloadState.REQUESTING, DownloadState.FAILED},
    DownloadState.REQUESTING: {DownloadState.RECEIVING_BODY, DownloadState.FAILED},
    DownloadState.RECEIVING_BODY: {DownloadState.SAVING, DownloadState.FAILED},
    DownloadState.SAVING: {DownloadState.DONE, DownloadState.FAILED},
    DownloadState.DONE: set(),
    DownloadState.FAILED: set(),
}

TransitionHook = Callable[[GeneratedReport, DownloadState], None]


class DownloadAttempt:
    """State of one download click."""

    def __init__(self, report: GeneratedReport, on_transition: Optional[TransitionHook] = None):
        self.report = report
        self.state = DownloadState.IDLE
        self.history: List[DownloadState] = [DownloadState.IDLE]
        self._on_transition = on_transition

    def advance(self, state: DownloadState) -> None:
        if state not in _NEXT[self.state]:
            raise RuntimeError(f"Illegal download transition {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)
        if self._on_transition:
            self._on_transition(self.report, state)


class DownloadOrchestrator:
    """Validates, fetches, and saves report files."""

    def __init__(
        self,
        client: ReportsClient,
        sessions: SessionProvider,
        saver: BlobSaver,
        notifier: Notifier,
        on_transition: Optional[TransitionHook] = None,
    ):
        self._client = client
        self._sessions = sessions
        self._saver = saver
        self._notifier = notifier
        self._on_transition = on_transition

    async def download(self, report: GeneratedReport) -> Path:
        """Download ``report`` and save it under its file name.

        Raises:
            MissingFileReferenceError: report not completed or has no file yet.
            NotAuthenticatedError: no session at the time of the click.
            SessionExpiredError / AccessDeniedError / ReportNotFoundError /
            ServerError / RequestTimeoutError: categorized server outcomes.
        """
        attempt = DownloadAttempt(report, self._on_transition)
        try:
            return await self._run(attempt)
        except DownloadError as e:
            attempt.advance(DownloadState.FAILED)
            logger.warning(f"Download of report {report.id} failed: {type(e).__name__}: {e.message}")
            self._notifier.notify(e.title, e.message, DESTRUCTIVE)
            raise

    async def _run(self, attempt: DownloadAttempt) -> Path:
        report = attempt.report

        attempt.advance(DownloadState.VALIDATING)
        session = self._validate(report)

        self._notifier.notify("Starting Download", f"Preparing {report.title} for download...")

        attempt.advance(DownloadState.REQUESTING)
        blob = await self._client.download_report(report.id, report.file_name, session.token)

        attempt.advance(DownloadState.RECEIVING_BODY)
        logger.debug(f"Received {blob.size} bytes ({blob.content_type}) for report {report.id}")

        attempt.advance(DownloadState.SAVING)
        try:
            path = self._saver.save(blob, report.file_name)
        except (OSError, ValueError) as e:
            logger.error(f"Saving report {report.id} failed: {e}")
            raise DownloadError(f"Could not save {report.file_name}: {e}")

        attempt.advance(DownloadState.DONE)
        self._notifier.notify("Download Started", f"Successfully downloading {report.title}")
        return path

    def _validate(self, report: GeneratedReport) -> Session:
        if not report.is_downloadable:
            raise MissingFileReferenceError()

        session = self._sessions.current()
        if session is None or not session.user_id or not session.token:
            raise NotAuthenticatedError()
        return session
