"""
Custom exception hierarchy for the NaviMed reports client.

Exceptions are categorized as:
- Pre-network errors: raised before any request is sent
  (ValidationError, SubmissionInProgressError, MissingFileReferenceError,
  NotAuthenticatedError)
- Server errors: mapped from the HTTP response or transport failure

None of these are retried automatically. Every one of them is terminal for
the attempt that raised it and carries a user-readable message.
"""
from typing import Dict, Optional


class ReportsClientError(Exception):
    """Base exception for the NaviMed reports client."""

    title = "Error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# ============================================
# REPORT GENERATION
# ============================================
class ValidationError(ReportsClientError):
    """
    A report request failed client-side validation.

    Never reaches the network. ``errors`` maps field name to message.
    """
    title = "Invalid Report Request"

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(self.errors.values()))


class SubmissionInProgressError(ReportsClientError):
    """The same form instance was submitted while its request is pending."""
    title = "Submission In Progress"

    def __init__(self):
        super().__init__("A report is already being generated from this form.")


class DialogClosedError(ReportsClientError):
    """A dismissed form was submitted."""
    title = "Form Closed"

    def __init__(self):
        super().__init__("Open the report form before generating a report.")


class ReportGenerationError(ReportsClientError):
    """
    The creation call failed server-side or transport-side.

    Carries the server-provided message when there is one.
    """
    title = "Report Generation Failed"
    fallback_message = "An error occurred while generating the report. Please try again."

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message or self.fallback_message)


class ReportListError(ReportsClientError):
    """Fetching the generated report collection failed."""
    title = "Could Not Load Reports"
    fallback_message = "An error occurred while loading reports. Please try again."

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message or self.fallback_message)


class ReportPendingTimeoutError(ReportsClientError):
    """A report did not reach a terminal status within the polling budget."""
    title = "Report Still Generating"

    def __init__(self, report_id: str, attempts: int):
        self.report_id = report_id
        self.attempts = attempts
        super().__init__(
            f"Report {report_id} is still being generated after {attempts} checks."
        )


# ============================================
# DOWNLOAD
# ============================================
class DownloadError(ReportsClientError):
    """Base class for every categorized download failure."""
    title = "Download Failed"
    default_message = "An error occurred while downloading the report. Please try again."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)


class MissingFileReferenceError(DownloadError):
    """The report has no file yet (still pending, failed, or malformed)."""
    title = "Download Error"
    default_message = "Report file URL or filename not available"


class NotAuthenticatedError(DownloadError):
    """No user session at the moment of the download attempt."""
    title = "Authentication Error"
    default_message = "You must be logged in to download reports"


class SessionExpiredError(DownloadError):
    """HTTP 401 - the bearer credential is no longer accepted."""
    title = "Authentication Failed"
    default_message = "Your session has expired. Please log in again."


class AccessDeniedError(DownloadError):
    """HTTP 403 - the caller may not read this report."""
    title = "Access Denied"
    default_message = "You don't have permission to download this report."


class ReportNotFoundError(DownloadError):
    """HTTP 404 - the backing file no longer exists."""
    title = "Report Not Found"
    default_message = "The requested report could not be found."


class ServerError(DownloadError):
    """Any other non-2xx status, or a transport failure without a status."""

    def __init__(self, status_code: Optional[int] = None, message: Optional[str] = None):
        self.status_code = status_code
        if message is None and status_code is not None:
            message = f"Server error: {status_code}"
        super().__init__(message)


class RequestTimeoutError(DownloadError):
    """The server did not answer within the configured timeout."""
    title = "Download Timed Out"
    default_message = "The server took too long to respond. Please try again."
