"""
Report schemas — request draft, generated report projection, and wire payloads.
Version: 1.0.0
"""
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_WINDOW_DAYS = 30


class ReportType(str, Enum):
    LABORATORY_SUMMARY = "laboratory_summary"
    CRITICAL_VALUES = "critical_values"
    QUALITY_CONTROL = "quality_control"
    PERFORMANCE_METRICS = "performance_metrics"

    @property
    def label(self) -> str:
        """Human-readable name, e.g. ``Laboratory Summary``."""
        return self.value.replace("_", " ").title()


class ReportFormat(str, Enum):
    PDF = "pdf"
    EXCEL = "excel"
    CSV = "csv"


class ReportStatus(str, Enum):
    PENDING = "pending"
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = {ReportStatus.COMPLETED.value, ReportStatus.FAILED.value}


class ReportRequest(BaseModel):
    """
    User-constructed report parameters.

    Fields are optional at the model level so that a missing selection can be
    reported as a required-field error by the submitter instead of failing
    at construction time.
    """
    model_config = ConfigDict(validate_assignment=True)

    report_type: Optional[ReportType] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    format: Optional[ReportFormat] = None
    include_patient_data: bool = False
    include_test_results: bool = True
    include_statistics: bool = False

    @classmethod
    def with_defaults(cls, today: Optional[date] = None) -> "ReportRequest":
        """Pre-selected draft: lab summary, PDF, trailing 30-day window."""
        today = today or date.today()
        return cls(
            report_type=ReportType.LABORATORY_SUMMARY,
            format=ReportFormat.PDF,
            date_from=today - timedelta(days=DEFAULT_WINDOW_DAYS),
            date_to=today,
        )

    def title(self) -> str:
        return (
            f"Laboratory {self.report_type.label} Report - "
            f"{self.date_from.strftime('%b %d')} to {self.date_to.strftime('%b %d, %Y')}"
        )

    def to_payload(self) -> Dict[str, Any]:
        """Body for ``POST /reports``."""
        return {
            "type": self.report_type.value,
            "format": self.format.value,
            "title": self.title(),
            "parameters": {
                "dateFrom": self.date_from.isoformat(),
                "dateTo": self.date_to.isoformat(),
                "includePatientData": self.include_patient_data,
                "includeTestResults": self.include_test_results,
                "includeStatistics": self.include_statistics,
            },
        }


class GeneratedReport(BaseModel):
    """Read-only projection of a server-owned report job."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    title: str = ""
    type: str = ""
    format: str = ""
    status: str = ReportStatus.PENDING.value
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    completed_at: Optional[datetime] = Field(None, alias="completedAt")
    file_url: Optional[str] = Field(None, alias="fileUrl")
    file_name: Optional[str] = Field(None, alias="fileName")
    generated_by: Optional[str] = Field(None, alias="generatedBy")
    tenant_id: Optional[str] = Field(None, alias="tenantId")
    parameters: Optional[Dict[str, Any]] = None

    @property
    def is_completed(self) -> bool:
        return self.status == ReportStatus.COMPLETED.value

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_downloadable(self) -> bool:
        """Completed, with both a file URL and a file name."""
        return self.is_completed and bool(self.file_url) and bool(self.file_name)


class CreateReportResponse(BaseModel):
    """Response of ``POST /reports``."""
    report: GeneratedReport


class ApiErrorBody(BaseModel):
    """
    Structured error body returned by the backend.

    Accepts both ``{"message": ...}`` and ``{"error": ..., "instructions": ...}``.
    """
    model_config = ConfigDict(extra="ignore")

    message: Optional[str] = None
    error: Optional[str] = None
    instructions: Optional[str] = None
    code: Optional[Union[str, int]] = None

    def user_message(self) -> Optional[str]:
        text = self.message or self.error
        if text and self.instructions:
            return f"{text} {self.instructions}"
        return text


class Blob(BaseModel):
    """Downloaded file bytes."""
    data: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.data)
