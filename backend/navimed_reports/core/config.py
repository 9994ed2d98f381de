import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel


load_dotenv()


class Settings(BaseModel):
    # NaviMed backend
    api_base_url: str = os.getenv("NAVIMED_API_BASE_URL", "http://localhost:5000/api")

    # Static bearer token for non-interactive use (scheduled exports, scripts)
    auth_token: Optional[str] = os.getenv("NAVIMED_AUTH_TOKEN")

    # Timeouts (seconds)
    request_timeout_seconds: float = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "30"))
    download_timeout_seconds: float = float(os.getenv("DOWNLOAD_TIMEOUT_SECONDS", "120"))

    # Report list cache
    reports_stale_seconds: float = float(os.getenv("REPORTS_STALE_SECONDS", "30"))
    reports_cache_backend: str = os.getenv("REPORTS_CACHE_BACKEND", "memory")
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    # Downloads
    reports_download_dir: str = os.getenv(
        "REPORTS_DOWNLOAD_DIR",
        os.path.join(os.path.expanduser("~"), "Downloads"),
    )

    # Pending report polling
    report_poll_interval_seconds: float = float(os.getenv("REPORT_POLL_INTERVAL_SECONDS", "5"))
    report_poll_max_attempts: int = int(os.getenv("REPORT_POLL_MAX_ATTEMPTS", "60"))

    @property
    def reports_url(self) -> str:
        """Base URL of the reports resource."""
        return f"{self.api_base_url.rstrip('/')}/reports"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = Settings()
