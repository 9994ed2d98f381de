"""
Lazy DI container — singleton access to the client, cache, session, and services.

Import individual getters to avoid circular imports.
Version: 1.0.0
"""

from functools import lru_cache

from navimed_reports.core.config import settings
from navimed_reports.core.blob_saver import FileBlobSaver
from navimed_reports.core.cache import InMemoryQueryCache, RedisQueryCache
from navimed_reports.core.notifier import Notifier
from navimed_reports.core.session import SessionProvider, session_from_token
from navimed_reports.clients.reports_client import ReportsClient
from navimed_reports.services.download_orchestrator import DownloadOrchestrator
from navimed_reports.services.generation_dialog import GenerationDialog
from navimed_reports.services.report_registry import ReportRegistry
from navimed_reports.services.report_submitter import ReportSubmitter


# -- Clients ---------------------------------------------------------------

@lru_cache(maxsize=1)
def get_reports_client():
    return ReportsClient(settings)


# -- Shared state ----------------------------------------------------------

@lru_cache(maxsize=1)
def get_query_cache():
    if settings.reports_cache_backend == "redis":
        return RedisQueryCache(
            redis_url=settings.redis_url,
            stale_seconds=settings.reports_stale_seconds,
        )
    return InMemoryQueryCache(stale_seconds=settings.reports_stale_seconds)


@lru_cache(maxsize=1)
def get_session_provider():
    return SessionProvider(session_from_token(settings.auth_token))


@lru_cache(maxsize=1)
def get_notifier():
    return Notifier()


@lru_cache(maxsize=1)
def get_blob_saver():
    return FileBlobSaver(settings.reports_download_dir)


# -- Services --------------------------------------------------------------

@lru_cache(maxsize=1)
def get_report_submitter():
    return ReportSubmitter(
        client=get_reports_client(),
        cache=get_query_cache(),
        notifier=get_notifier(),
        sessions=get_session_provider(),
    )


@lru_cache(maxsize=1)
def get_report_registry():
    return ReportRegistry(
        client=get_reports_client(),
        cache=get_query_cache(),
        sessions=get_session_provider(),
        poll_interval=settings.report_poll_interval_seconds,
        poll_max_attempts=settings.report_poll_max_attempts,
    )


@lru_cache(maxsize=1)
def get_download_orchestrator():
    return DownloadOrchestrator(
        client=get_reports_client(),
        sessions=get_session_provider(),
        saver=get_blob_saver(),
        notifier=get_notifier(),
    )


def new_generation_dialog():
    """A fresh dialog per form instance; dialogs are never shared."""
    return GenerationDialog(get_report_submitter())
