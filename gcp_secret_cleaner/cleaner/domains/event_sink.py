"""Structured event sinks for cleanup runs."""
import logging
import logging.handlers
from urllib.parse import urlsplit

from .models import EventKind, SweepEvent

logger = logging.getLogger("gcp_secret_cleaner.events")

_EVENT_LEVELS = {
    EventKind.SECRET_STARTED: logging.DEBUG,
    EventKind.SECRET_FAILED: logging.ERROR,
    EventKind.FATAL: logging.ERROR,
}


class ProjectLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that prefixes messages with the project ID."""

    def process(self, msg, kwargs):
        return f"[{self.extra['project_id']}] {msg}", kwargs


class EventSink:
    """Receives structured events from the cleanup workflows."""

    def emit(self, event: SweepEvent) -> None:
        raise NotImplementedError


class LoggingEventSink(EventSink):
    """Writes events through the standard logging module."""

    def __init__(self, base_logger: logging.Logger = logger):
        self._logger = base_logger

    def emit(self, event: SweepEvent) -> None:
        adapter = ProjectLoggerAdapter(self._logger, {"project_id": event.project_id})
        level = _EVENT_LEVELS.get(event.kind, logging.INFO)
        adapter.log(
            level,
            event.message,
            extra={
                "event": event.kind.value,
                "secret": event.secret,
                "version": event.version,
                "event_time": event.timestamp.isoformat(),
            },
        )


def build_http_shipping_handler(url: str, token: str) -> logging.Handler:
    """
    Create a handler that POSTs log records to an HTTPS endpoint.

    Args:
        url: Endpoint URL, query string included
        token: Credential sent with basic auth

    Returns:
        Configured logging.handlers.HTTPHandler

    Raises:
        ValueError: If the URL has no host or is not https
    """
    parts = urlsplit(url)
    if parts.scheme != "https" or not parts.netloc:
        raise ValueError(
            f"Invalid log shipping URL: {url}\n"
            f"An https:// URL is required because the token is sent with basic auth."
        )

    path = parts.path or "/"
    if parts.query:
        path = f"{path}?{parts.query}"

    return logging.handlers.HTTPHandler(
        host=parts.netloc,
        url=path,
        method="POST",
        secure=True,
        credentials=("token", token),
    )
