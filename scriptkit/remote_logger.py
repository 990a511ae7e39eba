"""ScriptKit - Remote Logging

Optional usage events (Boot, Exit) posted as JSON to settings.REMOTE_LOG_URL.
Delivery is best effort: HTTP failures are logged locally and never reach the
user's session.

remote_logging() scopes a logger to one invocation: it is created before the
session is built and closed exactly once, however the session ends.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional

import httpx

from scriptkit.config import settings
from scriptkit.engine.storage import Storage

logger = logging.getLogger(__name__)


class RemoteLogger:
    """Posts named events tagged with the storage session id."""

    def __init__(
        self,
        session_id: str,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.session_id = session_id
        self.url = settings.REMOTE_LOG_URL if url is None else url
        self._client = httpx.Client(
            timeout=settings.REMOTE_LOG_TIMEOUT if timeout is None else timeout,
            transport=transport,
        )
        self.closed = False

    def apply(self, event: str) -> None:
        if self.closed:
            logger.debug(f"Dropping remote event {event}: logger closed")
            return
        if not self.url:
            logger.debug(f"Remote event {event} (session {self.session_id}, no URL configured)")
            return

        payload = {
            "session_id": self.session_id,
            "event": event,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        try:
            response = self._client.post(self.url, json=payload)
            response.raise_for_status()
            logger.debug(f"Remote event {event} delivered")
        except httpx.HTTPError as e:
            logger.debug(f"Remote event {event} not delivered: {e}")

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._client.close()


@contextmanager
def remote_logging(enabled: bool, storage: Storage) -> Iterator[Optional[RemoteLogger]]:
    """Yield a booted RemoteLogger (or None when disabled) and always close it."""
    if not enabled:
        yield None
        return

    remote_logger = RemoteLogger(storage.get_session_id())
    remote_logger.apply("Boot")
    try:
        yield remote_logger
    finally:
        remote_logger.close()
