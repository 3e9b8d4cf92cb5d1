"""
Append-only request log.

Each request produces one ``YYYY-MM-DD HH:MM:SS [METHOD] [path]`` line. Lines
go through a QueueHandler so the request thread only enqueues; a
QueueListener thread owns the file. Write failures are reported to the
application logger and never reach the client.
"""

from __future__ import annotations

import logging
import queue
import threading
from datetime import datetime, timezone
from logging.handlers import QueueHandler, QueueListener

from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class _AccessFileHandler(logging.FileHandler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            super().emit(record)
        except OSError:
            self.handleError(record)

    def handleError(self, record: logging.LogRecord) -> None:
        logger.warning("Error al escribir en el archivo %s", self.baseFilename)


class AccessLog:
    """Best-effort sink for request lines."""

    def __init__(self, path: str) -> None:
        self.path = (path or "").strip()
        self._lock = threading.Lock()
        self._listener: QueueListener | None = None
        self._file_handler: logging.FileHandler | None = None
        self._logger = logging.getLogger(f"{__name__}[{self.path}]")
        self._logger.propagate = False
        self._logger.setLevel(logging.INFO)

    @property
    def enabled(self) -> bool:
        return bool(self.path)

    def start(self) -> None:
        if not self.enabled:
            return
        with self._lock:
            if self._listener is not None:
                return
            records: queue.Queue = queue.Queue(-1)
            self._file_handler = _AccessFileHandler(self.path, encoding="utf-8", delay=True)
            self._file_handler.setFormatter(logging.Formatter("%(message)s"))
            self._listener = QueueListener(records, self._file_handler)
            for handler in list(self._logger.handlers):
                self._logger.removeHandler(handler)
            self._logger.addHandler(QueueHandler(records))
            self._listener.start()

    def stop(self) -> None:
        """Drain pending lines and close the file."""
        with self._lock:
            if self._listener is None:
                return
            self._listener.stop()
            self._listener = None
            for handler in list(self._logger.handlers):
                self._logger.removeHandler(handler)
            if self._file_handler is not None:
                self._file_handler.close()
                self._file_handler = None

    def record(self, method: str, path: str) -> None:
        if not self.enabled:
            return
        if self._listener is None:
            self.start()
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        self._logger.info("%s [%s] [%s]", stamp, method, path)


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Record every request, including the ones whose handler raised."""

    def __init__(self, app, *, access_log: AccessLog) -> None:
        super().__init__(app)
        self._access_log = access_log

    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        finally:
            try:
                self._access_log.record(request.method, request.url.path)
            except Exception:
                logger.exception("Error al registrar la solicitud %s %s", request.method, request.url.path)
