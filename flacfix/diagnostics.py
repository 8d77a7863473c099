from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Callable, Optional

DEFAULT_LOGGER = "flacfix"


@dataclass(slots=True, frozen=True)
class DiagnosticEvent:
    level: int
    message: str
    path: Optional[Path] = None
    key: Optional[str] = None
    count: Optional[int] = None

    @property
    def is_warning(self) -> bool:
        return self.level >= logging.WARNING


class Diagnostics:
    """Explicit sink for per-file events.

    Every event is handed to ``callback`` when one is set and forwarded to
    ``logger``. Callback calls are serialized, so the sink can be shared
    between worker threads.
    """

    def __init__(
        self,
        callback: Optional[Callable[[DiagnosticEvent], None]] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.callback = callback
        self.logger = logger or logging.getLogger(DEFAULT_LOGGER)
        self._lock = Lock()

    def emit(
        self,
        level: int,
        message: str,
        *,
        path: Optional[Path] = None,
        key: Optional[str] = None,
        count: Optional[int] = None,
    ) -> DiagnosticEvent:
        event = DiagnosticEvent(level, message, path=path, key=key, count=count)
        if self.callback is not None:
            with self._lock:
                self.callback(event)
        self.logger.log(level, message)
        return event

    def debug(self, message: str, **kwargs) -> DiagnosticEvent:
        return self.emit(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs) -> DiagnosticEvent:
        return self.emit(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs) -> DiagnosticEvent:
        return self.emit(logging.WARNING, message, **kwargs)

