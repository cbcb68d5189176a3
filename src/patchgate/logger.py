from __future__ import annotations

import logging
import sys
import warnings
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from patchgate.settings import LogSettings


@dataclass
class LogRecordEntry:
    logger_name: str
    level: int
    level_name: str
    message: str
    created: float


class LogManager:
    def __init__(self, max_entries: Optional[int] = None) -> None:
        self._max_entries = max_entries
        self._records: list[LogRecordEntry] = []

    def add_record(self, record: logging.LogRecord) -> None:
        entry = LogRecordEntry(
            logger_name=record.name,
            level=record.levelno,
            level_name=record.levelname,
            message=record.getMessage(),
            created=record.created,
        )
        self._records.append(entry)
        if self._max_entries is not None and len(self._records) > self._max_entries:
            overflow = len(self._records) - self._max_entries
            del self._records[0:overflow]

    def get_records(self) -> list[LogRecordEntry]:
        return list(self._records)

    def clear(self) -> None:
        self._records.clear()


class _InMemoryLogHandler(logging.Handler):
    def __init__(self, manager: LogManager) -> None:
        super().__init__()
        self._manager = manager

    def emit(self, record: logging.LogRecord) -> None:
        self._manager.add_record(record)


_log_manager: Optional[LogManager] = None
_log_handler: Optional[_InMemoryLogHandler] = None


def _is_tty_handler(handler: logging.Handler) -> bool:
    return isinstance(handler, logging.StreamHandler) and getattr(
        handler, "stream", None
    ) in (sys.stdout, sys.stderr)


def init_log_manager(max_entries: Optional[int] = None) -> LogManager:
    """
    Capture log records in memory instead of writing them to the terminal.
    Embedding applications call this when they own stdout (chat panels, TUIs).
    """
    global _log_manager, _log_handler
    if _log_manager is None:
        _log_manager = LogManager(max_entries=max_entries)
        _log_handler = _InMemoryLogHandler(_log_manager)

    root_logger = logging.getLogger()
    if _log_handler is not None and _log_handler not in root_logger.handlers:
        root_logger.addHandler(_log_handler)

    for handler in list(root_logger.handlers):
        if _is_tty_handler(handler):
            root_logger.removeHandler(handler)

    for logger_obj in list(logging.root.manager.loggerDict.values()):
        if not isinstance(logger_obj, logging.Logger):
            continue
        for handler in list(logger_obj.handlers):
            if _is_tty_handler(handler):
                logger_obj.removeHandler(handler)
        if (
            _log_handler is not None
            and not logger_obj.propagate
            and _log_handler not in logger_obj.handlers
        ):
            logger_obj.addHandler(_log_handler)

    def _showwarning(
        message: warnings.WarningMessage | str,
        category: type[Warning],
        filename: str,
        lineno: int,
        file: object | None = None,
        line: str | None = None,
    ) -> None:
        text = warnings.formatwarning(message, category, filename, lineno, line)
        logging.getLogger("py.warnings").warning(text.strip())

    warnings.showwarning = _showwarning
    return _log_manager


def get_log_manager() -> Optional[LogManager]:
    return _log_manager


def configure_logging(settings: Optional["LogSettings"] = None) -> None:
    """Apply level and optional file sink from LogSettings to the patchgate logger."""
    from patchgate.settings import LogSettings

    settings = settings or LogSettings()
    level = logging.getLevelName(settings.level.value.upper())
    pg_logger = logging.getLogger("patchgate")
    pg_logger.setLevel(level)

    if settings.file:
        for handler in pg_logger.handlers:
            if (
                isinstance(handler, logging.FileHandler)
                and handler.baseFilename == str(settings.file.resolve())
            ):
                break
        else:
            file_handler = logging.FileHandler(
                settings.file, mode="a", encoding="utf-8"
            )
            file_handler.setFormatter(logging.Formatter("%(message)s"))
            pg_logger.addHandler(file_handler)

    if settings.max_entries is not None:
        init_log_manager(max_entries=settings.max_entries)


structlog.configure(
    wrapper_class=structlog.make_filtering_bound_logger(logging.NOTSET),
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
        structlog.dev.ConsoleRenderer(colors=False),
    ],
)

logger: structlog.BoundLogger = structlog.get_logger("patchgate")
