from __future__ import annotations

import logging
import sys
import warnings
from pathlib import Path

from patchgate.logger import (
    LogManager,
    configure_logging,
    get_log_manager,
    init_log_manager,
    logger,
)
from patchgate.settings import LogLevel, LogSettings


def _has_tty_handler(log: logging.Logger) -> bool:
    for handler in log.handlers:
        if isinstance(handler, logging.StreamHandler):
            stream = getattr(handler, "stream", None)
            if stream in (sys.stdout, sys.stderr):
                return True
    return False


def test_log_manager_disables_tty_and_captures() -> None:
    root_logger = logging.getLogger()
    root_logger.addHandler(logging.StreamHandler(sys.stdout))

    named_logger = logging.getLogger("existing.nonprop")
    named_logger.setLevel(logging.INFO)
    named_logger.propagate = False
    named_logger.addHandler(logging.StreamHandler(sys.stdout))

    manager = init_log_manager(max_entries=None)
    assert isinstance(manager, LogManager)
    assert get_log_manager() is manager

    assert not _has_tty_handler(root_logger)
    assert not _has_tty_handler(named_logger)

    root_logger.warning("root warning message")
    named_logger.info("named logger message")
    logger.warning("structured event", action_id="a1")

    messages = [record.message for record in manager.get_records()]
    assert "root warning message" in messages
    assert "named logger message" in messages
    assert any("structured event" in m and "action_id=a1" in m for m in messages)


def test_log_manager_captures_warnings() -> None:
    manager = init_log_manager(max_entries=None)
    warnings.warn("warning from warnings module", UserWarning)

    messages = [record.message for record in manager.get_records()]
    assert any("warning from warnings module" in message for message in messages)


def test_log_manager_trims_to_max_entries() -> None:
    manager = LogManager(max_entries=2)
    for i in range(3):
        manager.add_record(
            logging.LogRecord("t", logging.INFO, __file__, 1, f"m{i}", None, None)
        )
    assert [r.message for r in manager.get_records()] == ["m1", "m2"]
    manager.clear()
    assert manager.get_records() == []


def test_configure_logging_sets_level_and_file(tmp_path: Path) -> None:
    log_file = tmp_path / "patchgate.log"
    configure_logging(LogSettings(level=LogLevel.debug, file=log_file))
    pg_logger = logging.getLogger("patchgate")
    try:
        assert pg_logger.level == logging.DEBUG
        logger.debug("written to file", target="a.py")
        for handler in pg_logger.handlers:
            handler.flush()
        text = log_file.read_text(encoding="utf-8")
        assert "written to file" in text
        assert "target=a.py" in text
    finally:
        for handler in list(pg_logger.handlers):
            if isinstance(handler, logging.FileHandler):
                pg_logger.removeHandler(handler)
                handler.close()
        pg_logger.setLevel(logging.NOTSET)
