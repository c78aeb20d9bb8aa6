"""Tests for library logging setup."""

import logging
from collections.abc import Iterator

import pytest

from vm_power._logging import (
    _DATEFMT,
    _FMT,
    LIBRARY_LOGGER_NAME,
    _ContextFormatter,
    _NonBlockingHandler,
    configure_logging,
    get_logger,
)


@pytest.fixture
def lib_logger() -> Iterator[logging.Logger]:
    """Library logger, restored after the test."""
    logger = logging.getLogger(LIBRARY_LOGGER_NAME)
    handlers = list(logger.handlers)
    level = logger.level
    yield logger
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)


class TestLogging:
    def test_null_handler_attached(self, lib_logger: logging.Logger) -> None:
        assert any(isinstance(h, logging.NullHandler) for h in lib_logger.handlers)

    def test_get_logger_in_hierarchy(self) -> None:
        assert get_logger("vm_power.power").parent is logging.getLogger(LIBRARY_LOGGER_NAME)

    def test_configure_logging_idempotent(self, lib_logger: logging.Logger) -> None:
        configure_logging(level="DEBUG")
        configure_logging(level="INFO")

        handlers = [h for h in lib_logger.handlers if isinstance(h, _NonBlockingHandler)]
        assert len(handlers) == 1
        assert lib_logger.level == logging.INFO

    def test_quiet_wins(self, lib_logger: logging.Logger) -> None:
        configure_logging(level="DEBUG", quiet=True)
        assert lib_logger.level == logging.ERROR


class TestContextFormatter:
    @pytest.fixture
    def formatter(self) -> logging.Formatter:
        return _ContextFormatter(fmt=_FMT, datefmt=_DATEFMT)

    def _record(self, msg: str, **extra: object) -> logging.LogRecord:
        return logging.makeLogRecord(
            {"name": "vm_power.power", "levelno": logging.INFO, "levelname": "INFO", "msg": msg, **extra}
        )

    def test_structured_fields_rendered(self, formatter: logging.Formatter) -> None:
        record = self._record("Power action started", vm_id=100, action="start", task_ref="UPID:1")
        line = formatter.format(record)
        assert line.startswith("INFO [")
        assert line.endswith("vm_power.power - Power action started [vm_id=100 action=start task_ref=UPID:1]")

    def test_field_order_is_fixed(self, formatter: logging.Formatter) -> None:
        record = self._record("Power action failed", error_type="TimeoutError", vm_id=7, target="off")
        assert formatter.format(record).endswith("[vm_id=7 target=off error_type=TimeoutError]")

    def test_plain_record_unchanged(self, formatter: logging.Formatter) -> None:
        line = formatter.format(self._record("hello"))
        assert line.endswith("vm_power.power - hello")

    def test_unrelated_extra_ignored(self, formatter: logging.Formatter) -> None:
        line = formatter.format(self._record("hello", cgroup="x"))
        assert line.endswith("- hello")

    def test_reconciler_record_through_logger(self, lib_logger: logging.Logger, formatter: logging.Formatter) -> None:
        records: list[logging.LogRecord] = []

        class _Collect(logging.Handler):
            def emit(self, record: logging.LogRecord) -> None:
                records.append(record)

        handler = _Collect()
        lib_logger.addHandler(handler)
        lib_logger.setLevel(logging.DEBUG)
        get_logger("vm_power.power").info("Power action started", extra={"vm_id": 100, "action": "start"})

        assert len(records) == 1
        assert "[vm_id=100 action=start]" in formatter.format(records[0])
