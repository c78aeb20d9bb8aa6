"""Centralized logging for vm-power-reconciler.

The library only attaches a NullHandler to its root logger; handlers are the
application's job. Entry points (the CLI, or a driver embedding the
reconciler) call configure_logging() to get output on stderr.

Level control:
    VM_POWER_LOG_LEVEL env var (e.g. "DEBUG", "WARNING") sets the level of the
    "vm_power" logger at import time. configure_logging(level=...) overrides it.

Output format:
    INFO [2026-10-19 10:02:54] vm_power.power - Power action started [vm_id=100 action=start task_ref=UPID:...]

The bracketed pairs are the structured fields the reconciler passes through
`extra=`; records without any of them print the bare message.

Records are handed to a bounded queue and drained by a QueueListener daemon
thread, so a reconciliation pass never blocks on stderr I/O.
"""

import contextlib
import logging
import logging.handlers
import os
import queue

import click

LIBRARY_LOGGER_NAME: str = "vm_power"

logging.getLogger(LIBRARY_LOGGER_NAME).addHandler(logging.NullHandler())

_env_level = os.environ.get("VM_POWER_LOG_LEVEL", "").strip().upper()
_env_level_value = logging.getLevelNamesMapping().get(_env_level)
if _env_level_value:  # excludes NOTSET (0) and missing keys (None)
    logging.getLogger(LIBRARY_LOGGER_NAME).setLevel(_env_level_value)

_FMT = "%(levelname)s [%(asctime)s] %(name)s - %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

_QUEUE_CAPACITY = 1024

# Structured fields rendered after the message, in this order.
_CONTEXT_FIELDS: tuple[str, ...] = (
    "vm_id",
    "status",
    "target",
    "action",
    "task_ref",
    "reason",
    "network_device",
    "error_type",
    "error",
)


class _ContextFormatter(logging.Formatter):
    """Formatter that appends the reconciler's ``extra`` fields as key=value pairs."""

    def formatMessage(self, record: logging.LogRecord) -> str:  # noqa: N802
        line = super().formatMessage(record)
        pairs = [f"{key}={value}" for key in _CONTEXT_FIELDS if (value := getattr(record, key, None)) is not None]
        if not pairs:
            return line
        return f"{line} [{' '.join(pairs)}]"


class _ClickHandler(logging.Handler):
    """Writes formatted records to stderr via click.echo (ANSI stripped off-TTY)."""

    def __init__(self) -> None:
        super().__init__()
        self.formatter = _ContextFormatter(fmt=_FMT, datefmt=_DATEFMT)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            click.echo(click.style(msg, dim=True), err=True)
        except BlockingIOError:
            pass  # stderr buffer full, drop
        except Exception:  # noqa: BLE001
            self.handleError(record)


class _NonBlockingHandler(logging.handlers.QueueHandler):
    """Queue-backed handler that never blocks the caller.

    When the queue is full, records are dropped.
    """

    def __init__(self) -> None:
        q: queue.Queue[logging.LogRecord] = queue.Queue(maxsize=_QUEUE_CAPACITY)
        super().__init__(q)
        self._listener = logging.handlers.QueueListener(q, _ClickHandler(), respect_handler_level=False)
        self._listener.start()

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        """Same-process queue, no pickling needed."""
        return record

    def enqueue(self, record: logging.LogRecord) -> None:
        with contextlib.suppress(queue.Full):
            self.queue.put_nowait(record)

    def close(self) -> None:
        self._listener.stop()
        super().close()


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given module name.

    All vm_power modules use this instead of logging.getLogger() directly so
    the hierarchy stays rooted at LIBRARY_LOGGER_NAME.
    """
    return logging.getLogger(name)


def configure_logging(
    *,
    level: int | str | None = None,
    quiet: bool = False,
) -> None:
    """Configure library logging for CLI / application entry points.

    Idempotent: adds a single _NonBlockingHandler, then sets the level.

    Args:
        level: Log level (e.g. logging.DEBUG, "WARNING"). Overrides env var.
        quiet: If True, set level to ERROR. Takes precedence over level.
    """
    lib_logger = logging.getLogger(LIBRARY_LOGGER_NAME)

    if not any(isinstance(h, _NonBlockingHandler) for h in lib_logger.handlers):
        lib_logger.addHandler(_NonBlockingHandler())

    if quiet:
        lib_logger.setLevel(logging.ERROR)
    elif level is not None:
        lib_logger.setLevel(level)
