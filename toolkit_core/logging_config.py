r"""
Logging configuration for the toolkit core.

Sets up colorlog output on stderr and provides structured error logging with
a small in-process aggregator used for the summary printed at exit.
"""

import atexit
import logging
import os
import sys
import threading
import time
from collections import defaultdict
from typing import Any

import colorlog

_TRUTHY = ("true", "1", "yes", "on")


class ErrorAggregator:
    """Counts structured errors per category for end-of-run reporting."""

    def __init__(self, max_per_type: int = 200):
        self.errors: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.lock = threading.Lock()
        self.max_per_type = max_per_type

    def record_error(
        self, error_type: str, message: str, context: dict[str, Any] | None = None
    ) -> None:
        """Record one occurrence of ``error_type``."""
        with self.lock:
            entries = self.errors[error_type]
            entries.append(
                {"timestamp": time.time(), "message": message, "context": context or {}}
            )
            if len(entries) > self.max_per_type:
                del entries[: len(entries) - self.max_per_type]

    def get_error_summary(self) -> dict[str, dict[str, Any]]:
        """Return ``{error_type: {"count": n, "last_message": str}}``."""
        with self.lock:
            return {
                error_type: {
                    "count": len(entries),
                    "last_message": entries[-1]["message"] if entries else None,
                }
                for error_type, entries in self.errors.items()
            }

    def clear(self) -> None:
        with self.lock:
            self.errors.clear()

    def log_summary_report(self) -> None:
        """Log one line per error category recorded so far."""
        summary = self.get_error_summary()
        if not summary:
            logging.debug("No errors recorded in current session")
            return
        logging.warning("🚨 ERROR SUMMARY REPORT")
        for error_type, stats in summary.items():
            logging.warning(f"  {error_type}: {stats['count']} total")
            if stats["last_message"]:
                logging.warning(f"    Last: {stats['last_message']}")


# Process-wide aggregator
error_aggregator = ErrorAggregator()


def log_structured_error(
    error_type: str,
    message: str,
    exception: BaseException | None = None,
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> None:
    """Log an error as ``[TYPE] message | Exception: ... | Context: k=v``.

    Args:
        error_type: Category of the error (``network``, ``auth``, ``config``...).
        message: Descriptive error message.
        exception: The exception that occurred, if any.
        context: Additional key/value pairs for debugging.
        level: Logging level (default: ERROR).
    """
    structured_message = f"[{error_type.upper()}] {message}"
    if exception is not None:
        structured_message += f" | Exception: {type(exception).__name__}"
    if context:
        context_str = " | ".join(f"{k}={v}" for k, v in context.items())
        structured_message += f" | Context: {context_str}"
    logging.log(level, structured_message)
    error_aggregator.record_error(error_type, message, context)


def debug_requested(settings_flag: bool = False) -> bool:
    """Return True when DEBUG is set in the environment or by settings."""
    return settings_flag or os.environ.get("DEBUG", "").lower() in _TRUTHY


class LoggerConfigurator:
    """Configures root logging with colorlog.

    The level is DEBUG when the ``DEBUG`` environment variable is truthy or
    the caller passes ``debug=True`` (settings ``debug_logging``), otherwise INFO.
    """

    def __init__(self, debug: bool = False):
        self.debug = debug
        self._exit_hook_registered = False

    def build_formatter(self) -> colorlog.ColoredFormatter:
        return colorlog.ColoredFormatter(
            "%(asctime)s %(log_color)s%(levelname)-8s%(reset)s %(message_log_color)s%(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "magenta",
            },
            secondary_log_colors={
                "message": {
                    "ERROR": "red",
                    "CRITICAL": "magenta",
                }
            },
            reset=True,
        )

    def configure(self) -> int:
        """Install the colored stderr handler on the root logger.

        Returns:
            The level that was applied.
        """
        log_level = logging.DEBUG if debug_requested(self.debug) else logging.INFO

        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(self.build_formatter())

        root_logger = logging.getLogger()
        for existing in list(root_logger.handlers):
            root_logger.removeHandler(existing)
        root_logger.addHandler(handler)
        root_logger.setLevel(log_level)

        # aiohttp and watchdog are chatty at DEBUG
        logging.getLogger("aiohttp").setLevel(logging.INFO)
        logging.getLogger("watchdog").setLevel(logging.INFO)

        if not self._exit_hook_registered:
            atexit.register(self._log_final_error_summary)
            self._exit_hook_registered = True
        return log_level

    def set_debug(self, enabled: bool) -> None:
        """Switch the root level at runtime (settings reload)."""
        self.debug = enabled
        level = logging.DEBUG if debug_requested(enabled) else logging.INFO
        logging.getLogger().setLevel(level)
        logging.debug(f"🔧 Log level set to {logging.getLevelName(level)}")

    def _log_final_error_summary(self) -> None:
        try:
            error_aggregator.log_summary_report()
        except Exception as e:  # noqa: BLE001
            logging.error(f"Failed to log final error summary: {e}")
