"""Structured logging configuration for the TGClips API."""

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "tgclips"

console = Console(stderr=True)


def setup_logging(
    level: str = "INFO",
    log_file: Path | str | None = None,
    rich_tracebacks: bool = True,
) -> logging.Logger:
    """
    Configure logging for the application.

    Module loggers created with ``logging.getLogger(__name__)`` live under the
    ``tgclips`` namespace and inherit these handlers.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        rich_tracebacks: Enable rich traceback formatting

    Returns:
        Configured root application logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper()))

    # Clear existing handlers
    logger.handlers.clear()

    rich_handler = RichHandler(
        console=console,
        rich_tracebacks=rich_tracebacks,
        tracebacks_show_locals=(level.upper() == "DEBUG"),
        markup=False,
    )
    rich_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(rich_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(file_handler)

    # Prevent double output through the root logger
    logger.propagate = False

    logger.info("Logging initialized (level=%s)", level)
    return logger


def log_store_event(
    logger_instance: logging.Logger,
    store: str,
    operation: str,
    target: str,
    duration_ms: float,
    error: str | None = None,
) -> None:
    """
    Log a record/object store round trip.

    Args:
        logger_instance: Logger to use
        store: Store name (records, objects)
        operation: Operation (select, insert, upload, remove, ...)
        target: Table or bucket name
        duration_ms: Round-trip duration in milliseconds
        error: Error message if the call failed
    """
    extra = {
        "store": store,
        "operation": operation,
        "target": target,
        "duration_ms": round(duration_ms, 2),
    }
    if error:
        extra["error"] = error
        logger_instance.error(
            "%s %s on %s failed: %s", store, operation, target, error, extra=extra
        )
    else:
        logger_instance.debug(
            "%s %s on %s (%.1fms)", store, operation, target, duration_ms, extra=extra
        )
