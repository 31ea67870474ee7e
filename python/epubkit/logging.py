"""Structured logging configuration using structlog.

Provides JSON-formatted logs with consistent context including:
- archive: Name of the archive being parsed (when available)
- manifest_id: Manifest item being retrieved or rewritten (when available)
- timestamp: ISO8601 formatted timestamp

Usage:
    from epubkit.logging import get_logger, configure_logging

    # Configure once at startup
    configure_logging()

    # Get a logger for a module
    logger = get_logger(__name__)
    logger.info("something_happened", extra_field="value")
"""

import logging
import sys
from contextvars import ContextVar, Token

import structlog

from epubkit.config import get_settings

# Context variables for parse-scoped logging
archive_var: ContextVar[str | None] = ContextVar("archive", default=None)
manifest_id_var: ContextVar[str | None] = ContextVar("manifest_id", default=None)


def add_epub_context(logger: logging.Logger, method_name: str, event_dict: dict) -> dict:
    """Add archive context to all log entries.

    Injects all non-None ContextVar values into the log event dict.
    """
    archive = archive_var.get()
    manifest_id = manifest_id_var.get()

    if archive:
        event_dict.setdefault("archive", archive)
    if manifest_id:
        event_dict.setdefault("manifest_id", manifest_id)

    return event_dict


def configure_logging(json_format: bool | None = None) -> None:
    """Configure structlog for the library.

    Args:
        json_format: If True, output JSON logs. If False, output console-friendly logs.
            Defaults to the EPUBKIT_LOG_JSON setting.
    """
    if json_format is None:
        json_format = get_settings().log_json

    # Shared processors for both stdlib and structlog loggers
    shared_processors = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_epub_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Configure stdlib logging to use structlog formatting
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.INFO)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger for the given name.

    Args:
        name: Logger name (typically __name__).

    Returns:
        A bound structlog logger.
    """
    return structlog.get_logger(name)


def set_archive_context(archive: str | None) -> Token:
    """Set the archive name for the current parse.

    Args:
        archive: Archive file name or other caller-chosen label.

    Returns:
        Token for restoring the previous value with reset_archive_context().
    """
    return archive_var.set(archive)


def reset_archive_context(token: Token) -> None:
    """Restore the archive name that was bound before set_archive_context()."""
    archive_var.reset(token)


def set_manifest_id(manifest_id: str | None) -> Token:
    """Set the manifest id for the current retrieval."""
    return manifest_id_var.set(manifest_id)


def reset_manifest_id(token: Token) -> None:
    manifest_id_var.reset(token)


def clear_archive_context() -> None:
    """Clear all parse-scoped context."""
    archive_var.set(None)
    manifest_id_var.set(None)
