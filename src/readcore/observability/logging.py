"""
Structured logging for ReadCore.

``configure_logging`` routes structlog events and plain stdlib records through
one handler, rendered as console text or JSON lines. Extraction traces carry
the document URI and may include serialised markup, which is clipped to
``LoggingConfig.max_markup_chars``.
"""
from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any, Dict, List, Tuple

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

if TYPE_CHECKING:
    from readcore.config.config import LoggingConfig

# Event keys whose values are serialised markup.
MARKUP_KEYS = ("html",)


def add_document_uri(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Copy the document URI bound for the running extraction onto foreign records."""
    from structlog.contextvars import get_contextvars

    uri = get_contextvars().get("document_uri")
    if uri and "document_uri" not in event_dict:
        event_dict["document_uri"] = uri
    return event_dict


class MarkupClipper:
    """Processor shortening markup payloads so one trace event stays one readable line."""

    def __init__(self, max_chars: int) -> None:
        self.max_chars = max_chars

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        if self.max_chars <= 0:
            return event_dict
        for key in MARKUP_KEYS:
            value = event_dict.get(key)
            if isinstance(value, str) and len(value) > self.max_chars:
                event_dict[key] = value[: self.max_chars] + "..."
                event_dict[f"{key}_length"] = len(value)
        return event_dict


def _shared_processors(config: LoggingConfig) -> List[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        add_document_uri,
        MarkupClipper(config.max_markup_chars),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def _handler_and_renderer(config: LoggingConfig) -> Tuple[logging.Handler, Any]:
    if config.log_file:
        return logging.FileHandler(config.log_file, encoding="utf-8"), structlog.processors.JSONRenderer()
    if config.renderer == "json":
        return logging.StreamHandler(sys.stdout), structlog.processors.JSONRenderer()
    return logging.StreamHandler(sys.stderr), structlog.dev.ConsoleRenderer(colors=False)


def configure_logging(config: LoggingConfig) -> None:
    """Install the handler and structlog pipeline described by ``config``.

    A log file always receives JSON lines. Without one, ``config.renderer``
    picks JSON on stdout or console text on stderr.
    """
    shared = _shared_processors(config)
    handler, renderer = _handler_and_renderer(config)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=shared))

    logging.basicConfig(format="%(message)s", level=config.log_level, handlers=[handler], force=True)

    structlog.configure(
        processors=shared
        + [
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    structlog.get_logger("readcore.logging").info(
        "logging_configured", level=config.log_level, output=config.log_file or config.renderer
    )


__all__ = ["MARKUP_KEYS", "MarkupClipper", "add_document_uri", "configure_logging"]
