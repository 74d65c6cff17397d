"""Structured logging configuration using structlog.

This module configures structlog for structured logging with:
- JSON lines written to a rotating file
- Console output on stderr (pretty or JSON, per APP_LOG_FORMAT)
- UTC timestamps
- Component tracking derived from the logger name
"""

import logging
import logging.handlers
import pathlib
import sys
from datetime import datetime, timezone
from typing import Any

import structlog


def _get_log_level() -> str:
    """Get log level from the environment (settings may still be importing)."""
    from wildcard_bridge.config.bootstrap import get_bootstrap_log_level  # noqa: PLC0415

    return get_bootstrap_log_level()


def _get_log_dir() -> pathlib.Path:
    """Get log directory path."""
    try:
        from wildcard_bridge.config.settings import get_settings  # noqa: PLC0415

        return pathlib.Path(str(get_settings().log_dir))
    except Exception:
        # Settings unavailable (e.g. invalid env during startup): fall back to project root
        project_root = pathlib.Path(__file__).parent.parent.parent.parent
        return project_root / "telemetry" / "logs"


def _console_renders_json() -> bool:
    from wildcard_bridge.config.bootstrap import get_bootstrap_log_format  # noqa: PLC0415

    return get_bootstrap_log_format() == "json"


def _add_timestamp(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add UTC timestamp to log event."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _add_component(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add component name to a foreign (stdlib) log event.

    The component is the last dotted part of the logger name, e.g.
    "wildcard_bridge.orchestrator.loop" -> "loop".
    """
    # Guard against None logger (third-party libraries during shutdown)
    if logger is None or not hasattr(logger, "name"):
        event_dict["component"] = "unknown"
        return event_dict

    event_dict["component"] = logger.name.split(".")[-1]
    return event_dict


def _add_component_from_event_dict(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add component name from the logger name structlog put in event_dict."""
    logger_name = event_dict.get("logger", "")
    event_dict["component"] = logger_name.split(".")[-1] if logger_name else "unknown"
    return event_dict


def _foreign_pre_chain() -> list[Any]:
    return [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _add_timestamp,
        _add_component,
    ]


def _configure_file_handler(log_dir: pathlib.Path) -> logging.handlers.RotatingFileHandler:
    """Configure rotating file handler for JSON logs."""
    log_dir.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        filename=str(log_dir / "current.jsonl"),
        maxBytes=50 * 1024 * 1024,  # 50 MB
        backupCount=5,
        encoding="utf-8",
    )
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=_foreign_pre_chain(),
        )
    )
    return handler


def _configure_console_handler() -> logging.StreamHandler[Any]:
    """Configure console handler (pretty-printed unless APP_LOG_FORMAT=json)."""
    handler = logging.StreamHandler(sys.stderr)
    renderer: Any = (
        structlog.processors.JSONRenderer()
        if _console_renders_json()
        else structlog.dev.ConsoleRenderer(colors=True)
    )
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=_foreign_pre_chain(),
        )
    )
    return handler


def configure_logging() -> None:
    """Configure structlog for structured logging.

    Call once at application startup; get_logger() calls it lazily otherwise.
    """
    log_level = _get_log_level()
    log_dir = _get_log_dir()

    # Root logger accepts all levels; individual handlers gate output.
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    # Silence noisy third-party loggers.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("stripe").setLevel(logging.WARNING)

    configured_level = getattr(logging, log_level, logging.INFO)

    # File handler captures INFO+ (telemetry events) regardless of user config
    try:
        file_handler = _configure_file_handler(log_dir)
    except OSError:
        file_handler = None
    if file_handler is not None:
        file_handler.setLevel(logging.INFO)
        root_logger.addHandler(file_handler)

    console_handler = _configure_console_handler()
    console_handler.setLevel(configured_level)
    root_logger.addHandler(console_handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            _add_component_from_event_dict,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:  # Returns structlog.stdlib.BoundLogger
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module).

    Returns:
        Configured structlog logger instance.

    Example:
        >>> from wildcard_bridge.telemetry import get_logger
        >>> log = get_logger(__name__)
        >>> log.info("operation_call_started", operation_id="stripe_get_balance")
    """
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(name)
