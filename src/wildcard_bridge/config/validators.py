"""Custom Pydantic validators for configuration."""

from pathlib import Path


def validate_log_level(value: str) -> str:
    """Validate log level is one of the standard levels.

    Args:
        value: Log level string.

    Returns:
        Validated log level.

    Raises:
        ValueError: If log level is not valid.
    """
    valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if value.upper() not in valid_levels:
        raise ValueError(f"log_level must be one of {valid_levels}, got {value}")
    return value.upper()


def validate_log_format(value: str) -> str:
    """Validate log format is 'json' or 'console'."""
    valid_formats = {"json", "console"}
    if value.lower() not in valid_formats:
        raise ValueError(f"log_format must be one of {valid_formats}, got {value}")
    return value.lower()


def validate_base_url(value: str) -> str:
    """Validate an upstream base URL and strip its trailing slash.

    Args:
        value: URL string from configuration.

    Returns:
        URL without trailing slash.

    Raises:
        ValueError: If the URL is not http(s).
    """
    if not value.startswith(("http://", "https://")):
        raise ValueError(f"base URL must start with http:// or https://, got {value}")
    return value.rstrip("/")


def resolve_path(value: Path | str) -> Path:
    """Resolve relative paths against the project root."""
    path = Path(value) if isinstance(value, str) else value

    if not path.is_absolute():
        # src/wildcard_bridge/config -> project root
        project_root = Path(__file__).parent.parent.parent.parent
        path = (project_root / path).resolve()
    else:
        path = path.resolve()

    return path
