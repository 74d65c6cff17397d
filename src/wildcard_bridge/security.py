"""Security utilities for preventing information disclosure."""

import re

_SECRET_KEY_PATTERN = re.compile(r"\b(sk|rk|pk)_(live|test)_[0-9A-Za-z]+")
_BEARER_PATTERN = re.compile(r"(Bearer\s+)[^\s\"']+", re.IGNORECASE)


def redact_secrets(text: str) -> str:
    """Mask API keys and bearer tokens in text that may reach users or logs.

    Args:
        text: Arbitrary error or log text.

    Returns:
        Text with Stripe-style keys and bearer tokens replaced.
    """
    text = _SECRET_KEY_PATTERN.sub(lambda m: f"{m.group(1)}_{m.group(2)}_[redacted]", text)
    return _BEARER_PATTERN.sub(r"\1[redacted]", text)


def sanitize_error_message(error: Exception) -> str:
    """Create a user-friendly message for an unexpected internal error.

    Used only where an exception escaped every typed error path; typed
    transport and action errors keep their own (redacted) text.

    Args:
        error: The exception that occurred

    Returns:
        A sanitized, user-friendly error message
    """
    error_type = type(error).__name__
    error_str = str(error)

    error_str = re.sub(r"/[^\s]+", "[path]", error_str)
    error_str = re.sub(r"0x[0-9a-fA-F]+", "[address]", error_str)

    if "Connection" in error_type or "connection" in error_str.lower():
        return "Unable to reach an upstream service. Please try again in a moment."
    elif "Timeout" in error_type or "timeout" in error_str.lower():
        return "The request took too long to process. Please try again."
    elif "Validation" in error_type or "validation" in error_str.lower():
        return "Invalid request format. Please check your input and try again."
    else:
        return "An error occurred while processing your request. Please try again."
