"""Telemetry module for structured logging and trace correlation.

This module provides:
- TraceContext for request correlation
- Structured logging via structlog
- Semantic event constants
"""

from wildcard_bridge.telemetry.events import (
    AGENT_CALL_ERROR,
    AGENT_EVENT_RECEIVED,
    AGENT_PROTOCOL_VIOLATION,
    AGENT_SESSION_CREATED,
    MAX_TURNS_EXCEEDED,
    MODEL_CALL_COMPLETED,
    MODEL_CALL_ERROR,
    MODEL_CALL_STARTED,
    OPERATION_CALL_COMPLETED,
    OPERATION_CALL_FAILED,
    OPERATION_CALL_STARTED,
    ORCHESTRATOR_FATAL_ERROR,
    REPLY_READY,
    REQUEST_RECEIVED,
    STATE_TRANSITION,
    TASK_CANCELLED,
    TASK_COMPLETED,
    TASK_FAILED,
    TASK_STARTED,
    UNKNOWN_STATE,
)
from wildcard_bridge.telemetry.logger import configure_logging, get_logger
from wildcard_bridge.telemetry.trace import TraceContext

__all__ = [
    "TraceContext",
    "get_logger",
    "configure_logging",
    "REQUEST_RECEIVED",
    "REPLY_READY",
    "TASK_STARTED",
    "TASK_COMPLETED",
    "TASK_FAILED",
    "TASK_CANCELLED",
    "STATE_TRANSITION",
    "ORCHESTRATOR_FATAL_ERROR",
    "UNKNOWN_STATE",
    "MAX_TURNS_EXCEEDED",
    "MODEL_CALL_STARTED",
    "MODEL_CALL_COMPLETED",
    "MODEL_CALL_ERROR",
    "AGENT_SESSION_CREATED",
    "AGENT_EVENT_RECEIVED",
    "AGENT_CALL_ERROR",
    "AGENT_PROTOCOL_VIOLATION",
    "OPERATION_CALL_STARTED",
    "OPERATION_CALL_COMPLETED",
    "OPERATION_CALL_FAILED",
]
