"""Semantic event constants for structured logging.

All log events should use these constants rather than magic strings to ensure
consistency and enable reliable querying and analysis.
"""

# Request lifecycle
REQUEST_RECEIVED = "request_received"
REPLY_READY = "reply_ready"
TASK_STARTED = "task_started"
TASK_COMPLETED = "task_completed"
TASK_FAILED = "task_failed"
STATE_TRANSITION = "state_transition"
ORCHESTRATOR_FATAL_ERROR = "orchestrator_fatal_error"
UNKNOWN_STATE = "unknown_state"
MAX_TURNS_EXCEEDED = "max_turns_exceeded"
TASK_CANCELLED = "task_cancelled"

# Classifier model events
MODEL_CALL_STARTED = "model_call_started"
MODEL_CALL_COMPLETED = "model_call_completed"
MODEL_CALL_ERROR = "model_call_error"
CLASSIFICATION_COMPLETED = "classification_completed"
CLASSIFICATION_PARSE_FALLBACK = "classification_parse_fallback"
SUMMARY_GENERATED = "summary_generated"

# Remote agent events
AGENT_SESSION_CREATED = "agent_session_created"
AGENT_EVENT_RECEIVED = "agent_event_received"
AGENT_CALL_ERROR = "agent_call_error"
AGENT_PROTOCOL_VIOLATION = "agent_protocol_violation"

# Operation execution events
OPERATION_CALL_STARTED = "operation_call_started"
OPERATION_CALL_COMPLETED = "operation_call_completed"
OPERATION_CALL_FAILED = "operation_call_failed"
OPERATION_REGISTERED = "operation_registered"
ARGUMENT_FIELD_SKIPPED = "argument_field_skipped"
ARGUMENT_UNKNOWN_FIELDS = "argument_unknown_fields"

# Credential events
CREDENTIAL_REGISTERED = "credential_registered"
CREDENTIAL_REMOVED = "credential_removed"
CREDENTIAL_MISSING = "credential_missing"

# Streaming events
STREAM_OPENED = "stream_opened"
STREAM_CLOSED = "stream_closed"
STREAM_CANCELLED = "stream_cancelled"
STREAM_EVENT_DROPPED = "stream_event_dropped"
