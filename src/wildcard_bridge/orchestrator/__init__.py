"""Orchestrator: classifier gate, agent conversation loop, and progress streaming."""

from wildcard_bridge.orchestrator.classifier import ClassifierGate, parse_classification
from wildcard_bridge.orchestrator.executor import LoopServices, describe_action, execute_task
from wildcard_bridge.orchestrator.orchestrator import Orchestrator, build_services
from wildcard_bridge.orchestrator.stream import ProgressChannel
from wildcard_bridge.orchestrator.types import (
    Classification,
    ExecutionContext,
    ProcessResult,
    ProgressEvent,
    ProgressKind,
    TaskState,
)

__all__ = [
    "Classification",
    "ClassifierGate",
    "ExecutionContext",
    "LoopServices",
    "Orchestrator",
    "ProcessResult",
    "ProgressChannel",
    "ProgressEvent",
    "ProgressKind",
    "TaskState",
    "build_services",
    "describe_action",
    "execute_task",
    "parse_classification",
]
