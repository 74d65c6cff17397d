"""Dispatch and argument marshaling for transactional API operations."""

from wildcard_bridge.operations.errors import (
    ActionError,
    ArgumentShapeInvalid,
    CredentialResolutionFailed,
    UnknownOperation,
    UpstreamCallFailed,
)
from wildcard_bridge.operations.executor import ClientFactory, OperationExecutor
from wildcard_bridge.operations.marshaling import marshal_arguments
from wildcard_bridge.operations.registry import OperationRegistry
from wildcard_bridge.operations.stripe_operations import (
    build_stripe_registry,
    stripe_client_factory,
)
from wildcard_bridge.operations.types import (
    ActionResult,
    FieldSpec,
    OperationDefinition,
    OperationRequest,
)

__all__ = [
    "ActionError",
    "ActionResult",
    "ArgumentShapeInvalid",
    "ClientFactory",
    "CredentialResolutionFailed",
    "FieldSpec",
    "OperationDefinition",
    "OperationExecutor",
    "OperationRegistry",
    "OperationRequest",
    "UnknownOperation",
    "UpstreamCallFailed",
    "build_stripe_registry",
    "marshal_arguments",
    "stripe_client_factory",
]
