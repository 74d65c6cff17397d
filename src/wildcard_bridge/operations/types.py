"""Type definitions for the operation dispatch layer.

This module defines the Pydantic models for operation definitions, their
declarative argument schemas, and results used by the OperationExecutor.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Literal

from pydantic import BaseModel, Field

FieldType = Literal[
    "string",
    "integer",
    "number",
    "boolean",
    "string_array",
    "string_map",
    "object",
    "object_array",
]


class FieldSpec(BaseModel):
    """One declared field of an operation's request shape.

    ``object`` and ``object_array`` fields carry their nested ``fields``.
    A ``path`` field is the ID of the object the call addresses; it is passed
    positionally and never appears in the request params.
    """

    name: str = Field(..., description="Field name as sent by the agent")
    type: FieldType = Field(..., description="Declared field type")
    required: bool = Field(False, description="Whether the field must be present")
    path: bool = Field(False, description="Positional object ID rather than a request param")
    description: str = Field("", description="Human-readable description")
    fields: list["FieldSpec"] = Field(
        default_factory=list, description="Nested fields for object/object_array"
    )


class OperationDefinition(BaseModel):
    """Declarative description of one transactional operation."""

    operation_id: str = Field(..., description="Symbolic ID used by the remote agent")
    namespace: str = Field("stripe", description="Provider the operation belongs to")
    description: str = Field(..., description="What the operation does")
    fields: list[FieldSpec] = Field(default_factory=list, description="Request shape")
    accepts_metadata: bool = Field(False, description="Whether `metadata` is accumulated")
    accepts_expand: bool = Field(True, description="Whether `expand` is accumulated")
    paginated: bool = Field(False, description="Whether the call returns a page iterator")
    credential_scope: str = Field(
        "stripe_secret_key",
        description="Kind of credential the call needs; checked when the client is bound",
    )
    aliases: list[str] = Field(default_factory=list, description="Alternative operation IDs")

    @property
    def required_fields(self) -> list[str]:
        """Names of required top-level fields."""
        return [f.name for f in self.fields if f.required]


@dataclass
class OperationRequest:
    """Typed request assembled from generic agent arguments.

    Attributes:
        path_args: Positional object IDs keyed by field name.
        params: Request params shaped per the operation's schema, including
            accumulated ``metadata`` and ``expand``.
        skipped: Dotted paths of present-but-mistyped values left unset.
        unknown: Top-level argument names not declared by the operation.
    """

    path_args: dict[str, str] = field(default_factory=dict)
    params: dict[str, Any] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)
    unknown: list[str] = field(default_factory=list)

    def path(self, name: str) -> str:
        """Return a positional ID (presence is guaranteed by marshaling)."""
        return self.path_args[name]


Invoker = Callable[[Any, OperationRequest], Any]
"""Calls the provider client with an assembled request: ``invoke(client, request)``."""


class ActionResult(BaseModel):
    """Result of executing one action request."""

    operation_id: str = Field(..., description="Requested operation ID")
    success: bool = Field(..., description="Whether execution succeeded")
    output: Any = Field(None, description="One object or an ordered list of objects")
    error: str | None = Field(None, description="Error message if failed")
    error_type: str | None = Field(None, description="ActionError subclass name if failed")
    latency_ms: float = Field(0.0, ge=0, description="Execution latency in milliseconds")
