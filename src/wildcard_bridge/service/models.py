"""Data models for the service layer."""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class MessageRequest(BaseModel):
    """Request to process one user message."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("user_id", "userId", "userID")
    )
    message: str = Field(..., min_length=1)


class ProcessResponse(BaseModel):
    """Synchronous processing result."""

    success: bool
    data: Any = None
    error: str | None = None
    trace_id: str | None = None


class StripeRegistrationRequest(BaseModel):
    """Request to register a user's Stripe secret key."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field("", validation_alias=AliasChoices("userId", "user_id", "userID"))
    api_key: str = Field("", validation_alias=AliasChoices("apiKey", "api_key"))


class StreamUpdate(BaseModel):
    """One server-sent event frame of the progress stream."""

    type: str
    data: dict[str, Any] = Field(default_factory=dict)

    def to_sse(self) -> str:
        return f"data: {self.model_dump_json()}\n\n"
