"""Pydantic schemas for the chat endpoint."""

from typing import Any, Literal

from pydantic import BaseModel, Field

ChatIntent = Literal["grant_search", "show_grants", "status_update", "profile_update", "conversation"]


class ChatMessage(BaseModel):
    """One message of the conversation."""

    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """Request body for a chat turn."""

    messages: list[ChatMessage] = Field(..., min_length=1)


class ChatResponse(BaseModel):
    """Reply for a chat turn."""

    content: str
    intent: ChatIntent = "conversation"
    profile_updated: bool = False
    active_profile: dict[str, Any] | None = None
    warnings: list[str] = Field(default_factory=list)
