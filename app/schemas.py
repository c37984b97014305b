"""Pydantic schemas for voice responses and the HTTP API layer."""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from storage.config_store import normalize_host


class OutcomeKind(str, Enum):
    """Terminal classification of a voice session."""

    success = "success"
    declined = "declined"
    failed = "failed"


class UserMessage(BaseModel):
    """Text shown on the assistant canvas and the text it speaks."""

    display: str
    spoken: str

    @classmethod
    def same(cls, text: str) -> "UserMessage":
        return cls(display=text, spoken=text)


class ContentTile(BaseModel):
    """A title plus one line of text, rendered as a card under the reply."""

    title: str
    text: str
    image: Optional[str] = Field(
        default=None, description="Icon shown beside the tile, relative to the host's assets."
    )


class VoiceResponse(BaseModel):
    """A single turn handed to the assistant host."""

    message: UserMessage
    tiles: List[ContentTile] = Field(default_factory=list, max_length=10)
    app_launch_argument: Optional[str] = None


class ConfirmationPrompt(BaseModel):
    """A confirm/deny turn with a distinct re-prompt."""

    prompt: UserMessage
    reprompt: UserMessage
    tiles: List[ContentTile] = Field(default_factory=list)


class SessionOutcome(BaseModel):
    """The one final response a session reported."""

    kind: OutcomeKind
    response: VoiceResponse

    model_config = {"frozen": True}


class DeviceHostSettings(BaseModel):
    """Payload for reading and updating the device host address."""

    host: str = Field(..., description="IP address or hostname of the storeroom device.")

    @field_validator("host")
    @classmethod
    def _normalize_host(cls, value: str) -> str:
        return normalize_host(value)


class CommandMessage(BaseModel):
    """First frame a voice front-end sends over the session socket."""

    type: Literal["command"]
    name: str
    properties: Dict[str, List[str]] = Field(default_factory=dict)


class ConfirmationMessage(BaseModel):
    """The user's reply to a confirmation prompt."""

    type: Literal["confirmation"]
    confirmed: bool
