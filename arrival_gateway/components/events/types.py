"""
Message Value Objects for the WebSocket Gateway.

Inbound frames are decoded exactly once into a discriminated union keyed on
``type``. Anything that does not decode (bad JSON, unknown ``type``,
missing or mistyped field) raises a ``FrameError`` subclass; the router
logs it and drops the frame.

Outbound messages are pydantic models serialized with the camelCase field
names the front-end expects.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, TypeAdapter, ValidationError

from arrival_gateway.components.core.constants import MessageType

NonEmptyStr = Annotated[StrictStr, Field(min_length=1)]


# =============================================================================
# Errors
# =============================================================================


class FrameError(Exception):
    """Base class for frames that cannot be routed."""

    reason = "invalid_frame"


class FrameParseError(FrameError):
    """Frame is not UTF-8 JSON."""

    reason = "parse_error"


class FrameValidationError(FrameError):
    """Frame is JSON but not a known message shape."""

    reason = "validation_error"

    def __init__(self, message: str, errors: list[dict] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


# =============================================================================
# Inbound messages
# =============================================================================


class _InboundMessage(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class RegisterRecipientMessage(_InboundMessage):
    """A connection announces it belongs to a recipient."""

    type: Literal[MessageType.REGISTER_RECIPIENT, MessageType.REGISTER_RECIPIENT_LEGACY]
    name: NonEmptyStr


class RegisterObserverMessage(_InboundMessage):
    """A front-desk connection asks for presence updates and confirmations."""

    type: Literal[MessageType.REGISTER_OBSERVER, MessageType.REGISTER_OBSERVER_LEGACY]


class NotifyMessage(_InboundMessage):
    """Front desk announces an arrival for a recipient."""

    type: Literal[MessageType.NOTIFY]
    recipient: NonEmptyStr = Field(alias="therapist")
    display_name: StrictStr = Field(default="", alias="clientName")
    voice_enabled: StrictBool = Field(default=False, alias="voiceEnabled")


InboundMessage = Annotated[
    Union[RegisterRecipientMessage, RegisterObserverMessage, NotifyMessage],
    Field(discriminator="type"),
]

_inbound_adapter: TypeAdapter[InboundMessage] = TypeAdapter(InboundMessage)


def decode_message(raw: str | bytes) -> RegisterRecipientMessage | RegisterObserverMessage | NotifyMessage:
    """
    Decode one inbound frame.

    Args:
        raw: Text frame, or binary frame holding UTF-8 JSON.

    Returns:
        The decoded message variant.

    Raises:
        FrameParseError: Frame is not valid UTF-8 JSON, or nests too deeply.
        FrameValidationError: Frame does not match any message shape.
    """
    try:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        data = json.loads(raw)
    except (ValueError, RecursionError) as e:
        # ValueError covers UnicodeDecodeError and JSONDecodeError;
        # RecursionError is raised for deeply nested arrays or objects
        raise FrameParseError(str(e)) from e

    try:
        return _inbound_adapter.validate_python(data)
    except ValidationError as e:
        raise FrameValidationError(
            f"{e.error_count()} validation error(s)",
            errors=e.errors(include_url=False, include_input=False),
        ) from e


# =============================================================================
# Outbound messages
# =============================================================================


class _OutboundMessage(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_frame(self) -> str:
        """Serialize to a compact JSON text frame."""
        return self.model_dump_json(by_alias=True)


class OnlineListMessage(_OutboundMessage):
    """Presence snapshot."""

    type: Literal["online-list"] = MessageType.ONLINE_LIST
    online: list[str]


class ArrivalMessage(_OutboundMessage):
    """Directed delivery to a recipient's connections."""

    type: Literal["arrival"] = MessageType.ARRIVAL
    id: str
    recipient: str = Field(serialization_alias="therapist")
    display_name: str = Field(serialization_alias="clientName")
    voice_enabled: bool = Field(serialization_alias="voiceEnabled")
    time: str


class NotifyConfirmedMessage(_OutboundMessage):
    """Echo of a routed notification to every observer."""

    type: Literal["notify-confirmed"] = MessageType.NOTIFY_CONFIRMED
    recipient: str = Field(serialization_alias="therapist")
    display_name: str = Field(serialization_alias="clientName")
    time: str


# =============================================================================
# Notification
# =============================================================================


def utc_timestamp(now: datetime | None = None) -> str:
    """
    ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix.

    Matches the ``Date.toISOString()`` format browsers parse natively.
    """
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Notification:
    """
    An arrival announcement, built by the server at notify time.

    The id is for display and de-duplication on the receiving screen; the
    server does not enforce uniqueness. The timestamp is always server time.
    """

    id: str
    recipient: str
    display_name: str
    voice_enabled: bool
    time: str

    @classmethod
    def from_message(cls, message: NotifyMessage) -> "Notification":
        return cls(
            id=str(uuid.uuid4()),
            recipient=message.recipient,
            display_name=message.display_name,
            voice_enabled=message.voice_enabled,
            time=utc_timestamp(),
        )

    def to_arrival(self) -> ArrivalMessage:
        return ArrivalMessage(
            id=self.id,
            recipient=self.recipient,
            display_name=self.display_name,
            voice_enabled=self.voice_enabled,
            time=self.time,
        )

    def to_confirmation(self) -> NotifyConfirmedMessage:
        return NotifyConfirmedMessage(
            recipient=self.recipient,
            display_name=self.display_name,
            time=self.time,
        )
