from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict


CHANNEL_ID = "uniclaw"

ChatType = Literal["direct", "group"]
DeliveryKind = Literal["tool", "block", "final"]


class InboundContext(BaseModel):
    """Normalized envelope handed to the reply pipeline."""

    # Composed body: metadata header + sanitized content
    body: str
    raw_body: str

    # Routing
    from_id: str
    to: str
    session_key: str
    chat_type: ChatType
    surface: str = CHANNEL_ID
    provider: str = CHANNEL_ID
    account_id: str = "default"
    originating_channel: str = CHANNEL_ID
    originating_to: str

    # Sender + trust
    sender_name: str
    sender_id: str
    is_owner: bool = False
    command_authorized: bool = False

    # Group-only
    group_id: Optional[str] = None
    group_name: Optional[str] = None
    was_mentioned: Optional[bool] = None

    message_id: Optional[str] = None
    reply_to_id: Optional[str] = None
    timestamp: Optional[int] = None

    model_config = ConfigDict(extra="forbid", frozen=True)


class ReplyPayload(BaseModel):
    text: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class DeliveryInfo(BaseModel):
    kind: DeliveryKind = "final"

    model_config = ConfigDict(extra="allow")
