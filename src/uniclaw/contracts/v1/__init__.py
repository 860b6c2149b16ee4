from __future__ import annotations

from .account import AccountConfig, ChannelStatus, DmPolicy, DmPolicyResolution, ResolvedAccount
from .context import CHANNEL_ID, ChatType, DeliveryInfo, DeliveryKind, InboundContext, ReplyPayload
from .message import (
    DirectMessage,
    GroupInfo,
    GroupLifecycleEvent,
    GroupMember,
    GroupMessage,
    IncomingPaymentRequest,
    IncomingTransfer,
    SphereIdentity,
    TokenAmount,
)

__all__ = [
    "AccountConfig",
    "CHANNEL_ID",
    "ChannelStatus",
    "ChatType",
    "DeliveryInfo",
    "DeliveryKind",
    "DirectMessage",
    "DmPolicy",
    "DmPolicyResolution",
    "GroupInfo",
    "GroupLifecycleEvent",
    "GroupMember",
    "GroupMessage",
    "InboundContext",
    "IncomingPaymentRequest",
    "IncomingTransfer",
    "ReplyPayload",
    "ResolvedAccount",
    "SphereIdentity",
    "TokenAmount",
]
