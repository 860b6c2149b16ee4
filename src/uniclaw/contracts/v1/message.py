"""Provider-side records delivered by the Sphere SDK port.

These are read-only from the bridge's point of view. `sender_pubkey` is the
protocol-native identity (relay transport key), which can differ in length and
encoding from the wallet's chain pubkey.
"""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DirectMessage(BaseModel):
    id: Optional[str] = None
    sender_pubkey: str
    sender_nametag: Optional[str] = None
    content: str = ""
    timestamp: int = 0  # epoch ms

    model_config = ConfigDict(extra="allow")


class GroupMessage(BaseModel):
    id: Optional[str] = None
    group_id: str
    sender_pubkey: str
    sender_nametag: Optional[str] = None
    content: str = ""
    timestamp: int = 0  # epoch ms
    reply_to_id: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class TokenAmount(BaseModel):
    coin_id: str
    symbol: Optional[str] = None
    amount: str  # smallest unit, as a decimal string
    decimals: Optional[int] = None

    model_config = ConfigDict(extra="allow")


class IncomingTransfer(BaseModel):
    id: str
    sender_pubkey: str
    sender_nametag: Optional[str] = None
    tokens: List[TokenAmount] = Field(default_factory=list)
    memo: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class IncomingPaymentRequest(BaseModel):
    request_id: str
    sender_pubkey: str
    sender_nametag: Optional[str] = None
    coin_id: str
    symbol: Optional[str] = None
    amount: str
    decimals: Optional[int] = None
    message: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class GroupInfo(BaseModel):
    id: str
    name: str = ""
    visibility: Optional[str] = None
    member_count: Optional[int] = None

    model_config = ConfigDict(extra="allow")


class GroupMember(BaseModel):
    pubkey: str
    nametag: Optional[str] = None
    role: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class GroupLifecycleEvent(BaseModel):
    """group:joined / group:left / group:kicked payload."""

    group_id: str
    group_name: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class SphereIdentity(BaseModel):
    """Wallet identity as reported by the SDK (chain-level keys)."""

    chain_pubkey: Optional[str] = None
    nametag: Optional[str] = None
    l1_address: Optional[str] = None

    model_config = ConfigDict(extra="allow")
