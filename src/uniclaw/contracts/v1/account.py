from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


DmPolicy = Literal["open", "allowlist", "pairing", "disabled"]


class AccountConfig(BaseModel):
    """`channel:` block of settings.yaml."""

    enabled: Optional[bool] = None
    name: Optional[str] = None
    nametag: Optional[str] = None
    dm_policy: Optional[DmPolicy] = None
    allow_from: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class ResolvedAccount(BaseModel):
    account_id: str = "default"
    name: Optional[str] = None
    enabled: bool = True
    configured: bool = False
    public_key: str = ""
    nametag: Optional[str] = None
    config: AccountConfig = Field(default_factory=AccountConfig)

    model_config = ConfigDict(extra="forbid")


class DmPolicyResolution(BaseModel):
    """Resolved DM access policy. Enforced by the host, exposed unchanged here."""

    policy: DmPolicy = "open"
    allow_from: List[str] = Field(default_factory=list)
    policy_path: str = "channel.dm_policy"
    allow_from_path: str = "channel.allow_from"
    approve_hint: str = ""

    model_config = ConfigDict(extra="forbid")


class ChannelStatus(BaseModel):
    account_id: str = "default"
    name: Optional[str] = None
    enabled: bool = True
    configured: bool = False
    public_key: Optional[str] = None
    nametag: Optional[str] = None
    running: bool = False
    last_start_at: Optional[float] = None
    last_stop_at: Optional[float] = None
    last_error: Optional[str] = None
    active_subscriptions: int = 0

    model_config = ConfigDict(extra="forbid")
