"""Account resolution, DM policy and target helpers.

There is a single account ("default"); it is configured once the wallet
identity is available.
"""
from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from ..contracts.v1.account import ChannelStatus, DmPolicyResolution, ResolvedAccount
from ..contracts.v1.message import SphereIdentity
from .settings import UniclawConfig

DEFAULT_ACCOUNT_ID = "default"

_TARGET_NAMETAG_RE = re.compile(r"^@?\w[\w-]{0,31}$")
_TARGET_PUBKEY_RE = re.compile(r"^[0-9a-fA-F]{64}$")


def list_account_ids(_config: Optional[UniclawConfig] = None) -> List[str]:
    # Always report the default account so the host tries to start it.
    return [DEFAULT_ACCOUNT_ID]


def resolve_account(
    config: UniclawConfig,
    identity: Optional[SphereIdentity] = None,
    account_id: Optional[str] = None,
) -> ResolvedAccount:
    channel = config.channel.model_copy(deep=True)
    # Top-level dm settings apply when the channel block leaves them unset.
    if channel.dm_policy is None and config.dm_policy:
        channel.dm_policy = config.dm_policy  # type: ignore[assignment]
    if not channel.allow_from and config.allow_from:
        channel.allow_from = list(config.allow_from)

    name = (channel.name or "").strip() or None
    public_key = (identity.chain_pubkey if identity is not None else None) or ""
    nametag = (identity.nametag if identity is not None else None) or channel.nametag or config.nametag

    return ResolvedAccount(
        account_id=account_id or DEFAULT_ACCOUNT_ID,
        name=name,
        enabled=channel.enabled is not False,
        configured=bool(public_key),
        public_key=public_key,
        nametag=nametag,
        config=channel,
    )


def describe_account(account: ResolvedAccount) -> Dict[str, Any]:
    return {
        "account_id": account.account_id,
        "name": account.name,
        "enabled": account.enabled,
        "configured": account.configured,
        "public_key": account.public_key or None,
        "nametag": account.nametag,
    }


def resolve_dm_policy(account: ResolvedAccount) -> DmPolicyResolution:
    return DmPolicyResolution(
        policy=account.config.dm_policy or "open",
        allow_from=list(account.config.allow_from),
        policy_path="channel.dm_policy",
        allow_from_path="channel.allow_from",
        approve_hint='Add the sender to channel.allow_from in settings.yaml, e.g. allow_from: ["<pubkey-or-nametag>"]',
    )


def normalize_target(target: str) -> str:
    return str(target or "").strip().lstrip("@").strip()


def looks_like_id(value: str) -> bool:
    """Nametag (optionally @-prefixed) or 64-char hex pubkey."""
    s = str(value or "").strip()
    return bool(_TARGET_NAMETAG_RE.match(s) or _TARGET_PUBKEY_RE.match(s))


def build_account_snapshot(account: ResolvedAccount, runtime: Optional[Dict[str, Any]] = None) -> ChannelStatus:
    rt = runtime or {}
    return ChannelStatus(
        account_id=account.account_id,
        name=account.name,
        enabled=account.enabled,
        configured=account.configured,
        public_key=account.public_key or None,
        nametag=account.nametag,
        running=bool(rt.get("running", False)),
        last_start_at=rt.get("last_start_at"),
        last_stop_at=rt.get("last_stop_at"),
        last_error=rt.get("last_error"),
        active_subscriptions=int(rt.get("active_subscriptions") or 0),
    )
