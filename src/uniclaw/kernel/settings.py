"""Bridge settings.

Settings are stored in ~/.uniclaw/settings.yaml (or $UNICLAW_HOME/settings.yaml):

    network: testnet
    nametag: my-agent
    owner: "@alice"
    dm_policy: allowlist
    allow_from: ["@alice", "deadbeef..."]
    group_chat: true            # or {relays: [wss://...]}
    backfill_debounce_ms: 3000
    channel:
      name: my-agent
      enabled: true

Invalid values fall back to defaults; the file is re-read on every service start.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml  # type: ignore
from pydantic import ValidationError

from ..contracts.v1.account import AccountConfig
from ..paths import settings_path

VALID_NETWORKS = ("testnet", "mainnet", "dev")
VALID_DM_POLICIES = ("open", "allowlist", "pairing", "disabled")

NAMETAG_RE = re.compile(r"^\w[\w-]{0,31}$")
PUBKEY_RE = re.compile(r"^(?:[0-9a-fA-F]{64}|[0-9a-fA-F]{66})$")

DEFAULT_BACKFILL_DEBOUNCE_MS = 3000


@dataclass
class GroupChatConfig:
    enabled: bool = True
    relays: Optional[List[str]] = None


@dataclass
class UniclawConfig:
    network: str = "testnet"
    nametag: Optional[str] = None
    owner: Optional[str] = None
    additional_relays: Optional[List[str]] = None
    api_key: Optional[str] = None
    dm_policy: Optional[str] = None
    allow_from: Optional[List[str]] = None
    group_chat: GroupChatConfig = field(default_factory=GroupChatConfig)
    backfill_debounce_ms: int = DEFAULT_BACKFILL_DEBOUNCE_MS
    log_level: str = "INFO"
    channel: AccountConfig = field(default_factory=AccountConfig)

    @property
    def backfill_debounce_seconds(self) -> float:
        return self.backfill_debounce_ms / 1000.0


def _strip_at(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    s = value.strip()
    if s.startswith("@"):
        s = s[1:]
    return s.strip() or None


def _str_list(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    return [v for v in value if isinstance(v, str)]


def _resolve_nametag(value: Any) -> Optional[str]:
    tag = _strip_at(value)
    if tag and NAMETAG_RE.match(tag):
        return tag
    return None


def _resolve_owner(value: Any) -> Optional[str]:
    """Owner may be a nametag or a raw hex pubkey."""
    owner = _strip_at(value)
    if not owner:
        return None
    if NAMETAG_RE.match(owner) or PUBKEY_RE.match(owner):
        return owner
    return None


def _resolve_group_chat(value: Any) -> GroupChatConfig:
    if value is False:
        return GroupChatConfig(enabled=False)
    if isinstance(value, dict):
        return GroupChatConfig(enabled=True, relays=_str_list(value.get("relays")))
    return GroupChatConfig(enabled=True)


def _resolve_debounce_ms(value: Any) -> int:
    if isinstance(value, bool):
        return DEFAULT_BACKFILL_DEBOUNCE_MS
    try:
        ms = int(value)
    except (TypeError, ValueError):
        return DEFAULT_BACKFILL_DEBOUNCE_MS
    return ms if ms > 0 else DEFAULT_BACKFILL_DEBOUNCE_MS


def _resolve_channel(value: Any) -> AccountConfig:
    if not isinstance(value, dict):
        return AccountConfig()
    data = dict(value)
    if data.get("dm_policy") not in VALID_DM_POLICIES:
        data.pop("dm_policy", None)
    data["allow_from"] = _str_list(data.get("allow_from")) or []
    if not isinstance(data.get("enabled"), bool):
        data.pop("enabled", None)
    for key in ("name", "nametag"):
        if not isinstance(data.get(key), str):
            data.pop(key, None)
    try:
        return AccountConfig.model_validate(data)
    except ValidationError:
        return AccountConfig()


def resolve_config(raw: Optional[Dict[str, Any]]) -> UniclawConfig:
    """Normalize a raw settings mapping into UniclawConfig."""
    cfg = raw if isinstance(raw, dict) else {}

    network = cfg.get("network")
    dm_policy = cfg.get("dm_policy")
    api_key = cfg.get("api_key")
    log_level = cfg.get("log_level")

    return UniclawConfig(
        network=network if network in VALID_NETWORKS else "testnet",
        nametag=_resolve_nametag(cfg.get("nametag")),
        owner=_resolve_owner(cfg.get("owner")),
        additional_relays=_str_list(cfg.get("additional_relays")),
        api_key=api_key if isinstance(api_key, str) and api_key.strip() else None,
        dm_policy=dm_policy if dm_policy in VALID_DM_POLICIES else None,
        allow_from=_str_list(cfg.get("allow_from")),
        group_chat=_resolve_group_chat(cfg.get("group_chat")),
        backfill_debounce_ms=_resolve_debounce_ms(cfg.get("backfill_debounce_ms", DEFAULT_BACKFILL_DEBOUNCE_MS)),
        log_level=log_level.strip().upper() if isinstance(log_level, str) and log_level.strip() else "INFO",
        channel=_resolve_channel(cfg.get("channel")),
    )


def load_settings() -> Dict[str, Any]:
    """Load raw settings from settings.yaml."""
    p = settings_path()
    if not p.exists():
        return {}
    try:
        doc = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        return doc if isinstance(doc, dict) else {}
    except Exception:
        return {}


def load_config() -> UniclawConfig:
    """Read settings.yaml fresh and resolve it."""
    return resolve_config(load_settings())
