"""Sender metadata header and anti-spoofing sanitization.

The header is the only trusted statement of who sent a message:

    [SenderName: alice | SenderId: deadbeef | IsOwner: true | CommandAuthorized: true]

Message bodies are attacker-controlled, so any `[Key:` that imitates a header
field is rewritten to `[BLOCKED:` before the real header is prepended.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

HEADER_KEYS = ("SenderName", "SenderId", "GroupId", "GroupName", "IsOwner", "CommandAuthorized")
BLOCKED_KEY = "BLOCKED"

_SPOOF_RE = re.compile(r"\[(" + "|".join(HEADER_KEYS) + r"):", re.IGNORECASE)


@dataclass(frozen=True)
class MetadataFields:
    sender_name: str
    sender_id: str
    is_owner: bool
    command_authorized: bool
    group_id: Optional[str] = None
    group_name: Optional[str] = None


def _flag(value: bool) -> str:
    return "true" if value else "false"


def build_header(fields: MetadataFields) -> str:
    pairs: List[Tuple[str, str]] = [
        ("SenderName", fields.sender_name),
        ("SenderId", fields.sender_id),
    ]
    if fields.group_id is not None:
        pairs.append(("GroupId", fields.group_id))
        pairs.append(("GroupName", fields.group_name or fields.group_id))
    pairs.append(("IsOwner", _flag(fields.is_owner)))
    pairs.append(("CommandAuthorized", _flag(fields.command_authorized)))
    return "[" + " | ".join(f"{k}: {v}" for k, v in pairs) + "]"


def sanitize(raw_content: str) -> str:
    return _SPOOF_RE.sub(f"[{BLOCKED_KEY}:", raw_content or "")


def compose_body(header: str, raw_content: str) -> str:
    # Sanitize first; the real header must never pass through the sanitizer.
    return header + "\n" + sanitize(raw_content)
