"""Owner trust resolution.

The owner is a single configured identity (nametag or raw pubkey). A sender is
the owner when its pubkey or its resolved nametag matches, case-insensitively
and ignoring one leading "@".

Known gap: when the owner is configured as a nametag and the provider event
carries no resolved nametag (only a pubkey derived by a different client key
scheme), the real owner is not recognized. No registry lookup is attempted.
"""
from __future__ import annotations

from typing import Optional


def normalize_identity(value: Optional[str]) -> str:
    s = str(value or "")
    if s.startswith("@"):
        s = s[1:]
    return s.lower()


class OwnerTrust:
    """Immutable owner identity for one listening session."""

    def __init__(self, owner: Optional[str] = None):
        normalized = normalize_identity((owner or "").strip())
        self._owner: Optional[str] = normalized or None
        self._raw = owner if self._owner else None

    @property
    def owner(self) -> Optional[str]:
        """The configured owner as given (None when unset)."""
        return self._raw

    @property
    def configured(self) -> bool:
        return self._owner is not None

    def is_owner(self, sender_pubkey: str, sender_nametag: Optional[str] = None) -> bool:
        if self._owner is None:
            return False
        if normalize_identity(sender_pubkey) == self._owner:
            return True
        if sender_nametag and normalize_identity(sender_nametag) == self._owner:
            return True
        return False
