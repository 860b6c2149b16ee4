"""
Base class for the Sphere SDK port.

The wallet/identity SDK owns relay connectivity, signing and payments. The
bridge only needs the calls below; a concrete adapter wraps the real SDK.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

from ....contracts.v1.message import (
    DirectMessage,
    GroupInfo,
    GroupMember,
    GroupMessage,
    SphereIdentity,
)

Unsubscribe = Callable[[], None]

# Event names passed to subscribe_event()
EVENT_TRANSFER_INCOMING = "transfer:incoming"
EVENT_PAYMENT_REQUEST_INCOMING = "payment_request:incoming"
EVENT_GROUP_JOINED = "group:joined"
EVENT_GROUP_LEFT = "group:left"
EVENT_GROUP_KICKED = "group:kicked"


class SphereNotReadyError(RuntimeError):
    """The Sphere SDK client is not initialized yet."""

    def __init__(self, message: str = "Sphere not initialized - initialize the wallet client before starting the channel"):
        super().__init__(message)


class SphereClient(ABC):
    """
    Abstract Sphere SDK client.

    Subscription handlers are plain callables invoked serially on the asyncio
    loop thread. Each subscribe_* call returns its own unsubscribe callable.
    """

    @property
    @abstractmethod
    def identity(self) -> Optional[SphereIdentity]:
        """Wallet identity (chain pubkey, nametag, address)."""

    @abstractmethod
    def own_protocol_identity(self) -> str:
        """
        This client's identity in the messaging protocol's own format.

        Used to recognize relay echoes of our own group messages. Not the same
        value as identity.chain_pubkey.
        """

    # Outbound

    @abstractmethod
    async def send_direct_message(self, target: str, text: str) -> Any:
        """Send a DM to a nametag (@tag or tag) or a pubkey."""

    @abstractmethod
    async def send_group_message(self, group_id: str, text: str, reply_to_id: Optional[str] = None) -> Any:
        """Send a message to a group, optionally as a reply."""

    # Lookups

    @abstractmethod
    async def list_groups(self) -> List[GroupInfo]:
        """Groups this identity has joined."""

    @abstractmethod
    async def get_group(self, group_id: str) -> Optional[GroupInfo]:
        """Group metadata, or None if unknown."""

    @abstractmethod
    async def list_group_members(self, group_id: str) -> List[GroupMember]:
        """Known members of a group."""

    @abstractmethod
    async def get_group_messages(self, group_id: str) -> List[GroupMessage]:
        """Locally known message history of a group."""

    # Subscriptions

    @abstractmethod
    def subscribe_direct_messages(self, handler: Callable[[DirectMessage], None]) -> Unsubscribe:
        pass

    @abstractmethod
    def subscribe_group_messages(self, handler: Callable[[GroupMessage], None]) -> Unsubscribe:
        pass

    @abstractmethod
    def subscribe_event(self, event: str, handler: Callable[[Any], None]) -> Unsubscribe:
        """
        Subscribe to an SDK event (transfer:incoming, payment_request:incoming,
        group:joined, group:left, group:kicked).
        """
