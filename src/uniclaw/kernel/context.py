"""Inbound context construction.

Turns provider events into InboundContext records:
- Direct messages: session per peer, owner forwarding for non-owner senders
- Group messages: session per group, group name lookup, reply-to-self mention
- Transfers and payment requests: one session per event, routed as direct

Lookups go through the SDK port and degrade to "unknown" on failure.
"""
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, Awaitable, Callable, List, Optional

from ..contracts.v1.context import CHANNEL_ID, InboundContext
from ..contracts.v1.message import (
    DirectMessage,
    GroupInfo,
    GroupMember,
    GroupMessage,
    IncomingPaymentRequest,
    IncomingTransfer,
)
from .metadata import MetadataFields, build_header, compose_body
from .owner import OwnerTrust, normalize_identity

if TYPE_CHECKING:
    from ..ports.channel.adapters.base import SphereClient

logger = logging.getLogger("uniclaw.context")

Spawn = Callable[[Awaitable[Any]], Any]

SENDER_NAME_PREFIX_LEN = 12


def peer_id(sender_pubkey: str, sender_nametag: Optional[str] = None) -> str:
    """@nametag when resolved, raw pubkey otherwise."""
    tag = str(sender_nametag or "").strip().lstrip("@")
    return f"@{tag}" if tag else sender_pubkey


def dm_session_key(peer: str) -> str:
    return f"{CHANNEL_ID}:dm:{peer}"


def group_session_key(group_id: str) -> str:
    return f"{CHANNEL_ID}:group:{group_id}"


def _display_amount(amount: str, decimals: Optional[int]) -> str:
    if not decimals:
        return str(amount)
    try:
        value = Decimal(str(amount)).scaleb(-int(decimals))
    except (InvalidOperation, ValueError):
        return str(amount)
    return format(value.normalize(), "f")


def _display_token(amount: str, decimals: Optional[int], symbol: Optional[str], coin_id: str) -> str:
    return f"{_display_amount(amount, decimals)} {symbol or coin_id}"


class InboundContextBuilder:
    """Builds InboundContext records for one listening session."""

    def __init__(
        self,
        *,
        client: "SphereClient",
        owner: OwnerTrust,
        spawn: Spawn,
        account_id: str = "default",
    ):
        self.client = client
        self.owner = owner
        self.account_id = account_id
        self._spawn = spawn

    # ------------------------------------------------------------------
    # Identity helpers
    # ------------------------------------------------------------------

    def agent_address(self) -> str:
        identity = self.client.identity
        if identity is not None:
            if identity.nametag:
                return identity.nametag
            if identity.chain_pubkey:
                return identity.chain_pubkey
        return "agent"

    def own_protocol_identity(self) -> str:
        try:
            return str(self.client.own_protocol_identity() or "")
        except Exception:
            logger.debug("own_protocol_identity unavailable", exc_info=True)
            return ""

    def is_self_authored(self, msg: GroupMessage) -> bool:
        """Relay echo of a message this client sent."""
        own = normalize_identity(self.own_protocol_identity())
        return bool(own) and normalize_identity(msg.sender_pubkey) == own

    def _trust(self, sender_pubkey: str, sender_nametag: Optional[str]) -> bool:
        return self.owner.is_owner(sender_pubkey, sender_nametag)

    # ------------------------------------------------------------------
    # Direct messages
    # ------------------------------------------------------------------

    def build_direct(self, msg: DirectMessage) -> InboundContext:
        peer = peer_id(msg.sender_pubkey, msg.sender_nametag)
        is_owner = self._trust(msg.sender_pubkey, msg.sender_nametag)
        sender_name = msg.sender_nametag or msg.sender_pubkey[:SENDER_NAME_PREFIX_LEN]

        header = build_header(
            MetadataFields(
                sender_name=sender_name,
                sender_id=msg.sender_pubkey,
                is_owner=is_owner,
                command_authorized=is_owner,
            )
        )

        if self.owner.configured and not is_owner:
            self._spawn(self._forward_to_owner(peer, msg.content))

        return InboundContext(
            body=compose_body(header, msg.content),
            raw_body=msg.content,
            from_id=peer,
            to=self.agent_address(),
            session_key=dm_session_key(peer),
            chat_type="direct",
            account_id=self.account_id,
            originating_to=peer,
            sender_name=sender_name,
            sender_id=msg.sender_pubkey,
            is_owner=is_owner,
            command_authorized=is_owner,
            message_id=msg.id,
            timestamp=msg.timestamp or None,
        )

    async def _forward_to_owner(self, peer: str, content: str) -> None:
        owner = self.owner.owner
        if not owner:
            return
        text = f"[Forwarded DM from {peer}]: {content}"
        try:
            await self.client.send_direct_message(owner, text)
        except Exception as e:
            logger.warning(
                f"Failed to forward DM from {peer} to owner: {e}",
                extra={"account_id": self.account_id, "peer": peer},
            )

    # ------------------------------------------------------------------
    # Group messages
    # ------------------------------------------------------------------

    async def _get_group(self, group_id: str) -> Optional[GroupInfo]:
        try:
            return await self.client.get_group(group_id)
        except Exception:
            logger.debug(f"get_group failed for {group_id}", exc_info=True, extra={"group_id": group_id})
            return None

    async def _list_members(self, group_id: str) -> List[GroupMember]:
        try:
            return list(await self.client.list_group_members(group_id) or [])
        except Exception:
            logger.debug(f"list_group_members failed for {group_id}", exc_info=True, extra={"group_id": group_id})
            return []

    async def _history(self, group_id: str) -> List[GroupMessage]:
        try:
            return list(await self.client.get_group_messages(group_id) or [])
        except Exception:
            logger.debug(f"get_group_messages failed for {group_id}", exc_info=True, extra={"group_id": group_id})
            return []

    async def _member_nametag(self, group_id: str, sender_pubkey: str) -> Optional[str]:
        wanted = normalize_identity(sender_pubkey)
        for member in await self._list_members(group_id):
            if normalize_identity(member.pubkey) == wanted and member.nametag:
                return member.nametag
        return None

    async def is_reply_to_self(self, msg: GroupMessage) -> bool:
        if not msg.reply_to_id:
            return False
        own = normalize_identity(self.own_protocol_identity())
        if not own:
            return False
        for entry in await self._history(msg.group_id):
            if entry.id == msg.reply_to_id:
                return normalize_identity(entry.sender_pubkey) == own
        return False

    async def build_group(self, msg: GroupMessage) -> InboundContext:
        group = await self._get_group(msg.group_id)
        group_name = (group.name if group is not None else "") or msg.group_id

        nametag = msg.sender_nametag or await self._member_nametag(msg.group_id, msg.sender_pubkey)
        sender_name = nametag or msg.sender_pubkey[:SENDER_NAME_PREFIX_LEN]
        # Trust only uses what the event itself carries.
        is_owner = self._trust(msg.sender_pubkey, msg.sender_nametag)
        was_mentioned = await self.is_reply_to_self(msg)

        header = build_header(
            MetadataFields(
                sender_name=sender_name,
                sender_id=msg.sender_pubkey,
                is_owner=is_owner,
                command_authorized=is_owner,
                group_id=msg.group_id,
                group_name=group_name,
            )
        )

        return InboundContext(
            body=compose_body(header, msg.content),
            raw_body=msg.content,
            from_id=peer_id(msg.sender_pubkey, nametag),
            to=msg.group_id,
            session_key=group_session_key(msg.group_id),
            chat_type="group",
            account_id=self.account_id,
            originating_to=msg.group_id,
            sender_name=sender_name,
            sender_id=msg.sender_pubkey,
            is_owner=is_owner,
            command_authorized=is_owner,
            group_id=msg.group_id,
            group_name=group_name,
            was_mentioned=was_mentioned,
            message_id=msg.id,
            reply_to_id=msg.reply_to_id,
            timestamp=msg.timestamp or None,
        )

    # ------------------------------------------------------------------
    # Wallet notifications
    # ------------------------------------------------------------------

    def _notification(self, *, sender_pubkey: str, sender_nametag: Optional[str], text: str, session_key: str) -> InboundContext:
        peer = peer_id(sender_pubkey, sender_nametag)
        is_owner = self._trust(sender_pubkey, sender_nametag)
        sender_name = sender_nametag or sender_pubkey[:SENDER_NAME_PREFIX_LEN]
        header = build_header(
            MetadataFields(
                sender_name=sender_name,
                sender_id=sender_pubkey,
                is_owner=is_owner,
                command_authorized=is_owner,
            )
        )
        return InboundContext(
            body=compose_body(header, text),
            raw_body=text,
            from_id=peer,
            to=self.agent_address(),
            session_key=session_key,
            chat_type="direct",
            account_id=self.account_id,
            originating_to=peer,
            sender_name=sender_name,
            sender_id=sender_pubkey,
            is_owner=is_owner,
            command_authorized=is_owner,
        )

    def build_transfer(self, transfer: IncomingTransfer) -> InboundContext:
        peer = peer_id(transfer.sender_pubkey, transfer.sender_nametag)
        amounts = ", ".join(
            _display_token(t.amount, t.decimals, t.symbol, t.coin_id) for t in transfer.tokens
        ) or "tokens"
        lines = [f"[Payment received] {amounts} from {peer}"]
        if transfer.memo:
            lines.append(f"Memo: {transfer.memo}")
        return self._notification(
            sender_pubkey=transfer.sender_pubkey,
            sender_nametag=transfer.sender_nametag,
            text="\n".join(lines),
            session_key=f"{CHANNEL_ID}:transfer:{transfer.id}",
        )

    def build_payment_request(self, request: IncomingPaymentRequest) -> InboundContext:
        peer = peer_id(request.sender_pubkey, request.sender_nametag)
        amount = _display_token(request.amount, request.decimals, request.symbol, request.coin_id)
        lines = [f"[Payment request] {peer} requests {amount}"]
        if request.message:
            lines.append(f"Message: {request.message}")
        lines.append(f"Request ID: {request.request_id}")
        return self._notification(
            sender_pubkey=request.sender_pubkey,
            sender_nametag=request.sender_nametag,
            text="\n".join(lines),
            session_key=f"{CHANNEL_ID}:payreq:{request.request_id}",
        )
