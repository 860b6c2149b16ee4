"""
Uniclaw channel bridge - listening session lifecycle.

Handles:
- Inbound DMs: context -> reply pipeline -> DM reply
- Inbound group messages: echo filter -> backfill debounce -> context -> pipeline -> group reply
- Wallet notifications (incoming transfer, payment request) as direct contexts
- Group lifecycle (joined/left/kicked): reset that group's backfill state
- Teardown: every unsubscribe handle called once, every debounce timer cancelled
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ...contracts.v1.account import ChannelStatus, ResolvedAccount
from ...contracts.v1.context import InboundContext
from ...contracts.v1.message import (
    DirectMessage,
    GroupLifecycleEvent,
    GroupMessage,
    IncomingPaymentRequest,
    IncomingTransfer,
)
from ...kernel.account import build_account_snapshot, resolve_account
from ...kernel.backfill import BackfillDebouncer
from ...kernel.context import InboundContextBuilder, peer_id
from ...kernel.owner import OwnerTrust
from ...kernel.settings import UniclawConfig
from ...util.abort import AbortSignal
from .adapters.base import (
    EVENT_GROUP_JOINED,
    EVENT_GROUP_KICKED,
    EVENT_GROUP_LEFT,
    EVENT_PAYMENT_REQUEST_INCOMING,
    EVENT_TRANSFER_INCOMING,
    SphereClient,
    SphereNotReadyError,
    Unsubscribe,
)
from .dispatch import DispatchAdapter, ReplyPipeline

logger = logging.getLogger("uniclaw.bridge")

M = TypeVar("M", bound=BaseModel)

LOG_PREVIEW_CHARS = 80


@dataclass
class SessionContext:
    """Everything one listening session needs, passed by reference."""

    client: Optional[SphereClient]
    pipeline: ReplyPipeline
    config: UniclawConfig = field(default_factory=UniclawConfig)
    owner: OwnerTrust = field(default_factory=OwnerTrust)
    account: ResolvedAccount = field(default_factory=ResolvedAccount)

    @classmethod
    def create(
        cls,
        client: Optional[SphereClient],
        pipeline: ReplyPipeline,
        config: Optional[UniclawConfig] = None,
    ) -> "SessionContext":
        cfg = config or UniclawConfig()
        identity = client.identity if client is not None else None
        return cls(
            client=client,
            pipeline=pipeline,
            config=cfg,
            owner=OwnerTrust(cfg.owner),
            account=resolve_account(cfg, identity),
        )


def _coerce(model: Type[M], value: Any) -> Optional[M]:
    if isinstance(value, model):
        return value
    try:
        return model.model_validate(value)
    except ValidationError as e:
        logger.warning(f"Ignoring malformed {model.__name__} event: {e.error_count()} validation error(s)")
        return None


class SphereBridge:
    """
    One listening session over a Sphere client.

    start() subscribes everything and collects the unsubscribe handles;
    stop() (or the abort signal) tears it all down synchronously.
    """

    def __init__(self, session: SessionContext):
        self.session = session

        self._unsubscribers: List[Unsubscribe] = []
        self._tasks: Set["asyncio.Task[Any]"] = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._builder: Optional[InboundContextBuilder] = None
        self._dispatcher: Optional[DispatchAdapter] = None
        self._debouncer: Optional[BackfillDebouncer] = None

        self._running = False
        self._closed = True
        self._last_start_at: Optional[float] = None
        self._last_stop_at: Optional[float] = None
        self._last_error: Optional[str] = None

    @property
    def account_id(self) -> str:
        return self.session.account.account_id

    @property
    def running(self) -> bool:
        return self._running

    @property
    def debouncer(self) -> Optional[BackfillDebouncer]:
        return self._debouncer

    def _extra(self, **kw: Any) -> Dict[str, Any]:
        out: Dict[str, Any] = {"account_id": self.account_id}
        out.update(kw)
        return out

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self, abort_signal: Optional[AbortSignal] = None) -> None:
        """Start listening. Raises SphereNotReadyError when there is no client."""
        client = self.session.client
        if client is None:
            err = SphereNotReadyError()
            self._last_error = str(err)
            raise err
        if self._running:
            if abort_signal is not None:
                abort_signal.add_listener(self.stop)
            return

        cfg = self.session.config
        self._loop = asyncio.get_running_loop()
        self._closed = False
        self._builder = InboundContextBuilder(
            client=client,
            owner=self.session.owner,
            spawn=self._spawn,
            account_id=self.account_id,
        )
        self._dispatcher = DispatchAdapter(client, self.session.pipeline, account_id=self.account_id)
        self._debouncer = BackfillDebouncer(
            self._dispatch_group,
            window_seconds=cfg.backfill_debounce_seconds,
            loop=self._loop,
        )

        identity = client.identity
        nametag = (identity.nametag if identity is not None else None) or "none"
        pubkey = (identity.chain_pubkey if identity is not None else None) or ""
        logger.info(
            f"[{self.account_id}] Starting Unicity channel (nametag: {nametag}, pubkey: {pubkey[:16]}...)",
            extra=self._extra(),
        )

        try:
            self._unsubscribers.append(client.subscribe_direct_messages(self._on_direct_message))
            if cfg.group_chat.enabled:
                self._unsubscribers.append(client.subscribe_group_messages(self._on_group_message))
            self._unsubscribers.append(client.subscribe_event(EVENT_TRANSFER_INCOMING, self._on_transfer))
            self._unsubscribers.append(
                client.subscribe_event(EVENT_PAYMENT_REQUEST_INCOMING, self._on_payment_request)
            )
            for event in (EVENT_GROUP_JOINED, EVENT_GROUP_LEFT, EVENT_GROUP_KICKED):
                self._unsubscribers.append(client.subscribe_event(event, self._group_lifecycle_handler(event)))
        except Exception as e:
            self._last_error = str(e)
            self._teardown()
            raise

        self._running = True
        self._last_start_at = time.time()
        self._last_error = None
        logger.info(
            f"[{self.account_id}] Unicity listener active ({len(self._unsubscribers)} subscriptions)",
            extra=self._extra(),
        )

        if cfg.group_chat.enabled:
            await self._log_joined_groups(client)

        if abort_signal is not None:
            abort_signal.add_listener(self.stop)

    async def _log_joined_groups(self, client: SphereClient) -> None:
        try:
            groups = list(await client.list_groups() or [])
        except Exception:
            logger.debug("list_groups failed", exc_info=True, extra=self._extra())
            groups = []
        logger.info(f"[{self.account_id}] Joined groups: {len(groups)}", extra=self._extra())

    def stop(self) -> None:
        """Stop listening. Safe to call more than once."""
        if self._closed:
            return
        self._teardown()
        self._running = False
        self._last_stop_at = time.time()
        logger.info(f"[{self.account_id}] Unicity channel stopped", extra=self._extra())

    def _teardown(self) -> None:
        self._closed = True
        unsubscribers, self._unsubscribers = self._unsubscribers, []
        for unsub in unsubscribers:
            try:
                unsub()
            except Exception:
                logger.exception("unsubscribe failed", extra=self._extra())
        if self._debouncer is not None:
            self._debouncer.close()

    def status(self) -> ChannelStatus:
        return build_account_snapshot(
            self.session.account,
            {
                "running": self._running,
                "last_start_at": self._last_start_at,
                "last_stop_at": self._last_stop_at,
                "last_error": self._last_error,
                "active_subscriptions": len(self._unsubscribers),
            },
        )

    # =========================================================================
    # Background work
    # =========================================================================

    def _spawn(self, coro: Awaitable[Any]) -> None:
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(coro)  # type: ignore[arg-type]
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: "asyncio.Task[Any]") -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Background task failed: {exc}", exc_info=exc, extra=self._extra())

    async def drain(self) -> None:
        """Wait for in-flight dispatch work (tests and graceful shutdown)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _dispatch(self, context: InboundContext) -> None:
        # Work queued before stop() must not reach the pipeline afterwards.
        if self._closed or self._dispatcher is None:
            return
        await self._dispatcher.dispatch(context)

    # =========================================================================
    # Handlers (called by the SDK on the loop thread)
    # =========================================================================

    def _on_direct_message(self, raw: Any) -> None:
        if self._closed or self._builder is None:
            return
        msg = _coerce(DirectMessage, raw)
        if msg is None:
            return
        peer = peer_id(msg.sender_pubkey, msg.sender_nametag)
        logger.info(
            f"[{self.account_id}] DM received from {peer}: {msg.content[:LOG_PREVIEW_CHARS]}",
            extra=self._extra(peer=peer, message_id=msg.id),
        )
        try:
            context = self._builder.build_direct(msg)
        except Exception:
            logger.exception(f"Failed to build context for DM from {peer}", extra=self._extra(peer=peer))
            return
        self._spawn(self._dispatch(context))

    def _on_group_message(self, raw: Any) -> None:
        if self._closed or self._builder is None or self._debouncer is None:
            return
        msg = _coerce(GroupMessage, raw)
        if msg is None:
            return
        if self._builder.is_self_authored(msg):
            logger.debug(
                f"Ignoring own message echo in group {msg.group_id}",
                extra=self._extra(group_id=msg.group_id, message_id=msg.id),
            )
            return
        self._debouncer.on_message(msg)

    def _dispatch_group(self, msg: GroupMessage, buffered_count: int) -> None:
        if self._closed:
            return
        self._spawn(self._build_and_dispatch_group(msg, buffered_count))

    async def _build_and_dispatch_group(self, msg: GroupMessage, buffered_count: int) -> None:
        if self._builder is None:
            return
        extra = self._extra(group_id=msg.group_id, message_id=msg.id)
        try:
            context = await self._builder.build_group(msg)
        except Exception:
            logger.exception(f"Failed to build context for group {msg.group_id}", extra=extra)
            return
        note = f" (after backfill, buffered_count={buffered_count})" if buffered_count else ""
        logger.info(
            f"[{self.account_id}] Group message in {msg.group_id} from {context.sender_name}{note}: "
            f"{msg.content[:LOG_PREVIEW_CHARS]}",
            extra=extra,
        )
        await self._dispatch(context)

    def _on_transfer(self, raw: Any) -> None:
        if self._closed or self._builder is None:
            return
        transfer = _coerce(IncomingTransfer, raw)
        if transfer is None:
            return
        logger.info(
            f"[{self.account_id}] Incoming transfer {transfer.id}",
            extra=self._extra(event=EVENT_TRANSFER_INCOMING, peer=transfer.sender_pubkey),
        )
        self._spawn(self._dispatch(self._builder.build_transfer(transfer)))

    def _on_payment_request(self, raw: Any) -> None:
        if self._closed or self._builder is None:
            return
        request = _coerce(IncomingPaymentRequest, raw)
        if request is None:
            return
        logger.info(
            f"[{self.account_id}] Incoming payment request {request.request_id}",
            extra=self._extra(event=EVENT_PAYMENT_REQUEST_INCOMING, peer=request.sender_pubkey),
        )
        self._spawn(self._dispatch(self._builder.build_payment_request(request)))

    def _group_lifecycle_handler(self, event: str) -> Callable[[Any], None]:
        def handler(raw: Any) -> None:
            if self._closed or self._debouncer is None:
                return
            data = _coerce(GroupLifecycleEvent, raw)
            if data is None:
                return
            # A rejoin replays history, so the group must buffer again.
            self._debouncer.reset_group(data.group_id)
            logger.info(
                f"[{self.account_id}] {event} {data.group_name or data.group_id}",
                extra=self._extra(event=event, group_id=data.group_id),
            )

        return handler


async def start_bridge(
    client: Optional[SphereClient],
    pipeline: ReplyPipeline,
    config: Optional[UniclawConfig] = None,
    *,
    abort_signal: Optional[AbortSignal] = None,
) -> SphereBridge:
    """Build a fresh session and start listening."""
    bridge = SphereBridge(SessionContext.create(client, pipeline, config))
    await bridge.start(abort_signal)
    return bridge
