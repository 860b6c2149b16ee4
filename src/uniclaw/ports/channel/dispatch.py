"""
Reply dispatch.

Hands an InboundContext to the host reply pipeline and routes the pipeline's
deliver callbacks back to the Sphere send operation matching the context:
direct contexts reply by DM, group contexts reply in the group.

Failures never propagate: a failed send or a failed dispatch is logged and the
message counts as processed. Nothing is retried.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from ...contracts.v1.context import CHANNEL_ID, DeliveryInfo, InboundContext, ReplyPayload
from ...kernel.account import looks_like_id, normalize_target
from .adapters.base import SphereClient, SphereNotReadyError

logger = logging.getLogger("uniclaw.dispatch")

DeliverFn = Callable[[Any, Any], Awaitable[None]]
SkipFn = Callable[[Any, Any], None]
ErrorFn = Callable[[BaseException, Any], None]


@dataclass
class ReplyCallbacks:
    deliver: DeliverFn
    on_skip: SkipFn
    on_error: ErrorFn


class ReplyPipeline(ABC):
    """Host reply/agent pipeline."""

    @abstractmethod
    async def dispatch(self, context: InboundContext, callbacks: ReplyCallbacks) -> Any:
        """
        Produce a reply for `context`.

        May call callbacks.deliver zero or more times, callbacks.on_skip when
        it decides not to answer, callbacks.on_error on internal failures.
        """


def payload_text(payload: Any) -> str:
    if payload is None:
        return ""
    if isinstance(payload, ReplyPayload):
        return payload.text or ""
    if isinstance(payload, dict):
        return str(payload.get("text") or "")
    return str(getattr(payload, "text", "") or "")


def _info_kind(info: Any) -> str:
    if isinstance(info, DeliveryInfo):
        return info.kind
    if isinstance(info, dict):
        return str(info.get("kind") or "")
    return str(getattr(info, "kind", "") or "")


class DispatchAdapter:
    """Binds one Sphere client and one reply pipeline."""

    def __init__(self, client: SphereClient, pipeline: ReplyPipeline, *, account_id: str = "default"):
        self.client = client
        self.pipeline = pipeline
        self.account_id = account_id

    def _extra(self, context: InboundContext) -> Dict[str, Any]:
        return {
            "account_id": self.account_id,
            "session_key": context.session_key,
            "group_id": context.group_id,
            "peer": context.sender_id,
            "message_id": context.message_id,
        }

    def callbacks_for(self, context: InboundContext) -> ReplyCallbacks:
        extra = self._extra(context)

        async def deliver(payload: Any, info: Any = None) -> None:
            text = payload_text(payload)
            if not text:
                return
            if context.chat_type == "group" and context.group_id:
                try:
                    await self.client.send_group_message(context.group_id, text, reply_to_id=context.message_id)
                except Exception as e:
                    logger.error(f"Failed to send group message to {context.group_id}: {e}", extra=extra)
                return
            recipient = context.originating_to
            try:
                await self.client.send_direct_message(recipient, text)
            except Exception as e:
                logger.error(f"Failed to send DM to {recipient}: {e}", extra=extra)

        def on_skip(payload: Any, info: Any = None) -> None:
            logger.debug(
                f"Reply skipped for {context.session_key} (kind={_info_kind(info) or 'unknown'})",
                extra=extra,
            )

        def on_error(err: BaseException, info: Any = None) -> None:
            logger.error(
                f"Reply pipeline error for {context.session_key} (kind={_info_kind(info) or 'unknown'}): {err}",
                extra=extra,
            )

        return ReplyCallbacks(deliver=deliver, on_skip=on_skip, on_error=on_error)

    async def dispatch(self, context: InboundContext) -> bool:
        """Run the pipeline for one context. Returns False if it raised."""
        extra = self._extra(context)
        try:
            await self.pipeline.dispatch(context, self.callbacks_for(context))
        except Exception as e:
            logger.error(f"Reply dispatch error for {context.session_key}: {e}", extra=extra)
            return False
        logger.debug(f"Reply dispatch finished for {context.session_key}", extra=extra)
        return True


async def send_text(client: Optional[SphereClient], to: str, text: str) -> Dict[str, str]:
    """Outbound send initiated by the host (not a reply to an inbound message)."""
    if client is None:
        raise SphereNotReadyError()
    target = str(to or "").strip()
    if not looks_like_id(target):
        raise ValueError(f"Invalid recipient format: {to!r}. Expected a nametag or 64-char hex public key.")
    await client.send_direct_message(normalize_target(target), text or "")
    return {"channel": CHANNEL_ID, "to": target}
