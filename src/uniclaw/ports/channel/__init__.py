"""
Uniclaw Channel Port

Connects an agent reply pipeline to the Unicity wallet/identity messaging
network (Sphere SDK): encrypted DMs and relay-backed group chats.

Architecture:
- One listening session per start(); stop() or the abort signal tears it down
- Inbound: SDK event -> InboundContext (metadata header, sanitized body) -> pipeline
- Outbound: pipeline deliver -> DM reply or group reply
- Group history replay on subscribe is collapsed to its latest message

Usage:
    service = ChannelService(lambda: sphere, pipeline)
    await service.start(abort_signal)
    ...
    service.stop()
"""

from .bridge import SessionContext, SphereBridge, start_bridge
from .dispatch import DispatchAdapter, ReplyCallbacks, ReplyPipeline, send_text
from .service import ChannelService

__all__ = [
    "ChannelService",
    "DispatchAdapter",
    "ReplyCallbacks",
    "ReplyPipeline",
    "SessionContext",
    "SphereBridge",
    "send_text",
    "start_bridge",
]
