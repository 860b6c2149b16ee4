"""
Uniclaw channel service - host-facing entry point.

Every start() re-reads settings.yaml, so a restart picks up config changes
(owner, group chat, debounce window) without a process restart.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from ...contracts.v1.account import ChannelStatus, DmPolicyResolution, ResolvedAccount
from ...kernel.account import build_account_snapshot, resolve_account, resolve_dm_policy
from ...kernel.settings import UniclawConfig, load_config
from ...kernel.system_prompt import render_identity_prompt
from ...util.abort import AbortSignal
from ...util.obslog import resolve_log_level, setup_root_json_logging
from .adapters.base import SphereClient
from .bridge import SessionContext, SphereBridge
from .dispatch import ReplyPipeline, send_text

logger = logging.getLogger("uniclaw.service")

ClientProvider = Callable[[], Optional[SphereClient]]


class ChannelService:
    """Owns at most one running SphereBridge."""

    def __init__(
        self,
        client_provider: ClientProvider,
        pipeline: ReplyPipeline,
        *,
        config_loader: Callable[[], UniclawConfig] = load_config,
        configure_logging: bool = True,
    ):
        self._client_provider = client_provider
        self._pipeline = pipeline
        self._config_loader = config_loader
        self._configure_logging = configure_logging
        self._config: Optional[UniclawConfig] = None
        self.bridge: Optional[SphereBridge] = None

    @property
    def config(self) -> UniclawConfig:
        if self._config is None:
            self._config = self._config_loader()
        return self._config

    def account(self) -> ResolvedAccount:
        client = self._client_provider()
        return resolve_account(self.config, client.identity if client is not None else None)

    async def start(self, abort_signal: Optional[AbortSignal] = None) -> SphereBridge:
        if self.bridge is not None:
            self.stop()

        cfg = self._config_loader()
        self._config = cfg
        if self._configure_logging:
            setup_root_json_logging(component="uniclaw", level=resolve_log_level(cfg.log_level))

        client = self._client_provider()
        bridge = SphereBridge(SessionContext.create(client, self._pipeline, cfg))
        try:
            await bridge.start(abort_signal)
        except Exception as e:
            logger.error(f"Failed to start Unicity channel: {e}")
            raise
        self.bridge = bridge
        return bridge

    def stop(self) -> None:
        bridge, self.bridge = self.bridge, None
        if bridge is not None:
            bridge.stop()

    def status(self) -> ChannelStatus:
        if self.bridge is not None:
            return self.bridge.status()
        return build_account_snapshot(self.account())

    def dm_policy(self) -> DmPolicyResolution:
        return resolve_dm_policy(self.account())

    def identity_prompt(self) -> Optional[str]:
        """Context block for the agent, or None before the wallet is ready."""
        client = self._client_provider()
        if client is None:
            return None
        return render_identity_prompt(client.identity, group_chat=self.config.group_chat.enabled)

    async def send_text(self, to: str, text: str) -> Dict[str, str]:
        return await send_text(self._client_provider(), to, text)
