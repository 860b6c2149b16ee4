"""Per-group backfill debounce.

When the group subscription starts, the relay replays recent history in a
burst. Each group begins in the "buffering" phase: every arrival replaces the
buffered message and restarts a quiet-period timer. When the timer fires the
group turns "live" and only the most recent buffered message is dispatched;
the rest of the burst is dropped. Live groups dispatch immediately.

Groups are independent. close() cancels every pending timer; nothing is
dispatched after that.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Literal, Optional

from ..contracts.v1.message import GroupMessage

logger = logging.getLogger("uniclaw.backfill")

BackfillPhase = Literal["buffering", "live"]

PHASE_BUFFERING: BackfillPhase = "buffering"
PHASE_LIVE: BackfillPhase = "live"

DEFAULT_WINDOW_SECONDS = 3.0

# dispatch(message, buffered_count); buffered_count is 0 for live messages.
DispatchFn = Callable[[GroupMessage, int], None]


@dataclass
class GroupBackfillState:
    phase: BackfillPhase = PHASE_BUFFERING
    latest_message: Optional[GroupMessage] = None
    buffered_count: int = 0
    timer: Optional[asyncio.TimerHandle] = None

    def cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None


class BackfillDebouncer:
    """Owns the group_id -> GroupBackfillState map for one listening session."""

    def __init__(
        self,
        dispatch: DispatchFn,
        *,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self._dispatch = dispatch
        self.window_seconds = float(window_seconds)
        self._loop = loop
        self._states: Dict[str, GroupBackfillState] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def state(self, group_id: str) -> Optional[GroupBackfillState]:
        return self._states.get(group_id)

    def phase(self, group_id: str) -> Optional[BackfillPhase]:
        st = self._states.get(group_id)
        return st.phase if st is not None else None

    def on_message(self, msg: GroupMessage) -> None:
        if self._closed:
            return

        group_id = msg.group_id
        st = self._states.get(group_id)
        if st is None:
            st = GroupBackfillState()
            self._states[group_id] = st

        if st.phase == PHASE_LIVE:
            self._dispatch(msg, 0)
            return

        st.cancel_timer()
        st.latest_message = msg
        st.buffered_count += 1
        st.timer = self._get_loop().call_later(self.window_seconds, self._settle, group_id, st)

    def _settle(self, group_id: str, st: GroupBackfillState) -> None:
        # A dropped or replaced state must not dispatch.
        if self._closed or self._states.get(group_id) is not st:
            return

        st.timer = None
        st.phase = PHASE_LIVE
        msg, st.latest_message = st.latest_message, None

        logger.info(
            f"Backfill settled for group {group_id}: buffered_count={st.buffered_count}",
            extra={"group_id": group_id},
        )
        if msg is not None:
            self._dispatch(msg, st.buffered_count)

    def reset_group(self, group_id: str) -> None:
        """Forget a group (left/kicked/rejoined); the next message buffers again."""
        st = self._states.pop(group_id, None)
        if st is not None:
            st.cancel_timer()

    def close(self) -> None:
        self._closed = True
        for st in self._states.values():
            st.cancel_timer()
        self._states.clear()
