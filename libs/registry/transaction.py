"""
Single-slot transaction status tracker.

Only the most recent user-triggered operation (mint or verify) is tracked.
Two overlapping operations overwrite each other's status; callers are
expected to serialize user actions.

SUCCESS and ERROR schedule an automatic return to IDLE. Every transition
cancels a reset scheduled by an earlier one, so a stale reset never clobbers
a newer status.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from libs.core.config import get_settings

logger = logging.getLogger(__name__)


class TransactionPhase(Enum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class TransactionState:
    phase: TransactionPhase = TransactionPhase.IDLE
    message: str = ""

    @property
    def visible(self) -> bool:
        return self.phase is not TransactionPhase.IDLE


IDLE = TransactionState()

StateListener = Callable[[TransactionState], None]


class TransactionStateMachine:
    """Tracks the lifecycle of the latest mint/verify with timed auto-reset."""

    def __init__(
        self,
        success_reset_seconds: Optional[float] = None,
        error_reset_seconds: Optional[float] = None,
    ):
        settings = get_settings().transaction
        self.success_reset_seconds = (
            settings.success_reset_seconds if success_reset_seconds is None else success_reset_seconds
        )
        self.error_reset_seconds = (
            settings.error_reset_seconds if error_reset_seconds is None else error_reset_seconds
        )
        self._state = IDLE
        self._reset_task: Optional[asyncio.Task] = None
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def reset_pending(self) -> bool:
        return self._reset_task is not None and not self._reset_task.done()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def start(self, message: str) -> None:
        """Enter PENDING from any state."""
        self._cancel_reset()
        self._set(TransactionState(TransactionPhase.PENDING, message))

    def resolve(self, success: bool, message: str) -> None:
        """
        Enter SUCCESS or ERROR and schedule the return to IDLE.

        Must be called from a running event loop.
        """
        loop = asyncio.get_running_loop()
        self._cancel_reset()
        if success:
            self._set(TransactionState(TransactionPhase.SUCCESS, message))
            delay = self.success_reset_seconds
        else:
            self._set(TransactionState(TransactionPhase.ERROR, message))
            delay = self.error_reset_seconds
        self._reset_task = loop.create_task(self._reset_after(delay))

    def reset(self) -> None:
        """Return to IDLE immediately."""
        self._cancel_reset()
        self._set(IDLE)

    async def aclose(self) -> None:
        """Cancel a scheduled reset and wait for it to finish."""
        task = self._reset_task
        self._cancel_reset()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _reset_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        self._reset_task = None
        self._set(IDLE)

    def _cancel_reset(self) -> None:
        if self._reset_task is not None:
            self._reset_task.cancel()
            self._reset_task = None

    def _set(self, state: TransactionState) -> None:
        self._state = state
        logger.debug(f"[Transaction] {state.phase.value}: {state.message}")
        for listener in list(self._listeners):
            listener(state)
