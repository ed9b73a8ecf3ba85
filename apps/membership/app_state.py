"""
apps/membership/app_state.py

Application state container for the membership catalog.

All mutations go through ``AppStateStore.dispatch`` with a named action, and
``reduce`` is the single place that computes the next state. The collection
is always replaced wholesale, never patched.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Optional

from libs.core.models import MembershipDraft, MembershipRecord
from libs.registry.filters import ALL_TAB, filter_memberships, membership_stats

logger = logging.getLogger(__name__)


class ActionType(str, Enum):
    """Named state mutations."""

    ACCOUNT_CONNECTED = "account.connected"
    ACCOUNT_CHANGED = "account.changed"
    ACCOUNT_DISCONNECTED = "account.disconnected"

    REFRESH_STARTED = "refresh.started"
    MEMBERSHIPS_LOADED = "refresh.loaded"
    REFRESH_FAILED = "refresh.failed"

    MINT_STARTED = "mint.started"
    MINT_FINISHED = "mint.finished"

    DRAFT_UPDATED = "draft.updated"
    DRAFT_RESET = "draft.reset"

    SEARCH_CHANGED = "filter.search"
    TAB_CHANGED = "filter.tab"


@dataclass(frozen=True)
class Action:
    type: ActionType
    payload: Any = None


@dataclass(frozen=True)
class MembershipAppState:
    account: str = ""
    memberships: tuple[MembershipRecord, ...] = ()
    loading: bool = True
    refreshing: bool = False
    minting: bool = False
    notice: str = ""
    draft: MembershipDraft = field(default_factory=MembershipDraft)
    search_term: str = ""
    active_tab: str = ALL_TAB

    @property
    def connected(self) -> bool:
        return bool(self.account)


def reduce(state: MembershipAppState, action: Action) -> MembershipAppState:
    """Compute the next state. Pure."""
    kind = action.type

    if kind in (ActionType.ACCOUNT_CONNECTED, ActionType.ACCOUNT_CHANGED):
        return replace(state, account=action.payload or "")
    if kind is ActionType.ACCOUNT_DISCONNECTED:
        return replace(state, account="")

    if kind is ActionType.REFRESH_STARTED:
        return replace(state, refreshing=True)
    if kind is ActionType.MEMBERSHIPS_LOADED:
        return replace(
            state,
            memberships=tuple(action.payload),
            refreshing=False,
            loading=False,
            notice="",
        )
    if kind is ActionType.REFRESH_FAILED:
        # Keep the previous collection
        return replace(state, refreshing=False, loading=False, notice=action.payload or "")

    if kind is ActionType.MINT_STARTED:
        return replace(state, minting=True)
    if kind is ActionType.MINT_FINISHED:
        return replace(state, minting=False)

    if kind is ActionType.DRAFT_UPDATED:
        return replace(state, draft=state.draft.model_copy(update=dict(action.payload)))
    if kind is ActionType.DRAFT_RESET:
        return replace(state, draft=MembershipDraft())

    if kind is ActionType.SEARCH_CHANGED:
        return replace(state, search_term=action.payload or "")
    if kind is ActionType.TAB_CHANGED:
        return replace(state, active_tab=action.payload or ALL_TAB)

    raise ValueError(f"Unknown action: {kind}")


StateListener = Callable[[MembershipAppState, Action], None]


class AppStateStore:
    """Holds the current state and notifies listeners after each dispatch."""

    def __init__(self, initial: Optional[MembershipAppState] = None):
        self._state = initial or MembershipAppState()
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> MembershipAppState:
        return self._state

    def dispatch(self, action_type: ActionType, payload: Any = None) -> MembershipAppState:
        action = Action(action_type, payload)
        self._state = reduce(self._state, action)
        logger.debug(f"[AppState] {action_type.value}")
        for listener in list(self._listeners):
            listener(self._state, action)
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    @property
    def visible_memberships(self) -> list[MembershipRecord]:
        state = self._state
        return filter_memberships(state.memberships, state.search_term, state.active_tab)

    @property
    def stats(self) -> dict[str, int]:
        return membership_stats(self._state.memberships)
