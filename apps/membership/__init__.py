"""Membership catalog application layer."""

from apps.membership.app_state import (
    Action,
    ActionType,
    AppStateStore,
    MembershipAppState,
    reduce,
)
from apps.membership.orchestrator import MintOrchestrator, WalletConnector, build_orchestrator

__all__ = [
    "Action",
    "ActionType",
    "AppStateStore",
    "MembershipAppState",
    "reduce",
    "MintOrchestrator",
    "WalletConnector",
    "build_orchestrator",
]
