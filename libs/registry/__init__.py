"""
Membership registry: ledger synchronization, transaction status, filtering.

Contains:
- RegistryStore: Collection reconstruction and the two-write create protocol
- TransactionStateMachine: Single-slot status with timed auto-reset
- filter_memberships / membership_stats / level_label: Pure queries
- codec: Wire encoding of the index and payload records
- capabilities: Encryptor/Verifier interfaces and simulated placeholders
"""

from libs.registry.capabilities import (
    Encryptor,
    SimulatedEncryptor,
    SimulatedVerifier,
    Verifier,
)
from libs.registry.codec import INDEX_KEY, MembershipPayload, record_key
from libs.registry.filters import ALL_TAB, filter_memberships, level_label, membership_stats
from libs.registry.store import RegistryStore, generate_membership_id
from libs.registry.transaction import (
    TransactionPhase,
    TransactionState,
    TransactionStateMachine,
)

__all__ = [
    # Store
    "RegistryStore",
    "generate_membership_id",
    # Codec
    "INDEX_KEY",
    "MembershipPayload",
    "record_key",
    # Capabilities
    "Encryptor",
    "Verifier",
    "SimulatedEncryptor",
    "SimulatedVerifier",
    # Transaction status
    "TransactionPhase",
    "TransactionState",
    "TransactionStateMachine",
    # Filtering
    "ALL_TAB",
    "filter_memberships",
    "level_label",
    "membership_stats",
]
