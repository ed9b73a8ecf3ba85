"""Remote ledger clients."""

from libs.ledger.base import RemoteLedgerClient
from libs.ledger.client import HttpLedgerClient
from libs.ledger.memory import InMemoryLedgerClient

__all__ = [
    "RemoteLedgerClient",
    "HttpLedgerClient",
    "InMemoryLedgerClient",
]
