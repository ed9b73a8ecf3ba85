"""Remote ledger client interface."""

from typing import Protocol, runtime_checkable

from libs.core.models import LedgerReceipt


@runtime_checkable
class RemoteLedgerClient(Protocol):
    """
    Narrow get/set interface of the remote key/value ledger.

    There are no transactions and no list queries. ``get_data`` returns an
    empty byte string for absent keys. ``set_data`` may raise
    ``UserRejectedError`` or ``NetworkFailureError``.
    """

    async def is_available(self) -> bool: ...

    async def get_data(self, key: str) -> bytes: ...

    async def set_data(self, key: str, value: bytes) -> LedgerReceipt: ...
