"""Dict-backed ledger used for local runs and tests."""

import logging
import uuid
from typing import Optional

from libs.core.exceptions import NetworkFailureError
from libs.core.models import LedgerReceipt

logger = logging.getLogger(__name__)


class InMemoryLedgerClient:
    """In-process stand-in for the remote ledger."""

    def __init__(self, data: Optional[dict[str, bytes]] = None, available: bool = True):
        self.data: dict[str, bytes] = dict(data or {})
        self.available = available
        self.write_count = 0

    async def is_available(self) -> bool:
        return self.available

    async def get_data(self, key: str) -> bytes:
        if not self.available:
            raise NetworkFailureError("Ledger offline", context={"key": key})
        return self.data.get(key, b"")

    async def set_data(self, key: str, value: bytes) -> LedgerReceipt:
        if not self.available:
            raise NetworkFailureError("Ledger offline", context={"key": key})
        self.data[key] = bytes(value)
        self.write_count += 1
        logger.debug(f"[InMemoryLedger] set {key} ({len(value)} bytes)")
        return LedgerReceipt(key=key, reference=uuid.uuid4().hex)
