# conftest.py
# Put the repository root on sys.path so `libs.*` and `apps.*` import the
# same way with or without an editable install, and share ledger fixtures.

import asyncio
import json
import sys
from pathlib import Path

import pytest
import pytest_asyncio

ROOT = Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT)

if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)

from libs.core.exceptions import NetworkFailureError  # noqa: E402
from libs.core.models import LedgerReceipt  # noqa: E402
from libs.ledger.memory import InMemoryLedgerClient  # noqa: E402
from libs.registry.capabilities import SimulatedVerifier  # noqa: E402
from libs.registry.store import RegistryStore  # noqa: E402
from libs.registry.transaction import TransactionStateMachine  # noqa: E402


def payload_bytes(level="FHE-L1", owner="0xOwner", join_date=1700000000, benefits=None, proof="FHE-PROOF-1"):
    return json.dumps(
        {
            "level": level,
            "owner": owner,
            "joinDate": join_date,
            "benefits": benefits if benefits is not None else [],
            "fheProof": proof,
        }
    ).encode("utf-8")


class InterleavingLedger(InMemoryLedgerClient):
    """Yields to the event loop inside every read and write.

    Two unsynchronized read-modify-write cycles against this ledger
    interleave between the index read and the index write.
    """

    async def get_data(self, key):
        await asyncio.sleep(0)
        value = await super().get_data(key)
        await asyncio.sleep(0)
        return value

    async def set_data(self, key, value):
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        return await super().set_data(key, value)


class FailingWriteLedger(InMemoryLedgerClient):
    """Raises a configured error on writes to keys matching ``fail_on``."""

    def __init__(self, error, fail_on="", **kwargs):
        super().__init__(**kwargs)
        self.error = error
        self.fail_on = fail_on

    async def set_data(self, key, value) -> LedgerReceipt:
        if key.startswith(self.fail_on):
            raise self.error
        return await super().set_data(key, value)


class FailingReadLedger(InMemoryLedgerClient):
    """Raises NetworkFailureError when reading any key in ``broken_keys``."""

    def __init__(self, broken_keys, **kwargs):
        super().__init__(**kwargs)
        self.broken_keys = set(broken_keys)

    async def get_data(self, key):
        if key in self.broken_keys:
            raise NetworkFailureError(f"read failed for {key}")
        return await super().get_data(key)


@pytest.fixture
def ledger():
    return InMemoryLedgerClient()


@pytest.fixture
def store(ledger):
    return RegistryStore(ledger, verifier=SimulatedVerifier(delay_seconds=0))


@pytest_asyncio.fixture
async def transaction():
    machine = TransactionStateMachine(success_reset_seconds=0.05, error_reset_seconds=0.1)
    yield machine
    await machine.aclose()

