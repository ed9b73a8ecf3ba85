"""
Tests for the mint/verify orchestration.

Tests apps/membership/orchestrator.py end to end against an in-memory ledger.
"""

import asyncio

import pytest
import pytest_asyncio

from apps.membership.app_state import ActionType
from apps.membership.orchestrator import MintOrchestrator, build_orchestrator
from conftest import FailingWriteLedger, payload_bytes
from libs.core.exceptions import NetworkFailureError, UserRejectedError
from libs.core.models import DEFAULT_BENEFITS
from libs.ledger.memory import InMemoryLedgerClient
from libs.registry.codec import INDEX_KEY, record_key
from libs.registry.store import RegistryStore
from libs.registry.transaction import TransactionPhase, TransactionState


class FakeWallet:
    def __init__(self, account="0xOwner", fail=False):
        self.account = account
        self.fail = fail
        self.callbacks = []

    async def connect(self):
        if self.fail:
            raise ConnectionError("no provider")
        return self.account

    def on_accounts_changed(self, callback):
        self.callbacks.append(callback)

    async def switch(self, accounts):
        for callback in self.callbacks:
            await callback(accounts)


@pytest.fixture
def orchestrator(store, transaction):
    return MintOrchestrator(store, transaction=transaction)


@pytest_asyncio.fixture
async def connected(orchestrator):
    await orchestrator.connect_wallet(FakeWallet())
    return orchestrator


class TestWallet:
    @pytest.mark.asyncio
    async def test_connect_sets_account(self, orchestrator):
        account = await orchestrator.connect_wallet(FakeWallet("0xAbc"))
        assert account == "0xAbc"
        assert orchestrator.app.state.account == "0xAbc"

    @pytest.mark.asyncio
    async def test_connect_failure_reports_error(self, orchestrator):
        assert await orchestrator.connect_wallet(FakeWallet(fail=True)) is None
        assert orchestrator.app.state.connected is False
        assert orchestrator.transaction.state == TransactionState(
            TransactionPhase.ERROR, "Failed to connect wallet"
        )

    @pytest.mark.asyncio
    async def test_account_change_reloads_without_minting(self, ledger, orchestrator):
        ledger.data[INDEX_KEY] = b'["A"]'
        ledger.data[record_key("A")] = payload_bytes()
        wallet = FakeWallet()
        await orchestrator.connect_wallet(wallet)

        await wallet.switch(["0xSecond"])

        assert orchestrator.app.state.account == "0xSecond"
        assert [m.id for m in orchestrator.app.state.memberships] == ["A"]
        assert ledger.write_count == 0

    @pytest.mark.asyncio
    async def test_account_change_to_none(self, orchestrator):
        wallet = FakeWallet()
        await orchestrator.connect_wallet(wallet)
        await wallet.switch([])
        assert orchestrator.app.state.connected is False

    @pytest.mark.asyncio
    async def test_reconnect_reloads_once_per_switch(self, orchestrator):
        wallet = FakeWallet()
        await orchestrator.connect_wallet(wallet)
        await orchestrator.connect_wallet(wallet)
        refreshes = []
        orchestrator.app.subscribe(
            lambda state, action: refreshes.append(action) if action.type is ActionType.REFRESH_STARTED else None
        )

        await wallet.switch(["0xSecond"])

        assert len(wallet.callbacks) == 1
        assert len(refreshes) == 1

    @pytest.mark.asyncio
    async def test_disconnect(self, connected):
        connected.disconnect()
        assert connected.app.state.account == ""


class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_loads_collection(self, ledger, orchestrator):
        ledger.data[INDEX_KEY] = b'["A","B"]'
        ledger.data[record_key("A")] = payload_bytes()

        records = await orchestrator.refresh()

        assert [r.id for r in records] == ["A"]
        assert orchestrator.app.state.loading is False
        assert orchestrator.app.state.refreshing is False

    @pytest.mark.asyncio
    async def test_unavailable_keeps_previous_collection(self, ledger, orchestrator):
        ledger.data[INDEX_KEY] = b'["A"]'
        ledger.data[record_key("A")] = payload_bytes()
        await orchestrator.refresh()

        ledger.available = False
        assert await orchestrator.refresh() is None

        state = orchestrator.app.state
        assert [m.id for m in state.memberships] == ["A"]
        assert state.notice == "FHE system not available"
        assert state.refreshing is False


class TestMint:
    @pytest.mark.asyncio
    async def test_requires_wallet(self, ledger, orchestrator):
        assert await orchestrator.mint() is None
        assert orchestrator.transaction.state == TransactionState(
            TransactionPhase.ERROR, "Please connect wallet first"
        )
        assert ledger.write_count == 0

    @pytest.mark.asyncio
    async def test_mint_success(self, connected):
        connected.app.dispatch(ActionType.DRAFT_UPDATED, {"level": "3", "benefits": ["VIP"]})

        record = await connected.mint()

        assert record.owner == "0xOwner"
        assert record.encrypted_level == "FHE-L3"
        assert record.benefits == ["VIP"]
        assert connected.transaction.state == TransactionState(
            TransactionPhase.SUCCESS, "FHE-NFT Membership Minted!"
        )
        state = connected.app.state
        assert [m.id for m in state.memberships] == [record.id]
        assert state.minting is False
        assert state.draft.level == "1"
        assert state.draft.benefits == DEFAULT_BENEFITS

    @pytest.mark.asyncio
    async def test_mint_tracks_minting_flag(self, connected):
        flags = []
        connected.app.subscribe(lambda state, action: flags.append(state.minting))

        await connected.mint()

        assert True in flags
        assert flags[-1] is False

    @pytest.mark.asyncio
    async def test_double_mint_runs_one_create(self, ledger, connected):
        first, second = await asyncio.gather(connected.mint(), connected.mint())

        assert (first is None) != (second is None)
        assert ledger.write_count == 2
        assert len(connected.app.state.memberships) == 1
        assert connected.app.state.minting is False

    @pytest.mark.asyncio
    async def test_user_rejection_message(self, transaction):
        ledger = FailingWriteLedger(UserRejectedError("user rejected transaction"), fail_on="membership_")
        orchestrator = MintOrchestrator(RegistryStore(ledger), transaction=transaction)
        await orchestrator.connect_wallet(FakeWallet())

        assert await orchestrator.mint() is None

        assert transaction.state == TransactionState(TransactionPhase.ERROR, "Transaction rejected by user")
        assert orchestrator.app.state.minting is False

    @pytest.mark.asyncio
    async def test_write_failure_message(self, transaction):
        ledger = FailingWriteLedger(NetworkFailureError("timeout"), fail_on=INDEX_KEY)
        orchestrator = MintOrchestrator(RegistryStore(ledger), transaction=transaction)
        await orchestrator.connect_wallet(FakeWallet())

        await orchestrator.mint()

        assert transaction.state == TransactionState(TransactionPhase.ERROR, "Minting failed: timeout")

    @pytest.mark.asyncio
    async def test_failed_mint_keeps_draft(self, transaction):
        ledger = FailingWriteLedger(NetworkFailureError("timeout"), fail_on=INDEX_KEY)
        orchestrator = MintOrchestrator(RegistryStore(ledger), transaction=transaction)
        await orchestrator.connect_wallet(FakeWallet())
        orchestrator.app.dispatch(ActionType.DRAFT_UPDATED, {"level": "2"})

        await orchestrator.mint()

        assert orchestrator.app.state.draft.level == "2"


class TestVerify:
    @pytest.mark.asyncio
    async def test_requires_wallet(self, orchestrator):
        assert await orchestrator.verify("A") is None
        assert orchestrator.transaction.state.message == "Please connect wallet first"

    @pytest.mark.asyncio
    async def test_verify_minted_record(self, connected):
        record = await connected.mint()

        result = await connected.verify(record.id)

        assert result.valid is True
        assert connected.transaction.state == TransactionState(TransactionPhase.SUCCESS, "FHE Proof Verified!")

    @pytest.mark.asyncio
    async def test_unknown_record(self, connected):
        assert await connected.verify("MEM-missing") is None
        assert connected.transaction.state == TransactionState(
            TransactionPhase.ERROR, "Verification failed: Membership MEM-missing not found"
        )

    @pytest.mark.asyncio
    async def test_unrecognized_proof(self, ledger, connected):
        ledger.data[record_key("A")] = payload_bytes(proof="forged")

        result = await connected.verify("A")

        assert result.valid is False
        assert connected.transaction.state.phase is TransactionPhase.ERROR


class TestBuild:
    @pytest.mark.asyncio
    async def test_build_with_ledger(self, monkeypatch):
        monkeypatch.setattr("libs.core.logging_config._logging_configured", True)
        ledger = InMemoryLedgerClient()
        orchestrator = build_orchestrator(ledger)
        try:
            assert orchestrator.store.ledger is ledger
            assert await orchestrator.refresh() == []
        finally:
            await orchestrator.aclose()
