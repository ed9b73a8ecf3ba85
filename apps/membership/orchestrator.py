"""
apps/membership/orchestrator.py

Turns user actions (connect, refresh, mint, verify) into registry calls,
application state mutations and transaction status updates.

Every failure ends here as a status message; nothing propagates to the
caller except programming errors.
"""

import logging
import time
from typing import Awaitable, Callable, Optional, Protocol

from apps.membership.app_state import ActionType, AppStateStore
from libs.core.config import get_settings
from libs.core.exceptions import MintFailure, MintFailureReason, SystemUnavailable, VerifyFailure
from libs.core.logging_config import log_operation_end, log_operation_start, setup_logging
from libs.core.models import MembershipRecord, VerificationResult
from libs.ledger.base import RemoteLedgerClient
from libs.ledger.client import HttpLedgerClient
from libs.registry.store import RegistryStore
from libs.registry.transaction import TransactionStateMachine

logger = logging.getLogger(__name__)

MINT_PENDING_MESSAGE = "Encrypting membership level with FHE..."
MINT_SUCCESS_MESSAGE = "FHE-NFT Membership Minted!"
MINT_REJECTED_MESSAGE = "Transaction rejected by user"
VERIFY_PENDING_MESSAGE = "Verifying FHE proof..."
VERIFY_SUCCESS_MESSAGE = "FHE Proof Verified!"
WALLET_REQUIRED_MESSAGE = "Please connect wallet first"
WALLET_FAILED_MESSAGE = "Failed to connect wallet"

AccountsChangedCallback = Callable[[list[str]], Awaitable[None]]


class WalletConnector(Protocol):
    """Wallet collaborator: account negotiation happens behind this."""

    async def connect(self) -> str: ...

    def on_accounts_changed(self, callback: AccountsChangedCallback) -> None: ...


class MintOrchestrator:
    """Composes RegistryStore, TransactionStateMachine and the app state."""

    def __init__(
        self,
        store: RegistryStore,
        transaction: Optional[TransactionStateMachine] = None,
        app: Optional[AppStateStore] = None,
    ):
        self.store = store
        self.transaction = transaction or TransactionStateMachine()
        self.app = app or AppStateStore()
        self._watched_wallets: list[WalletConnector] = []

    # =========================================================================
    # Wallet
    # =========================================================================

    async def connect_wallet(self, wallet: WalletConnector) -> Optional[str]:
        try:
            account = await wallet.connect()
        except Exception as e:
            logger.error(f"[Orchestrator] Wallet connection failed: {e}")
            self.transaction.resolve(False, WALLET_FAILED_MESSAGE)
            return None

        self.app.dispatch(ActionType.ACCOUNT_CONNECTED, account)
        if not any(w is wallet for w in self._watched_wallets):
            wallet.on_accounts_changed(self.handle_account_change)
            self._watched_wallets.append(wallet)
        logger.info(f"[Orchestrator] Connected account {account}")
        return account

    async def handle_account_change(self, accounts: list[str]) -> None:
        """Switch to the wallet's new active account and reload. Never mints."""
        account = accounts[0] if accounts else ""
        self.app.dispatch(ActionType.ACCOUNT_CHANGED, account)
        logger.info(f"[Orchestrator] Account changed to {account or '<none>'}")
        await self.refresh()

    def disconnect(self) -> None:
        self.app.dispatch(ActionType.ACCOUNT_DISCONNECTED)

    # =========================================================================
    # Refresh
    # =========================================================================

    async def refresh(self) -> Optional[list[MembershipRecord]]:
        """Reload the collection. Keeps the cached one when the ledger is unavailable."""
        self.app.dispatch(ActionType.REFRESH_STARTED)
        try:
            records = await self.store.load()
        except SystemUnavailable as e:
            logger.warning(f"[Orchestrator] Refresh skipped: {e.message}")
            self.app.dispatch(ActionType.REFRESH_FAILED, e.message)
            return None

        self.app.dispatch(ActionType.MEMBERSHIPS_LOADED, records)
        return records

    # =========================================================================
    # Mint
    # =========================================================================

    async def mint(self) -> Optional[MembershipRecord]:
        """Mint the current draft for the connected account."""
        state = self.app.state
        if not state.connected:
            self.transaction.resolve(False, WALLET_REQUIRED_MESSAGE)
            return None
        if state.minting:
            logger.warning("[Orchestrator] Mint already in progress, ignoring request")
            return None

        draft = state.draft.model_copy(update={"owner": state.account})
        log_operation_start(logger, "mint", f"owner={draft.owner} level={draft.level}")
        started = time.perf_counter()

        self.app.dispatch(ActionType.MINT_STARTED)
        self.transaction.start(MINT_PENDING_MESSAGE)
        try:
            receipt = await self.store.create(draft)
        except MintFailure as e:
            if e.reason is MintFailureReason.USER_REJECTED:
                message = MINT_REJECTED_MESSAGE
            else:
                message = f"Minting failed: {e.message or 'Unknown error'}"
            self.transaction.resolve(False, message)
            log_operation_end(logger, "mint", False, (time.perf_counter() - started) * 1000, e.reason.value)
            return None
        finally:
            self.app.dispatch(ActionType.MINT_FINISHED)

        self.transaction.resolve(True, MINT_SUCCESS_MESSAGE)
        if receipt.memberships is not None:
            self.app.dispatch(ActionType.MEMBERSHIPS_LOADED, receipt.memberships)
        self.app.dispatch(ActionType.DRAFT_RESET)

        log_operation_end(logger, "mint", True, (time.perf_counter() - started) * 1000, receipt.record.id)
        return receipt.record

    # =========================================================================
    # Verify
    # =========================================================================

    async def verify(self, membership_id: str) -> Optional[VerificationResult]:
        if not self.app.state.connected:
            self.transaction.resolve(False, WALLET_REQUIRED_MESSAGE)
            return None

        log_operation_start(logger, "verify", membership_id)
        started = time.perf_counter()
        self.transaction.start(VERIFY_PENDING_MESSAGE)

        try:
            result = await self.store.verify(membership_id)
        except VerifyFailure as e:
            self.transaction.resolve(False, f"Verification failed: {e.message or 'Unknown error'}")
            log_operation_end(logger, "verify", False, (time.perf_counter() - started) * 1000)
            return None

        if result.valid:
            self.transaction.resolve(True, VERIFY_SUCCESS_MESSAGE)
        else:
            self.transaction.resolve(False, f"Verification failed: {result.message or 'Unknown error'}")
        log_operation_end(logger, "verify", result.valid, (time.perf_counter() - started) * 1000)
        return result

    async def aclose(self) -> None:
        await self.transaction.aclose()


def build_orchestrator(ledger: Optional[RemoteLedgerClient] = None) -> MintOrchestrator:
    """Wire an orchestrator against ``ledger``, or the configured HTTP ledger.

    Call once at startup; configures logging on first use.
    """
    setup_logging(level=get_settings().log_level)
    return MintOrchestrator(RegistryStore(ledger or HttpLedgerClient()))
