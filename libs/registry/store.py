"""
libs/registry/store.py

Reconstructs the membership collection from the ledger's two-level key
namespace and performs the two-write create protocol.

The ledger offers no transactions, so the index update in ``create`` is a
read-modify-write. All such cycles run under a single-writer asyncio lock
owned by the store; two creates issued together against the same store can
no longer drop each other's id from the index. Writers in other processes
are not covered by the lock.
"""

import asyncio
import logging
import random
import string
import time
from typing import Callable, Optional

from libs.core.exceptions import (
    DecodeError,
    LedgerError,
    MintFailure,
    MintFailureReason,
    NetworkFailureError,
    SystemUnavailable,
    UserRejectedError,
    VerifyFailure,
)
from libs.core.models import MembershipDraft, MembershipRecord, MintReceipt, VerificationResult
from libs.ledger.base import RemoteLedgerClient
from libs.registry.capabilities import Encryptor, SimulatedEncryptor, SimulatedVerifier, Verifier
from libs.registry.codec import (
    INDEX_KEY,
    decode_index,
    decode_record,
    encode_index,
    encode_record,
    record_key,
)

logger = logging.getLogger(__name__)

ID_SUFFIX_ALPHABET = string.digits + string.ascii_lowercase
ID_SUFFIX_LENGTH = 4
MAX_ID_ATTEMPTS = 5


def generate_membership_id(clock: Callable[[], float] = time.time) -> str:
    """Build ``MEM-{epoch_ms}-{4 base36 chars}``."""
    suffix = "".join(random.choices(ID_SUFFIX_ALPHABET, k=ID_SUFFIX_LENGTH))
    return f"MEM-{int(clock() * 1000)}-{suffix}"


class RegistryStore:
    """Sole writer of the membership index and payload records."""

    def __init__(
        self,
        ledger: RemoteLedgerClient,
        encryptor: Optional[Encryptor] = None,
        verifier: Optional[Verifier] = None,
        id_factory: Optional[Callable[[], str]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.ledger = ledger
        self.encryptor = encryptor or SimulatedEncryptor()
        self.verifier = verifier or SimulatedVerifier()
        self.clock = clock
        self._id_factory = id_factory or (lambda: generate_membership_id(self.clock))
        self._index_lock = asyncio.Lock()

    # =========================================================================
    # Load
    # =========================================================================

    async def load(self) -> list[MembershipRecord]:
        """
        Rebuild the full collection in index order.

        Missing or corrupt records are skipped so the rest stay visible.

        Raises:
            SystemUnavailable: Ledger not ready, or the index could not be read
        """
        await self._require_available()

        try:
            ids = await self._read_index()
        except LedgerError as e:
            raise SystemUnavailable(f"Could not read membership index: {e.message}", e.context) from e

        records: list[MembershipRecord] = []
        for membership_id in ids:
            record = await self._read_record(membership_id)
            if record is not None:
                records.append(record)

        skipped = len(ids) - len(records)
        logger.info(
            f"[RegistryStore] Loaded {len(records)} membership(s)"
            + (f", skipped {skipped}" if skipped else "")
        )
        return records

    async def _require_available(self):
        try:
            available = await self.ledger.is_available()
        except LedgerError as e:
            raise SystemUnavailable(f"Ledger availability check failed: {e.message}", e.context) from e
        if not available:
            raise SystemUnavailable("FHE system not available")

    async def _read_index(self) -> list[str]:
        """Read the index from the ledger. A corrupt index reads as empty."""
        raw = await self.ledger.get_data(INDEX_KEY)
        try:
            return decode_index(raw)
        except DecodeError as e:
            logger.error(f"[RegistryStore] Error parsing membership keys: {e.message}")
            return []

    async def _read_record(self, membership_id: str) -> Optional[MembershipRecord]:
        try:
            raw = await self.ledger.get_data(record_key(membership_id))
        except LedgerError as e:
            logger.warning(f"[RegistryStore] Error loading membership {membership_id}: {e.message}")
            return None

        if not raw:
            logger.warning(f"[RegistryStore] Membership {membership_id} listed in index but has no payload")
            return None

        try:
            return decode_record(membership_id, raw)
        except DecodeError as e:
            logger.warning(f"[RegistryStore] Error parsing membership {membership_id}: {e.message}")
            return None

    # =========================================================================
    # Create
    # =========================================================================

    async def create(self, draft: MembershipDraft) -> MintReceipt:
        """
        Mint a membership: write its payload, append its id to the index,
        then reload the collection.

        The caller must ensure ``draft.owner`` is a connected account.

        Raises:
            MintFailure: USER_REJECTED, REMOTE_WRITE_FAILED or UNKNOWN
        """
        try:
            async with self._index_lock:
                record = await self._write_new_record(draft)
        except MintFailure:
            raise
        except UserRejectedError as e:
            raise MintFailure(MintFailureReason.USER_REJECTED, e.message, e.context) from e
        except NetworkFailureError as e:
            raise MintFailure(MintFailureReason.REMOTE_WRITE_FAILED, e.message, e.context) from e
        except Exception as e:
            logger.exception(f"[RegistryStore] Unexpected error while minting: {e}")
            raise MintFailure(MintFailureReason.UNKNOWN, str(e) or type(e).__name__) from e

        try:
            memberships = await self.load()
        except SystemUnavailable as e:
            logger.warning(f"[RegistryStore] Minted {record.id} but reload failed: {e.message}")
            memberships = None

        return MintReceipt(record=record, memberships=memberships)

    async def _read_index_for_write(self) -> list[str]:
        """Read the index for an append. A corrupt index is never overwritten."""
        raw = await self.ledger.get_data(INDEX_KEY)
        try:
            return decode_index(raw)
        except DecodeError as e:
            logger.error(f"[RegistryStore] Refusing to mint over unreadable index: {e.message}")
            raise MintFailure(MintFailureReason.UNKNOWN, "membership index unreadable") from e

    async def _write_new_record(self, draft: MembershipDraft) -> MembershipRecord:
        """Must be called with the index lock held."""
        existing = set(await self._read_index_for_write())
        membership_id = self._unique_id(existing)

        encrypted = await self.encryptor.encrypt(draft.level)
        record = MembershipRecord(
            id=membership_id,
            encrypted_level=encrypted.ciphertext_label,
            owner=draft.owner,
            join_date=int(self.clock()),
            benefits=list(draft.benefits),
            proof=encrypted.proof,
        )

        await self.ledger.set_data(record_key(membership_id), encode_record(record))

        ids = await self._read_index_for_write()
        ids.append(membership_id)
        await self.ledger.set_data(INDEX_KEY, encode_index(ids))

        logger.info(f"[RegistryStore] Minted {membership_id} (index size {len(ids)})")
        return record

    def _unique_id(self, existing: set[str]) -> str:
        for _ in range(MAX_ID_ATTEMPTS):
            membership_id = self._id_factory()
            if membership_id not in existing:
                return membership_id
            logger.warning(f"[RegistryStore] Generated id {membership_id} already in index, retrying")
        raise MintFailure(
            MintFailureReason.UNKNOWN,
            f"Could not generate a unique membership id after {MAX_ID_ATTEMPTS} attempts",
        )

    # =========================================================================
    # Verify
    # =========================================================================

    async def verify(self, membership_id: str) -> VerificationResult:
        """
        Run the Verifier capability against a membership's stored proof.

        Raises:
            VerifyFailure: Ledger not ready, unknown id, or verifier error
        """
        try:
            await self._require_available()
        except SystemUnavailable as e:
            raise VerifyFailure("FHE system not ready", membership_id, e.context) from e

        try:
            raw = await self.ledger.get_data(record_key(membership_id))
        except LedgerError as e:
            raise VerifyFailure(e.message, membership_id, e.context) from e

        if not raw:
            raise VerifyFailure(f"Membership {membership_id} not found", membership_id)

        try:
            record = decode_record(membership_id, raw)
        except DecodeError as e:
            raise VerifyFailure(e.message, membership_id) from e

        try:
            result = await self.verifier.verify(record.proof)
        except Exception as e:
            logger.error(f"[RegistryStore] Verifier error for {membership_id}: {e}")
            raise VerifyFailure(str(e) or type(e).__name__, membership_id) from e

        logger.info(f"[RegistryStore] Verified {membership_id}: valid={result.valid}")
        return result
