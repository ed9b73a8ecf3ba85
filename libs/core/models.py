"""Pydantic models for the membership registry."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_LEVEL = "1"
DEFAULT_BENEFITS = ["Private Access", "Exclusive Content"]


class MembershipRecord(BaseModel):
    """A minted membership as reconstructed from the ledger.

    Records are never mutated after creation.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    encrypted_level: str = Field(alias="encryptedLevel")  # opaque ciphertext label
    owner: str
    join_date: int = Field(alias="joinDate", gt=0)  # unix seconds
    benefits: list[str] = Field(default_factory=list)
    proof: str = ""


class MembershipDraft(BaseModel):
    """Input for a create operation."""

    owner: str = ""
    level: str = DEFAULT_LEVEL
    benefits: list[str] = Field(default_factory=lambda: list(DEFAULT_BENEFITS))


class MintReceipt(BaseModel):
    """Outcome of a create operation.

    ``memberships`` is the reloaded collection, or None when the reload
    could not run and the caller should keep its cache.
    """

    record: MembershipRecord
    memberships: Optional[list[MembershipRecord]] = None


class EncryptionResult(BaseModel):
    """Output of an Encryptor capability."""

    ciphertext_label: str
    proof: str


class VerificationResult(BaseModel):
    """Output of a Verifier capability."""

    valid: bool
    message: str = ""


class LedgerReceipt(BaseModel):
    """Confirmation returned by a ledger write."""

    key: str
    confirmed: bool = True
    reference: Optional[str] = None
