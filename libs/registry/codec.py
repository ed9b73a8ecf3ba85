"""
Wire encoding for membership records.

Key namespace on the ledger:

    membership_keys     JSON array of id strings (the index)
    membership_{id}     JSON object {level, owner, joinDate, benefits, fheProof}

Payload field names are fixed; existing stored data depends on them.
"""

import json

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from libs.core.exceptions import DecodeError
from libs.core.models import MembershipRecord

INDEX_KEY = "membership_keys"
RECORD_KEY_PREFIX = "membership_"

_index_adapter = TypeAdapter(list[str])


class MembershipPayload(BaseModel):
    """Payload record exactly as stored under ``membership_{id}``."""

    level: str
    owner: str
    joinDate: int = Field(gt=0)
    benefits: list[str] = Field(default_factory=list)
    fheProof: str = ""

    @field_validator("benefits", "fheProof", mode="before")
    @classmethod
    def _null_as_empty(cls, value, info):
        if value is None:
            return [] if info.field_name == "benefits" else ""
        return value


def record_key(membership_id: str) -> str:
    """Ledger key of a payload record."""
    return f"{RECORD_KEY_PREFIX}{membership_id}"


def _dumps(value) -> bytes:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def encode_index(ids: list[str]) -> bytes:
    return _dumps(list(ids))


def decode_index(raw: bytes) -> list[str]:
    """
    Decode the index record.

    Empty input means no index has been written yet.

    Raises:
        DecodeError: Not UTF-8 JSON, or not an array of strings
    """
    if not raw:
        return []
    try:
        return _index_adapter.validate_json(raw)
    except (ValidationError, UnicodeDecodeError) as e:
        raise DecodeError(f"Malformed index: {e}", key=INDEX_KEY) from e


def encode_record(record: MembershipRecord) -> bytes:
    payload = MembershipPayload(
        level=record.encrypted_level,
        owner=record.owner,
        joinDate=record.join_date,
        benefits=list(record.benefits),
        fheProof=record.proof,
    )
    return _dumps(payload.model_dump())


def decode_record(membership_id: str, raw: bytes) -> MembershipRecord:
    """
    Decode a payload record into a MembershipRecord.

    Raises:
        DecodeError: Empty, not UTF-8 JSON, or missing/invalid fields
    """
    key = record_key(membership_id)
    if not raw:
        raise DecodeError("Empty payload record", key=key)
    try:
        payload = MembershipPayload.model_validate_json(raw)
    except (ValidationError, UnicodeDecodeError) as e:
        raise DecodeError(f"Malformed payload: {e}", key=key) from e

    return MembershipRecord(
        id=membership_id,
        encrypted_level=payload.level,
        owner=payload.owner,
        join_date=payload.joinDate,
        benefits=payload.benefits,
        proof=payload.fheProof,
    )
