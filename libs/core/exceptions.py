"""Custom exceptions for the membership registry."""

from enum import Enum
from typing import Any, Optional


class MembershipRegistryError(Exception):
    """Base exception for the membership registry."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class LedgerError(MembershipRegistryError):
    """Remote ledger errors."""

    pass


class UserRejectedError(LedgerError):
    """The account holder declined to sign a ledger write."""

    pass


class NetworkFailureError(LedgerError):
    """Ledger could not be reached or answered with an error."""

    pass


class SystemUnavailable(MembershipRegistryError):
    """
    Backend not ready.

    Callers abort the operation and keep any previously loaded collection.
    """

    pass


class DecodeError(MembershipRegistryError):
    """Stored JSON for the index or a payload record is malformed."""

    def __init__(
        self,
        message: str,
        key: str,
        context: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, context)
        self.key = key


class MintFailureReason(str, Enum):
    """Why a create operation failed."""

    USER_REJECTED = "user_rejected"
    REMOTE_WRITE_FAILED = "remote_write_failed"
    UNKNOWN = "unknown"


class MintFailure(MembershipRegistryError):
    """Create operation failed. Recoverable, the user may retry."""

    def __init__(
        self,
        reason: MintFailureReason,
        message: str,
        context: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, context)
        self.reason = reason


class VerifyFailure(MembershipRegistryError):
    """Proof verification could not be performed."""

    def __init__(
        self,
        message: str,
        membership_id: str,
        context: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, context)
        self.membership_id = membership_id
