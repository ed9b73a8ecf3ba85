"""
Encryptor / Verifier capabilities.

The simulated implementations only stand in for a real homomorphic
encryption scheme: the ciphertext label is the level wrapped in a tag and the
proof is a timestamped marker. Neither carries any security property.
Production code swaps in real capabilities without touching RegistryStore.
"""

import asyncio
import logging
import time
from typing import Optional, Protocol

from libs.core.config import get_settings
from libs.core.models import EncryptionResult, VerificationResult

logger = logging.getLogger(__name__)

PROOF_PREFIX = "FHE-PROOF-"


class Encryptor(Protocol):
    async def encrypt(self, level: str) -> EncryptionResult: ...


class Verifier(Protocol):
    async def verify(self, proof: str) -> VerificationResult: ...


class SimulatedEncryptor:
    """Placeholder encryptor producing ``FHE-L{level}`` labels."""

    async def encrypt(self, level: str) -> EncryptionResult:
        return EncryptionResult(
            ciphertext_label=f"FHE-L{level}",
            proof=f"{PROOF_PREFIX}{int(time.time() * 1000)}",
        )


class SimulatedVerifier:
    """Placeholder verifier that waits a fixed latency before answering."""

    def __init__(self, delay_seconds: Optional[float] = None):
        if delay_seconds is None:
            delay_seconds = get_settings().capabilities.verify_delay_seconds
        self.delay_seconds = delay_seconds

    async def verify(self, proof: str) -> VerificationResult:
        await asyncio.sleep(self.delay_seconds)
        if proof.startswith(PROOF_PREFIX):
            return VerificationResult(valid=True, message="FHE Proof Verified!")
        logger.info(f"[SimulatedVerifier] Rejected proof {proof[:32]!r}")
        return VerificationResult(valid=False, message="proof not recognized")
