"""Additively homomorphic ciphertext algebra.

ConfidentialAmount wraps a Paillier ciphertext together with the set of principals
allowed to use it. The algebra never decrypts on the hot path: add and subtract work on
ciphertexts and return new values. Magnitudes are 64-bit unsigned, so decrypted results
wrap modulo 2**64 (subtracting past zero yields a huge value, not an error).
"""

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Optional

from phe import paillier

from confidential_swap.errors import InvalidProof, NotAuthorizedReader
from confidential_swap.fhe.inputs import ExternalCiphertext, InputVerifier

logger = logging.getLogger(__name__)

UINT64_MODULUS = 2**64


@dataclass(frozen=True, eq=False)
class ConfidentialAmount:
    """Opaque encrypted 64-bit amount with its reader ACL."""

    ciphertext: int = field(repr=False)
    readers: frozenset[str] = frozenset()

    @property
    def handle(self) -> str:
        """Stable public identifier of the ciphertext (safe to log and emit)."""
        width = (self.ciphertext.bit_length() + 7) // 8 or 1
        return "0x" + hashlib.sha256(self.ciphertext.to_bytes(width, "big")).hexdigest()

    def is_readable_by(self, principal: str) -> bool:
        return principal in self.readers


class CiphertextAlgebra:
    """Homomorphic add/subtract, ACL grants and external-input ingestion."""

    def __init__(
        self,
        public_key: paillier.PaillierPublicKey,
        verifier: InputVerifier,
        private_key: Optional[paillier.PaillierPrivateKey] = None,
    ):
        self.public_key = public_key
        self.verifier = verifier
        self._private_key = private_key

    def _open(self, principal: str, amount: ConfidentialAmount) -> paillier.EncryptedNumber:
        if not amount.is_readable_by(principal):
            raise NotAuthorizedReader(principal, amount.handle)
        return paillier.EncryptedNumber(self.public_key, amount.ciphertext)

    def _seal(self, encrypted: paillier.EncryptedNumber, principal: str) -> ConfidentialAmount:
        return ConfidentialAmount(
            ciphertext=encrypted.ciphertext(be_secure=True),
            readers=frozenset({principal}),
        )

    def trivial_encrypt(self, value: int, principal: str) -> ConfidentialAmount:
        """Encrypt a public constant (used for the implicit zero balance)."""
        return self._seal(self.public_key.encrypt(value % UINT64_MODULUS), principal)

    def add(self, principal: str, lhs: ConfidentialAmount, rhs: ConfidentialAmount) -> ConfidentialAmount:
        """Return Enc(lhs + rhs), readable by ``principal`` only."""
        return self._seal(self._open(principal, lhs) + self._open(principal, rhs), principal)

    def sub(self, principal: str, lhs: ConfidentialAmount, rhs: ConfidentialAmount) -> ConfidentialAmount:
        """Return Enc(lhs - rhs). No underflow check, wraps on decryption."""
        return self._seal(self._open(principal, lhs) - self._open(principal, rhs), principal)

    @staticmethod
    def allow(amount: ConfidentialAmount, *principals: str) -> ConfidentialAmount:
        """Return the same ciphertext with ``principals`` added to its readers."""
        return ConfidentialAmount(
            ciphertext=amount.ciphertext,
            readers=amount.readers | frozenset(principals),
        )

    def import_external(
        self,
        raw: ExternalCiphertext,
        proof: str,
        caller: str,
    ) -> ConfidentialAmount:
        """Verify a client ciphertext and turn it into an internal amount.

        The result has no readers yet; the importer grants access explicitly.
        """
        if not 0 < raw.ciphertext < self.public_key.nsquare:
            raise InvalidProof("Ciphertext is outside the ledger key's range")
        self.verifier.verify(raw, proof, caller)
        return ConfidentialAmount(ciphertext=raw.ciphertext)

    def decrypt(self, amount: ConfidentialAmount, reader: str) -> int:
        """Off-chain decryption on behalf of an ACL member."""
        if self._private_key is None:
            raise RuntimeError("Decryption key not loaded")
        encrypted = self._open(reader, amount)
        return self._private_key.decrypt(encrypted) % UINT64_MODULUS
