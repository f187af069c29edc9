"""Externally supplied ciphertexts and their validity proofs.

A client encrypts an amount under the ledger's public key and asks the input verifier
to attest it. The attestation binds the ciphertext to the submitting caller and to this
contract, so a ciphertext lifted from someone else's transaction cannot be replayed.
"""

from dataclasses import dataclass

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac
from phe import paillier

from confidential_swap.errors import InvalidProof

UINT64_MAX = 2**64 - 1


@dataclass(frozen=True)
class ExternalCiphertext:
    """Raw ciphertext as submitted by a client, not yet usable by the ledger."""

    ciphertext: int

    def to_wire(self) -> str:
        return hex(self.ciphertext)

    @classmethod
    def from_wire(cls, value: str) -> "ExternalCiphertext":
        try:
            return cls(ciphertext=int(value, 0))
        except (TypeError, ValueError):
            raise InvalidProof("Malformed ciphertext encoding")


class InputVerifier:
    """Issues and checks HMAC attestations over (ciphertext, caller, contract)."""

    def __init__(self, secret: str | bytes, contract_address: str):
        self._key = secret.encode() if isinstance(secret, str) else secret
        self.contract_address = contract_address

    def _mac(self, raw: ExternalCiphertext, caller: str) -> hmac.HMAC:
        mac = hmac.HMAC(self._key, hashes.SHA256())
        # callers are case-sensitive ledger keys
        mac.update(f"{raw.ciphertext:x}|{caller}|{self.contract_address}".encode())
        return mac

    def attest(self, raw: ExternalCiphertext, caller: str) -> str:
        """Return the hex proof for a ciphertext submitted by ``caller``."""
        return self._mac(raw, caller).finalize().hex()

    def verify(self, raw: ExternalCiphertext, proof: str, caller: str) -> None:
        """Raise InvalidProof unless ``proof`` attests ``raw`` for ``caller``."""
        try:
            signature = bytes.fromhex(proof)
        except (TypeError, ValueError):
            raise InvalidProof("Malformed proof encoding")

        try:
            self._mac(raw, caller).verify(signature)
        except InvalidSignature:
            raise InvalidProof()


def encrypt_input(
    public_key: paillier.PaillierPublicKey,
    value: int,
    caller: str,
    verifier: InputVerifier,
) -> tuple[ExternalCiphertext, str]:
    """Client-side helper: encrypt a 64-bit amount and obtain its proof."""
    if not 0 <= value <= UINT64_MAX:
        raise ValueError(f"Amount {value} does not fit in 64 bits")

    encrypted = public_key.encrypt(value)
    raw = ExternalCiphertext(ciphertext=encrypted.ciphertext())
    return raw, verifier.attest(raw, caller)
