"""Paillier key pair storage.

The public key is what every ciphertext in the ledger is bound to, so it must survive
restarts. The private half belongs to the off-chain decryption authority and is only
loaded where decryption is needed (tests, tooling).
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from phe import paillier

logger = logging.getLogger(__name__)


@dataclass
class KeyRing:
    """Paillier public key plus optional private key."""

    public_key: paillier.PaillierPublicKey
    private_key: Optional[paillier.PaillierPrivateKey] = None

    @property
    def can_decrypt(self) -> bool:
        return self.private_key is not None

    @classmethod
    def generate(cls, bits: int = 2048) -> "KeyRing":
        """Generate a fresh key pair."""
        public_key, private_key = paillier.generate_paillier_keypair(n_length=bits)
        logger.info(f"Generated {bits}-bit Paillier key pair")
        return cls(public_key=public_key, private_key=private_key)

    def to_dict(self, include_private: bool = True) -> dict:
        data = {"n": str(self.public_key.n)}
        if include_private and self.private_key is not None:
            data["p"] = str(self.private_key.p)
            data["q"] = str(self.private_key.q)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "KeyRing":
        public_key = paillier.PaillierPublicKey(int(data["n"]))
        private_key = None
        if "p" in data and "q" in data:
            private_key = paillier.PaillierPrivateKey(public_key, int(data["p"]), int(data["q"]))
        return cls(public_key=public_key, private_key=private_key)

    def save(self, path: str | Path, include_private: bool = True) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(include_private=include_private)))

    @classmethod
    def load(cls, path: str | Path) -> "KeyRing":
        return cls.from_dict(json.loads(Path(path).read_text()))

    @classmethod
    def load_or_create(cls, path: str | Path, bits: int = 2048) -> "KeyRing":
        """Load the key file, generating and persisting one on first start."""
        path = Path(path)
        if path.exists():
            keyring = cls.load(path)
            logger.info(f"Loaded Paillier key from {path}")
            return keyring

        keyring = cls.generate(bits)
        keyring.save(path)
        logger.warning(f"No key file at {path}; generated a new key pair")
        return keyring
