#!/usr/bin/env python3
"""Encrypt an amount for deposit/swap and print the ciphertext and its proof."""

import json
import sys

from confidential_swap.config import get_settings
from confidential_swap.fhe import InputVerifier, KeyRing, encrypt_input


def main(account: str, amount: int) -> None:
    settings = get_settings()
    keyring = KeyRing.load(settings.fhe_key_file)
    verifier = InputVerifier(settings.input_proof_secret, settings.contract_address)

    raw, proof = encrypt_input(keyring.public_key, amount, account, verifier)
    print(json.dumps({"account": account, "ciphertext": raw.to_wire(), "proof": proof}, indent=2))


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("Usage: python encrypt_input.py <account> <amount>")
        print("Example: python encrypt_input.py 0xabc 100")
        sys.exit(1)

    main(sys.argv[1], int(sys.argv[2]))
