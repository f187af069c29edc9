"""Confidential amount algebra backed by Paillier encryption."""

from confidential_swap.fhe.algebra import UINT64_MODULUS, CiphertextAlgebra, ConfidentialAmount
from confidential_swap.fhe.inputs import ExternalCiphertext, InputVerifier, encrypt_input
from confidential_swap.fhe.keys import KeyRing

__all__ = [
    "CiphertextAlgebra",
    "ConfidentialAmount",
    "ExternalCiphertext",
    "InputVerifier",
    "KeyRing",
    "UINT64_MODULUS",
    "encrypt_input",
]
