# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# idwallet/bls12381.py

"""
BLS12-381 group helpers.

Group elements travel through the package as compressed hex strings: 48 bytes
for G1 (commitments, ciphertexts, registration IDs, provider keys) and 96
bytes for G2 (provider signatures). Every helper takes and returns that form,
so structures can hold points as plain `str` and compare them with `==`.
Compression is canonical, so equal strings mean equal points.
"""

import secrets
from random import Random
from eth_typing import BLSPubkey, BLSSignature
from py_ecc.bls.g2_primitives import (
    G1_to_pubkey,
    G2_to_signature,
    pubkey_to_G1,
    signature_to_G2,
)
from py_ecc.fields import optimized_bls12_381_FQ as FQ
from py_ecc.optimized_bls12_381 import (
    G1,
    G2,
    Z1,
    Z2,
    add,
    curve_order,
    eq,
    multiply,
    neg,
)
from idwallet.errors import SerialError

# size in bytes of a compressed G1 element, a compressed G2 element and a scalar
G1_SIZE = 48
G2_SIZE = 96
SCALAR_SIZE = 32


def rng(csprng: Random | None = None) -> int:
    """
    Sample a non-zero scalar below the curve order.

    Args:
        csprng (Random | None): Source of randomness. When omitted the
            `secrets` module is used.

    Returns:
        int: A random number in [1, curve_order - 1].
    """
    if csprng is None:
        return secrets.randbelow(curve_order - 1) + 1
    return csprng.randrange(1, curve_order)


def g1_point(scalar: int) -> str:
    """`scalar` times the G1 generator, compressed."""
    return G1_to_pubkey(multiply(G1, scalar % curve_order)).hex()


def g2_point(scalar: int) -> str:
    """`scalar` times the G2 generator, compressed."""
    return G2_to_signature(multiply(G2, scalar % curve_order)).hex()


def uncompress(element: str) -> tuple:
    """
    Decode a compressed G1 or G2 element, picking the group by length.

    Raises:
        SerialError: If the string is not hex, has the wrong length or is not a
            valid subgroup element.
    """
    try:
        raw = bytes.fromhex(element)
        if len(raw) == G1_SIZE:
            return pubkey_to_G1(BLSPubkey(raw))
        if len(raw) == G2_SIZE:
            return signature_to_G2(BLSSignature(raw))
    except ValueError as e:
        raise SerialError(f"Invalid group element: {e}") from e
    raise SerialError(f"Invalid group element length: {len(element) // 2} bytes")


def compress(element: tuple) -> str:
    if isinstance(element[2], FQ):
        return G1_to_pubkey(element).hex()
    return G2_to_signature(element).hex()


def scale(element: str, scalar: int) -> str:
    """
    Scalar multiplication. The scalar is reduced modulo the curve order, so
    negative scalars negate.
    """
    return compress(multiply(uncompress(element), scalar % curve_order))


def combine(left_element: str, right_element: str) -> str:
    """Group addition of two points of the same group."""
    return compress(add(uncompress(left_element), uncompress(right_element)))


def subtract(left_element: str, right_element: str) -> str:
    """
    Computes `left - right` in the group.
    """
    return compress(add(uncompress(left_element), neg(uncompress(right_element))))


def multi_scale(terms: list[tuple[str, int]]) -> str:
    """
    Computes the linear combination `sum(scalar_i * element_i)`.

    Args:
        terms: Pairs of (compressed point, scalar). Must be non-empty and all
            points must live in the same group.

    Returns:
        str: The compressed result.
    """
    acc = None
    for element, scalar in terms:
        term = multiply(uncompress(element), scalar % curve_order)
        acc = term if acc is None else add(acc, term)
    if acc is None:
        raise ValueError("multi_scale needs at least one term")
    return compress(acc)


def same_point(left_element: str, right_element: str) -> bool:
    """
    Compare two compressed points as group elements.
    """
    return eq(uncompress(left_element), uncompress(right_element))


def to_int(hash_digest: str) -> int:
    """
    Interpret a hex digest as a scalar reduced modulo the curve order.

        c = int(hash_digest, 16) mod curve_order

    Args:
        hash_digest: Hex-encoded digest string (no '0x' prefix expected).

    Returns:
        An integer scalar in the range [0, curve_order - 1].
    """
    return int(hash_digest, 16) % curve_order


def from_int(integer: int) -> str:
    """
    Encode a scalar as a fixed width, 32 byte big-endian hex string.

    Scalars are always written at full width so that every encoding of a
    structure that contains them has the same length.
    """
    return (integer % curve_order).to_bytes(SCALAR_SIZE, "big").hex()


def scalar_inverse(integer: int) -> int:
    """
    Multiplicative inverse in the scalar field.

    Raises:
        ZeroDivisionError: If the scalar is zero modulo the curve order.
    """
    if integer % curve_order == 0:
        raise ZeroDivisionError("zero has no inverse in the scalar field")
    return pow(integer, -1, curve_order)


# identity elements
g1_identity = compress(Z1)
g2_identity = compress(Z2)

# curve order
curve_order = curve_order
