# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# idwallet/elgamal.py

"""
Exponential ElGamal over BLS12-381 G1.

A value `m` is encrypted under `pub = a*g` as

    (k*g, m*g + k*pub)

so ciphertexts add component-wise to an encryption of the sum of the values.
Decryption strips `k*a*g` and returns the group element `m*g`; turning that
back into an integer is a discrete logarithm, see `idwallet.dlog`.

Amounts are u64 and encrypted as two independent 32 bit chunks so that the
discrete logarithm of each chunk stays within reach of a baby-step giant-step
table.
"""

from dataclasses import dataclass
from random import Random

from idwallet.bls12381 import (
    combine,
    g1_identity,
    multi_scale,
    rng,
    scale,
    subtract,
)
from idwallet.constants import CHUNK_SIZE, MAX_AMOUNT
from idwallet.dlog import BabyStepGiantStep
from idwallet.errors import InputError
from idwallet.serial import G1, SCALAR, Struct

CHUNK_MASK = (1 << CHUNK_SIZE) - 1


@dataclass(frozen=True)
class Cipher:
    c1: str
    c2: str

    FIELDS = (("c1", G1), ("c2", G1))
    JSON_HEX = True

    @classmethod
    def zero(cls) -> "Cipher":
        return cls(g1_identity, g1_identity)

    def scale(self, scalar: int) -> "Cipher":
        return Cipher(scale(self.c1, scalar), scale(self.c2, scalar))


@dataclass(frozen=True)
class SecretKey:
    # not secret, kept alongside the scalar for convenience
    generator: str
    scalar: int

    FIELDS = (("generator", G1), ("scalar", SCALAR))
    JSON_HEX = True

    @classmethod
    def generate(cls, generator: str, csprng: Random | None = None) -> "SecretKey":
        return cls(generator, rng(csprng))

    def decrypt(self, cipher: Cipher) -> str:
        """
        Return the encrypted group element `c2 - a*c1`. Never fails: a cipher
        made for another key simply decrypts to an unrelated element.
        """
        return subtract(cipher.c2, scale(cipher.c1, self.scalar))

    def __repr__(self) -> str:
        return f"SecretKey(generator={self.generator!r}, scalar=<hidden>)"


@dataclass(frozen=True)
class PublicKey:
    generator: str
    key: str

    FIELDS = (("generator", G1), ("key", G1))
    JSON_HEX = True

    @classmethod
    def from_secret(cls, secret: SecretKey) -> "PublicKey":
        return cls(secret.generator, scale(secret.generator, secret.scalar))


@dataclass(frozen=True)
class EncryptedAmount:
    encryption_low: Cipher
    encryption_high: Cipher

    FIELDS = (
        ("encryption_low", Struct(Cipher)),
        ("encryption_high", Struct(Cipher)),
    )
    JSON_HEX = True

    @classmethod
    def zero(cls) -> "EncryptedAmount":
        return cls(Cipher.zero(), Cipher.zero())

    def combined(self) -> Cipher:
        """
        Fold the chunks into a single cipher of `low + 2^32 * high`.
        """
        return aggregate(self.encryption_low, self.encryption_high.scale(1 << CHUNK_SIZE))


def encrypt_exponent_given_randomness(public_key: PublicKey, value: int, k: int) -> Cipher:
    """
    Deterministic encryption of `value` with ephemeral randomness `k`.
    """
    return Cipher(
        scale(public_key.generator, k),
        multi_scale([(public_key.generator, value), (public_key.key, k)]),
    )


def encrypt_exponent(public_key: PublicKey, value: int, csprng: Random | None = None) -> Cipher:
    return encrypt_exponent_given_randomness(public_key, value, rng(csprng))


def encrypt_point(public_key: PublicKey, point: str, csprng: Random | None = None) -> Cipher:
    """
    Encrypt a group element directly: `(k*g, point + k*pub)`.
    """
    k = rng(csprng)
    return Cipher(scale(public_key.generator, k), combine(point, scale(public_key.key, k)))


def aggregate(left: Cipher, right: Cipher) -> Cipher:
    return Cipher(combine(left.c1, right.c1), combine(left.c2, right.c2))


def split_amount(amount: int) -> tuple[int, int]:
    """
    Split a u64 into its (low, high) 32 bit chunks.

    Raises:
        InputError: If the amount is negative or does not fit in 64 bits.
    """
    if amount < 0 or amount > MAX_AMOUNT:
        raise InputError(f"Amount {amount} is not a valid u64")
    return amount & CHUNK_MASK, amount >> CHUNK_SIZE


def encrypt_amount_given_randomness(
    public_key: PublicKey, amount: int, k_low: int, k_high: int
) -> EncryptedAmount:
    low, high = split_amount(amount)
    return EncryptedAmount(
        encrypt_exponent_given_randomness(public_key, low, k_low),
        encrypt_exponent_given_randomness(public_key, high, k_high),
    )


def encrypt_amount(
    public_key: PublicKey, amount: int, csprng: Random | None = None
) -> EncryptedAmount:
    """
    Encrypt a u64 amount under `public_key` with fresh randomness per chunk.
    """
    return encrypt_amount_given_randomness(public_key, amount, rng(csprng), rng(csprng))


def encrypt_amount_with_fixed_randomness(generator: str, amount: int) -> EncryptedAmount:
    """
    Encrypt with the randomness fixed to zero.

    The result is `(0, low*g), (0, high*g)`: a valid encryption of `amount`
    under every key with generator `g`. Used when moving a public balance into
    the shielded balance, where the amount is public anyway and the sender must
    be able to reproduce the ciphertext without storing randomness.
    """
    low, high = split_amount(amount)
    return EncryptedAmount(
        Cipher(g1_identity, scale(generator, low)),
        Cipher(g1_identity, scale(generator, high)),
    )


def aggregate_amounts(left: EncryptedAmount, right: EncryptedAmount) -> EncryptedAmount:
    """
    Homomorphically add two encrypted amounts, chunk by chunk.
    """
    return EncryptedAmount(
        aggregate(left.encryption_low, right.encryption_low),
        aggregate(left.encryption_high, right.encryption_high),
    )


def decrypt_amount(
    table: BabyStepGiantStep, secret: SecretKey, encrypted: EncryptedAmount
) -> int:
    """
    Decrypt an encrypted amount to an integer.

    Each chunk is decrypted to a group element and its discrete logarithm is
    recovered with `table`. Aggregated chunks may exceed 32 bits; they are
    recombined as `low + 2^32 * high`.

    Raises:
        InputError: If the table was built for a different generator.
    """
    if table.base != secret.generator:
        raise InputError("Decryption table does not match the key's generator")
    low = table.discrete_log(secret.decrypt(encrypted.encryption_low))
    high = table.discrete_log(secret.decrypt(encrypted.encryption_high))
    return low + (high << CHUNK_SIZE)
