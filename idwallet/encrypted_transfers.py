# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# idwallet/encrypted_transfers.py

"""
Transfers out of, into and between shielded balances.

A shielded balance is an encrypted amount under the owner's key. To send `A`
out of a balance `B` the sender publishes a fresh encryption of the remaining
balance `B - A` under their own key, the transferred amount (encrypted for the
receiver, or in the clear when it goes to the public balance), and one proof
that ties the new ciphers to the old one:

    pk_s = sk * g                    the sender owns the balance
    C2   = sk * C1 + A * g + R * g   old balance equals A + R
    T1   = t * g,  T2 = A * g + t * pk_r
    S1   = s * g,  S2 = R * g + s * pk_s

All relations are over the combined ciphers (`low + 2^32 * high`). Proving
that each chunk is below `2^32` is the job of range proofs, which are supplied
and checked outside this module.
"""

from dataclasses import dataclass
from random import Random

from structlog import get_logger

from idwallet.bls12381 import curve_order, rng, same_point, scale, subtract
from idwallet.constants import (
    CHUNK_SIZE,
    ENC_DOMAIN_TAG,
    ENCRYPTED_TRANSFER_TAG,
    PUB_TO_SEC_TAG,
    SEC_TO_PUB_TAG,
    STP_DOMAIN_TAG,
    TRANSFER_TAG,
)
from idwallet.elgamal import (
    EncryptedAmount,
    PublicKey,
    SecretKey,
    aggregate_amounts,
    encrypt_amount_given_randomness,
    encrypt_amount_with_fixed_randomness,
    split_amount,
)
from idwallet.errors import InputError
from idwallet.serial import U64, Struct, compose
from idwallet.sigma import Equation, LinearProof, prove_linear, verify_linear
from idwallet.types import ADDRESS, AccountAddress, GlobalContext

logger = get_logger()


@dataclass(frozen=True)
class AggregatedDecryptedAmount:
    """
    A shielded balance with its known value. `agg_index` is the index of the
    last incoming amount folded into it.
    """

    agg_encrypted_amount: EncryptedAmount
    agg_amount: int
    agg_index: int

    FIELDS = (
        ("agg_encrypted_amount", Struct(EncryptedAmount)),
        ("agg_amount", U64),
        ("agg_index", U64),
    )


@dataclass(frozen=True)
class EncryptedAmountTransferData:
    remaining_amount: EncryptedAmount
    transfer_amount: EncryptedAmount
    index: int
    proof: LinearProof

    FIELDS = (
        ("remaining_amount", Struct(EncryptedAmount)),
        ("transfer_amount", Struct(EncryptedAmount)),
        ("index", U64),
        ("proof", Struct(LinearProof)),
    )


@dataclass(frozen=True)
class SecToPubAmountTransferData:
    remaining_amount: EncryptedAmount
    transfer_amount: int
    index: int
    proof: LinearProof

    FIELDS = (
        ("remaining_amount", Struct(EncryptedAmount)),
        ("transfer_amount", U64),
        ("index", U64),
        ("proof", Struct(LinearProof)),
    )


def _fresh_encryption(
    public_key: PublicKey, amount: int, csprng: Random | None
) -> tuple[EncryptedAmount, int]:
    # returns the encryption and its combined randomness
    k_low, k_high = rng(csprng), rng(csprng)
    encrypted = encrypt_amount_given_randomness(public_key, amount, k_low, k_high)
    return encrypted, (k_low + (k_high << CHUNK_SIZE)) % curve_order


def _holds_balance(g: str, secret: SecretKey, balance: AggregatedDecryptedAmount) -> bool:
    return same_point(
        secret.decrypt(balance.agg_encrypted_amount.combined()), scale(g, balance.agg_amount)
    )


def _remaining_equations(
    g: str, sender_pk: str, remaining: EncryptedAmount, sk: int, rem: int, s: int
) -> list[Equation]:
    combined = remaining.combined()
    return [
        (sender_pk, [(g, sk)]),
        (combined.c1, [(g, s)]),
        (combined.c2, [(g, rem), (sender_pk, s)]),
    ]


def transfer_statement(
    ctx: GlobalContext,
    receiver_pk: PublicKey,
    sender_pk: PublicKey,
    input_amount: EncryptedAmount,
    data: EncryptedAmountTransferData,
) -> list[Equation]:
    """
    Witness order: sender secret, amount, remaining, transfer randomness,
    remaining randomness.
    """
    g = ctx.elgamal_generator
    balance = input_amount.combined()
    transfer = data.transfer_amount.combined()
    return _remaining_equations(g, sender_pk.key, data.remaining_amount, 0, 2, 4) + [
        (balance.c2, [(balance.c1, 0), (g, 1), (g, 2)]),
        (transfer.c1, [(g, 3)]),
        (transfer.c2, [(g, 1), (receiver_pk.key, 3)]),
    ]


def _transfer_context(
    receiver_pk: PublicKey, sender_pk: PublicKey, input_amount: EncryptedAmount, index: int
) -> str:
    return (
        ENC_DOMAIN_TAG
        + compose(receiver_pk).hex()
        + compose(sender_pk).hex()
        + compose(input_amount).hex()
        + U64.put(index).hex()
    )


def make_transfer_data(
    ctx: GlobalContext,
    receiver_pk: PublicKey,
    sender_sk: SecretKey,
    input_amount: AggregatedDecryptedAmount,
    amount: int,
    csprng: Random | None = None,
) -> EncryptedAmountTransferData | None:
    """
    Build the data of an encrypted transfer of `amount` out of a shielded
    balance.

    Args:
        ctx: Global context, fixes the ElGamal generator.
        receiver_pk: Shielded balance key of the receiver.
        sender_sk: Shielded balance secret of the sender.
        input_amount: The sender's balance with its known value.
        amount: Amount to send.
        csprng: Source of randomness.

    Returns:
        The transfer data, or None if `amount` exceeds the balance or the
        balance does not decrypt to the claimed value.
    """
    g = ctx.elgamal_generator
    if sender_sk.generator != g or receiver_pk.generator != g:
        raise InputError("Keys do not use the context's generator")
    if amount > input_amount.agg_amount:
        logger.debug("insufficient shielded balance")
        return None
    if not _holds_balance(g, sender_sk, input_amount):
        logger.debug("shielded balance does not match its claimed value")
        return None
    remaining = input_amount.agg_amount - amount
    sender_pk = PublicKey.from_secret(sender_sk)
    transfer_amount, t = _fresh_encryption(receiver_pk, amount, csprng)
    remaining_amount, s = _fresh_encryption(sender_pk, remaining, csprng)
    unproven = EncryptedAmountTransferData(
        remaining_amount, transfer_amount, input_amount.agg_index, LinearProof(0, [])
    )
    statement = transfer_statement(
        ctx, receiver_pk, sender_pk, input_amount.agg_encrypted_amount, unproven
    )
    context = _transfer_context(
        receiver_pk, sender_pk, input_amount.agg_encrypted_amount, input_amount.agg_index
    )
    proof = prove_linear(statement, [sender_sk.scalar, amount, remaining, t, s], context, csprng)
    logger.debug("built encrypted transfer", index=input_amount.agg_index)
    return EncryptedAmountTransferData(
        remaining_amount, transfer_amount, input_amount.agg_index, proof
    )


def verify_transfer_data(
    ctx: GlobalContext,
    receiver_pk: PublicKey,
    sender_pk: PublicKey,
    input_amount: EncryptedAmount,
    data: EncryptedAmountTransferData,
) -> bool:
    statement = transfer_statement(ctx, receiver_pk, sender_pk, input_amount, data)
    context = _transfer_context(receiver_pk, sender_pk, input_amount, data.index)
    return verify_linear(statement, data.proof, context)


def sec_to_pub_statement(
    ctx: GlobalContext,
    sender_pk: PublicKey,
    input_amount: EncryptedAmount,
    data: SecToPubAmountTransferData,
) -> list[Equation]:
    """
    Witness order: sender secret, remaining, remaining randomness.
    """
    g = ctx.elgamal_generator
    balance = input_amount.combined()
    revealed = subtract(balance.c2, scale(g, data.transfer_amount))
    return _remaining_equations(g, sender_pk.key, data.remaining_amount, 0, 1, 2) + [
        (revealed, [(balance.c1, 0), (g, 1)]),
    ]


def _sec_to_pub_context(
    sender_pk: PublicKey, input_amount: EncryptedAmount, amount: int, index: int
) -> str:
    return (
        STP_DOMAIN_TAG
        + compose(sender_pk).hex()
        + compose(input_amount).hex()
        + U64.put(amount).hex()
        + U64.put(index).hex()
    )


def make_sec_to_pub_transfer_data(
    ctx: GlobalContext,
    sender_sk: SecretKey,
    input_amount: AggregatedDecryptedAmount,
    amount: int,
    csprng: Random | None = None,
) -> SecToPubAmountTransferData | None:
    """
    Build the data of a transfer from the shielded to the public balance.
    Returns None under the same conditions as `make_transfer_data`.
    """
    g = ctx.elgamal_generator
    if sender_sk.generator != g:
        raise InputError("Key does not use the context's generator")
    if amount > input_amount.agg_amount:
        logger.debug("insufficient shielded balance")
        return None
    if not _holds_balance(g, sender_sk, input_amount):
        logger.debug("shielded balance does not match its claimed value")
        return None
    split_amount(amount)
    remaining = input_amount.agg_amount - amount
    sender_pk = PublicKey.from_secret(sender_sk)
    remaining_amount, s = _fresh_encryption(sender_pk, remaining, csprng)
    unproven = SecToPubAmountTransferData(
        remaining_amount, amount, input_amount.agg_index, LinearProof(0, [])
    )
    statement = sec_to_pub_statement(ctx, sender_pk, input_amount.agg_encrypted_amount, unproven)
    context = _sec_to_pub_context(
        sender_pk, input_amount.agg_encrypted_amount, amount, input_amount.agg_index
    )
    proof = prove_linear(statement, [sender_sk.scalar, remaining, s], context, csprng)
    logger.debug("built shielded to public transfer", index=input_amount.agg_index)
    return SecToPubAmountTransferData(remaining_amount, amount, input_amount.agg_index, proof)


def verify_sec_to_pub_transfer_data(
    ctx: GlobalContext,
    sender_pk: PublicKey,
    input_amount: EncryptedAmount,
    data: SecToPubAmountTransferData,
) -> bool:
    statement = sec_to_pub_statement(ctx, sender_pk, input_amount, data)
    context = _sec_to_pub_context(sender_pk, input_amount, data.transfer_amount, data.index)
    return verify_linear(statement, data.proof, context)


def aggregate_two_encrypted_amounts(
    left: EncryptedAmount, right: EncryptedAmount
) -> EncryptedAmount:
    return aggregate_amounts(left, right)


def pub_to_sec_self_amount(ctx: GlobalContext, amount: int) -> EncryptedAmount:
    """
    The encryption of `amount` added to the shielded balance by a public to
    shielded transfer. Randomness is zero so anyone can recompute it.
    """
    return encrypt_amount_with_fixed_randomness(ctx.elgamal_generator, amount)


def transfer_payload(to: AccountAddress, amount: int) -> bytes:
    return bytes([TRANSFER_TAG]) + ADDRESS.put(to) + U64.put(amount)


def encrypted_transfer_payload(to: AccountAddress, data: EncryptedAmountTransferData) -> bytes:
    return bytes([ENCRYPTED_TRANSFER_TAG]) + ADDRESS.put(to) + compose(data)


def pub_to_sec_payload(amount: int) -> bytes:
    return bytes([PUB_TO_SEC_TAG]) + U64.put(amount)


def sec_to_pub_payload(data: SecToPubAmountTransferData) -> bytes:
    return bytes([SEC_TO_PUB_TAG]) + compose(data)
