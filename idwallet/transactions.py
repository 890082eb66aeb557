# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# idwallet/transactions.py

"""
Account transaction assembly and signing.

The signed body of a transaction is

    sender (32) || nonce (u64) || energy (u64) || payload size (u32) || expiry (u64) || payload

all big-endian, and its sha256 digest is what every account key signs.
"""

from dataclasses import dataclass

from structlog import get_logger

from idwallet.hashing import digest
from idwallet.serial import U8, U32, U64, MapOf, Struct, compose
from idwallet.types import (
    ADDRESS,
    SIGNATURE,
    AccountAddress,
    AccountKeys,
    CredentialPublicKeys,
    verify_signature,
)

logger = get_logger()


@dataclass(frozen=True)
class TransferContext:
    """
    Everything a transaction header needs, plus the keys that sign it.
    """

    from_: AccountAddress
    nonce: int
    energy: int
    expiry: int
    keys: AccountKeys

    FIELDS = (
        ("from_", ADDRESS),
        ("nonce", U64),
        ("energy", U64),
        ("expiry", U64),
        ("keys", Struct(AccountKeys)),
    )


@dataclass(frozen=True)
class TransactionSignature:
    # credential index -> key index -> signature
    signatures: dict[int, dict[int, bytes]]

    FIELDS = (("signatures", MapOf(U8, MapOf(U8, SIGNATURE, 1), 1)),)


def make_transaction_bytes(ctx: TransferContext, payload: bytes) -> tuple[bytes, bytes]:
    """
    Build the signed body of a transaction.

    Args:
        ctx: Sender, nonce, energy and expiry of the transaction.
        payload: Serialized payload, starting with its type tag.

    Returns:
        The sha256 digest of the body and the body itself.
    """
    body = (
        ADDRESS.put(ctx.from_)
        + U64.put(ctx.nonce)
        + U64.put(ctx.energy)
        + U32.put(len(payload))
        + U64.put(ctx.expiry)
        + payload
    )
    logger.debug("assembled transaction", payload_size=len(payload), nonce=ctx.nonce)
    return digest(body), body


def make_signatures(keys: AccountKeys, hash_to_sign: bytes) -> TransactionSignature:
    """
    Sign with every key of every credential. Thresholds are not enforced
    here; the chain does that.
    """
    return TransactionSignature(
        {i: keys.keys[i].sign(hash_to_sign) for i in sorted(keys.keys)}
    )


def verify_signatures(
    keys: dict[int, CredentialPublicKeys],
    hash_to_sign: bytes,
    signature: TransactionSignature,
    threshold: int = 1,
) -> bool:
    """
    Check that every signature is valid and that at least `threshold`
    credentials each reach their own key threshold.
    """
    satisfied = 0
    for cred_index, sigs in signature.signatures.items():
        if cred_index not in keys:
            return False
        cred_keys = keys[cred_index]
        for key_index, sig in sigs.items():
            if key_index not in cred_keys.keys:
                return False
            if not verify_signature(cred_keys.keys[key_index], hash_to_sign, sig):
                return False
        if len(sigs) >= cred_keys.threshold:
            satisfied += 1
    return satisfied >= threshold


def signed_transaction_bytes(signature: TransactionSignature, body: bytes) -> bytes:
    """
    Signatures followed by the body, the form submitted to a node.
    """
    return compose(signature) + body
