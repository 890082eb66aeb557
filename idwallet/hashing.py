# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

import hashlib
import binascii


def generate(input_string: str) -> str:
    """
    Calculates the sha256 hash digest of a hex encoded input.

    Args:
        input_string (str): The hex string to be hashed.

    Returns:
        str: The sha256 hash digest as a hex string.
    """
    hash_digest = hashlib.sha256(binascii.unhexlify(input_string)).hexdigest()

    return hash_digest


def digest(data: bytes) -> bytes:
    """
    Calculates the raw 32 byte sha256 digest of `data`.

    This is the digest used for transaction hashes and account addresses.
    """
    return hashlib.sha256(data).digest()
