#!/usr/bin/env python3

# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

"""
Generate encoding-vectors.json for cross-platform canonical encoding tests.

Every vector is deterministic: plain transfer payloads, account addresses
derived from registration IDs, and fixed-randomness encrypted amounts.

Run from the repository root:
    PYTHONPATH=. python test-vectors/generate_vectors.py
"""

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
from idwallet.bls12381 import g1_point
from idwallet.elgamal import encrypt_amount_with_fixed_randomness
from idwallet.encrypted_transfers import pub_to_sec_payload, transfer_payload
from idwallet.serial import compose
from idwallet.types import AccountAddress


def transfer_vector(name: str, address_hex: str, amount: int) -> dict:
    to = AccountAddress(bytes.fromhex(address_hex))
    return {
        "name": name,
        "kind": "transfer",
        "to": str(to),
        "amount": amount,
        "payload_hex": transfer_payload(to, amount).hex(),
    }


def pub_to_sec_vector(name: str, amount: int) -> dict:
    return {
        "name": name,
        "kind": "pub-to-sec",
        "amount": amount,
        "payload_hex": pub_to_sec_payload(amount).hex(),
        "added_amount_hex": compose(encrypt_amount_with_fixed_randomness(g1_point(1), amount)).hex(),
    }


def address_vector(name: str, scalar: int) -> dict:
    reg_id = g1_point(scalar)
    return {
        "name": name,
        "kind": "address",
        "reg_id": reg_id,
        "address": str(AccountAddress.new(reg_id)),
    }


vectors = [
    transfer_vector("transfer-zero-address", "00" * 32, 0),
    transfer_vector("transfer-max-amount", "ff" * 32, 2**64 - 1),
    transfer_vector(
        "transfer-real-address",
        "66141dbbc84e7d5454685ab85f72492489b35ae020f4b444348e73c46ff9b009",
        1_000_000,
    ),
    pub_to_sec_vector("pub-to-sec-small", 150),
    pub_to_sec_vector("pub-to-sec-two-chunks", 2**32 + 7),
    address_vector("address-generator", 1),
    address_vector("address-small-scalar", 42),
]

out_path = Path(__file__).resolve().parent / "encoding-vectors.json"
out_path.write_text(json.dumps(vectors, indent=2) + "\n")
print(f"Wrote {len(vectors)} vectors to {out_path}")
