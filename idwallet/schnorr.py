# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only
from dataclasses import dataclass
from random import Random

from idwallet.bls12381 import combine, curve_order, rng, same_point, scale, to_int
from idwallet.constants import SCH_DOMAIN_TAG
from idwallet.errors import SerialError
from idwallet.hashing import generate
from idwallet.serial import G1, SCALAR


@dataclass(frozen=True)
class SchnorrProof:
    commitment: str
    response: int

    FIELDS = (("commitment", G1), ("response", SCALAR))


def fiat_shamir_heuristic(gb: str, grb: str, ub: str, context: str = "") -> str:
    """
    Compute the Fiat-Shamir challenge material for the Schnorr proof.

    The challenge is derived by hashing a domain-separated transcript:

        SCH_DOMAIN_TAG || context || gb || grb || ub

    where:
    - `gb` is the public base (serialized G1 element),
    - `grb` is the commitment `g^r` (serialized G1 element),
    - `ub` is the public value `u` (serialized G1 element),
    - `context` is a hex string binding the proof to the enclosing message.

    Returns:
        A hex string digest that is mapped to a scalar via `to_int(...)`.
    """
    return generate(SCH_DOMAIN_TAG + context + gb + grb + ub)


def schnorr_proof(
    x: int, g: str, u: str, context: str = "", csprng: Random | None = None
) -> SchnorrProof:
    """
    Generate a non-interactive Schnorr proof of knowledge of `x` for `u = [x]g`.

    Commit:
        r  <-$ Z_q
        gr = [r]g

    Challenge:
        c = H(SCH_DOMAIN_TAG || context || g || gr || u) mod q

    Response:
        z = r + c*x mod q

    The verifier checks that:
        [z]g == gr + [c]u

    Args:
        x: The secret scalar witness.
        g: Base point encoding.
        u: Public value encoding, `[x]g`.
        context: Hex string that is hashed into the challenge.
        csprng: Source of randomness for the commitment.

    Returns:
        SchnorrProof: The commitment `[r]g` and the response `z`.
    """
    r = rng(csprng)
    grb = scale(g, r)
    c = to_int(fiat_shamir_heuristic(g, grb, u, context))
    z = (r + c * x) % curve_order
    return SchnorrProof(grb, z)


def verify_schnorr(proof: SchnorrProof, g: str, u: str, context: str = "") -> bool:
    c = to_int(fiat_shamir_heuristic(g, proof.commitment, u, context))
    try:
        return same_point(scale(g, proof.response), combine(proof.commitment, scale(u, c)))
    except SerialError:
        return False
