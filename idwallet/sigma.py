# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# idwallet/sigma.py

"""
Proofs of knowledge for systems of linear relations between G1 elements.

A statement is a list of equations

    Y_i = sum_j w_j * B_ij

over public points `Y_i`, `B_ij` and a shared secret witness vector `w`. One
proof covers every equation at once, which is what ties values together
across equations: the same `w_j` appearing in a commitment and in a cipher
proves that they hide the same value.

The protocol is the generalised Schnorr protocol made non-interactive with the
Fiat-Shamir transform:

    a_j <-$ Z_q
    T_i  = sum_j a_j * B_ij
    c    = H(LIN_DOMAIN_TAG || context || Y || B || T) mod q
    z_j  = a_j - c * w_j mod q

and the verifier recomputes `T_i = sum_j z_j * B_ij + c * Y_i`.
"""

from dataclasses import dataclass
from random import Random

from idwallet.bls12381 import curve_order, multi_scale, rng, to_int
from idwallet.constants import LIN_DOMAIN_TAG
from idwallet.errors import ProofError, SerialError
from idwallet.hashing import generate
from idwallet.serial import SCALAR, ListOf

# one equation: target point and (base point, witness index) terms
Equation = tuple[str, list[tuple[str, int]]]


@dataclass(frozen=True)
class LinearProof:
    challenge: int
    responses: list[int]

    FIELDS = (("challenge", SCALAR), ("responses", ListOf(SCALAR, 1)))


def fiat_shamir_heuristic(statement: list[Equation], commitments: list[str], context: str) -> str:
    transcript = LIN_DOMAIN_TAG + context
    for target, terms in statement:
        transcript += target + "".join(base for base, _ in terms)
    return generate(transcript + "".join(commitments))


def _witness_count(statement: list[Equation]) -> int:
    return 1 + max(j for _, terms in statement for _, j in terms)


def prove_linear(
    statement: list[Equation],
    witnesses: list[int],
    context: str = "",
    csprng: Random | None = None,
) -> LinearProof:
    """
    Prove knowledge of `witnesses` satisfying every equation in `statement`.

    Args:
        statement: The equations, see the module docstring.
        witnesses: Secret scalars, indexed by the terms of the equations.
        context: Hex string bound into the challenge.
        csprng: Source of randomness for the commitments.

    Returns:
        LinearProof: The challenge and one response per witness.

    Raises:
        ProofError: If the witnesses do not satisfy the statement. No proof is
            produced in that case.
    """
    if len(witnesses) != _witness_count(statement):
        raise ProofError("Witness vector does not match the statement")
    for target, terms in statement:
        if multi_scale([(base, witnesses[j]) for base, j in terms]) != target:
            raise ProofError("Witness does not satisfy the statement")
    alphas = [rng(csprng) for _ in witnesses]
    commitments = [multi_scale([(base, alphas[j]) for base, j in terms]) for _, terms in statement]
    c = to_int(fiat_shamir_heuristic(statement, commitments, context))
    responses = [(a - c * w) % curve_order for a, w in zip(alphas, witnesses)]
    return LinearProof(c, responses)


def verify_linear(statement: list[Equation], proof: LinearProof, context: str = "") -> bool:
    """
    Check a proof produced by `prove_linear` for the same statement and context.
    """
    if len(proof.responses) != _witness_count(statement):
        return False
    try:
        commitments = [
            multi_scale([(base, proof.responses[j]) for base, j in terms] + [(target, proof.challenge)])
            for target, terms in statement
        ]
    except SerialError:
        return False
    return to_int(fiat_shamir_heuristic(statement, commitments, context)) == proof.challenge
