from random import Random

import pytest

from idwallet.bls12381 import combine, g1_point, scale, to_int
from idwallet.schnorr import SchnorrProof, fiat_shamir_heuristic, schnorr_proof, verify_schnorr
from idwallet.serial import compose, decompose

G = g1_point(1)


def test_schnorr_proof():
    x = 1234567890
    u = scale(G, x)
    proof = schnorr_proof(x, G, u, csprng=Random(1))
    c = to_int(fiat_shamir_heuristic(G, proof.commitment, u))

    assert scale(G, proof.response) == combine(proof.commitment, scale(u, c))
    assert verify_schnorr(proof, G, u)


def test_context_is_bound():
    x = 42
    u = scale(G, x)
    proof = schnorr_proof(x, G, u, "abcd", Random(2))
    assert verify_schnorr(proof, G, u, "abcd")
    assert not verify_schnorr(proof, G, u, "abce")


def test_wrong_statement():
    u = scale(G, 42)
    proof = schnorr_proof(43, G, u, csprng=Random(3))
    assert not verify_schnorr(proof, G, u)


def test_fsh_is_domain_separated_sha256():
    assert len(fiat_shamir_heuristic(G, G, G)) == 64
    assert fiat_shamir_heuristic(G, G, G) != fiat_shamir_heuristic(G, G, G, "00")


def test_encoding():
    u = scale(G, 5)
    proof = schnorr_proof(5, G, u, csprng=Random(4))
    raw = compose(proof)
    assert len(raw) == 48 + 32
    assert decompose(SchnorrProof, raw) == proof


if __name__ == "__main__":
    pytest.main()
