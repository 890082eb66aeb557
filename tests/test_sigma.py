from random import Random

import pytest

from idwallet.bls12381 import g1_point, multi_scale, scale
from idwallet.errors import ProofError
from idwallet.pedersen import CommitmentKey
from idwallet.serial import compose, decompose
from idwallet.sigma import LinearProof, prove_linear, verify_linear

CK = CommitmentKey.from_seed("0102")
G = CK.g
Y = g1_point(99)


def commitment_and_public_key(value: int, randomness: int, secret: int):
    # same `value` inside a commitment and an exponent
    statement = [
        (CK.commit(value, randomness), [(CK.g, 0), (CK.h, 1)]),
        (multi_scale([(G, value), (Y, secret)]), [(G, 0), (Y, 2)]),
    ]
    return statement, [value, randomness, secret]


def test_proof_verifies():
    statement, witnesses = commitment_and_public_key(10, 20, 30)
    proof = prove_linear(statement, witnesses, "aa", Random(1))
    assert verify_linear(statement, proof, "aa")


def test_context_is_bound():
    statement, witnesses = commitment_and_public_key(10, 20, 30)
    proof = prove_linear(statement, witnesses, "aa", Random(1))
    assert not verify_linear(statement, proof, "bb")


def test_tampered_statement_fails():
    statement, witnesses = commitment_and_public_key(10, 20, 30)
    proof = prove_linear(statement, witnesses, "", Random(2))
    other, _ = commitment_and_public_key(11, 20, 30)
    assert not verify_linear(other, proof, "")


def test_tampered_response_fails():
    statement, witnesses = commitment_and_public_key(1, 2, 3)
    proof = prove_linear(statement, witnesses, "", Random(3))
    bad = LinearProof(proof.challenge, [proof.responses[0] + 1] + proof.responses[1:])
    assert not verify_linear(statement, bad, "")
    assert not verify_linear(statement, LinearProof(proof.challenge, proof.responses[:2]), "")


def test_wrong_witness_gives_no_proof():
    statement, witnesses = commitment_and_public_key(10, 20, 30)
    with pytest.raises(ProofError):
        prove_linear(statement, [10, 21, 30], "", Random(4))
    with pytest.raises(ProofError):
        prove_linear(statement, [10, 20], "", Random(4))


def test_encoding():
    statement, witnesses = commitment_and_public_key(4, 5, 6)
    proof = prove_linear(statement, witnesses, "", Random(5))
    raw = compose(proof)
    assert len(raw) == 32 + 1 + 3 * 32
    assert decompose(LinearProof, raw) == proof


class TestPedersen:
    def test_open(self):
        cmm, r = CK.commit_fresh(77, Random(6))
        assert CK.open(cmm, 77, r)
        assert not CK.open(cmm, 78, r)

    def test_homomorphic(self):
        assert CK.commit(3, 4) == multi_scale([(CK.commit(1, 1), 1), (CK.commit(2, 3), 1)])

    def test_key_from_seed(self):
        assert CK.g == g1_point(1)
        assert CK.h != CK.g
        assert CommitmentKey.from_seed("0102") == CK
        assert CommitmentKey.from_seed("0103") != CK
        assert scale(CK.g, 0) != CK.h


if __name__ == "__main__":
    pytest.main()
