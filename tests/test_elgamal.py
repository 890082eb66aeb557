from random import Random

import pytest

from idwallet.bls12381 import g1_identity, g1_point, scale
from idwallet.dlog import BabyStepGiantStep
from idwallet.elgamal import (
    Cipher,
    EncryptedAmount,
    PublicKey,
    SecretKey,
    aggregate,
    aggregate_amounts,
    decrypt_amount,
    encrypt_amount,
    encrypt_amount_given_randomness,
    encrypt_amount_with_fixed_randomness,
    encrypt_exponent,
    encrypt_exponent_given_randomness,
    encrypt_point,
    split_amount,
)
from idwallet.errors import InputError
from idwallet.serial import compose, decompose, from_json, to_json

G = g1_point(1)


@pytest.fixture(scope="module")
def table():
    return BabyStepGiantStep.new(G, 256)


@pytest.fixture
def keys():
    secret = SecretKey.generate(G, Random(11))
    return secret, PublicKey.from_secret(secret)


def test_encrypt_decrypt_exponent(keys):
    secret, public = keys
    cipher = encrypt_exponent(public, 1234, Random(1))
    assert secret.decrypt(cipher) == scale(G, 1234)


def test_given_randomness_is_deterministic(keys):
    _, public = keys
    a = encrypt_exponent_given_randomness(public, 5, 99)
    b = encrypt_exponent_given_randomness(public, 5, 99)
    assert a == b
    assert a.c1 == scale(G, 99)


def test_homomorphism(keys):
    secret, public = keys
    csprng = Random(2)
    total = aggregate(encrypt_exponent(public, 100, csprng), encrypt_exponent(public, 50, csprng))
    assert secret.decrypt(total) == scale(G, 150)


def test_encrypt_point(keys):
    secret, public = keys
    point = g1_point(777)
    assert secret.decrypt(encrypt_point(public, point, Random(3))) == point


def test_wrong_key_decrypts_to_something_else(keys):
    _, public = keys
    other = SecretKey.generate(G, Random(12))
    cipher = encrypt_exponent(public, 9, Random(4))
    assert other.decrypt(cipher) != scale(G, 9)


def test_split_amount():
    assert split_amount(0) == (0, 0)
    assert split_amount(2**32 + 7) == (7, 1)
    assert split_amount(2**64 - 1) == (2**32 - 1, 2**32 - 1)
    with pytest.raises(InputError):
        split_amount(2**64)
    with pytest.raises(InputError):
        split_amount(-1)


def test_amount_round_trip(keys, table):
    secret, public = keys
    for amount in (0, 1, 255, 65535, 2**32 + 3):
        assert decrypt_amount(table, secret, encrypt_amount(public, amount, Random(amount))) == amount


def test_one_hundred_plus_fifty(keys, table):
    secret, public = keys
    csprng = Random(5)
    total = aggregate_amounts(encrypt_amount(public, 100, csprng), encrypt_amount(public, 50, csprng))
    assert decrypt_amount(table, secret, total) == 150


def test_zero_is_neutral(keys, table):
    secret, public = keys
    amount = encrypt_amount(public, 42, Random(6))
    assert aggregate_amounts(amount, EncryptedAmount.zero()) == amount
    assert decrypt_amount(table, secret, EncryptedAmount.zero()) == 0


def test_fixed_randomness(keys, table):
    secret, _ = keys
    amount = encrypt_amount_with_fixed_randomness(G, 2**32 + 9)
    assert amount.encryption_low == Cipher(g1_identity, scale(G, 9))
    assert amount.encryption_high == Cipher(g1_identity, scale(G, 1))
    # decrypts under any key with the same generator
    assert decrypt_amount(table, secret, amount) == 2**32 + 9


def test_combined_cipher(keys):
    secret, public = keys
    amount = encrypt_amount_given_randomness(public, 2**32 * 3 + 5, 7, 8)
    assert secret.decrypt(amount.combined()) == scale(G, 2**32 * 3 + 5)


def test_table_for_other_generator(keys):
    secret, public = keys
    other_table = BabyStepGiantStep.new(g1_point(2), 4)
    with pytest.raises(InputError):
        decrypt_amount(other_table, secret, encrypt_amount(public, 1, Random(7)))


def test_encodings(keys):
    secret, public = keys
    amount = encrypt_amount(public, 10, Random(8))
    raw = compose(amount)
    # low chunk first, each chunk two G1 elements
    assert len(raw) == 4 * 48
    assert raw[:96] == compose(amount.encryption_low)
    assert decompose(EncryptedAmount, raw) == amount
    assert to_json(amount) == raw.hex()
    assert from_json(PublicKey, to_json(public)) == public


def test_secret_key_repr_hides_scalar(keys):
    secret, _ = keys
    assert str(secret.scalar) not in repr(secret)


if __name__ == "__main__":
    pytest.main()
