from random import Random

import pytest

from idwallet.bls12381 import g1_point
from idwallet.dlog import BabyStepGiantStep
from idwallet.elgamal import PublicKey, SecretKey, decrypt_amount, encrypt_amount
from idwallet.encrypted_transfers import (
    AggregatedDecryptedAmount,
    EncryptedAmountTransferData,
    SecToPubAmountTransferData,
    aggregate_two_encrypted_amounts,
    encrypted_transfer_payload,
    make_sec_to_pub_transfer_data,
    make_transfer_data,
    pub_to_sec_payload,
    pub_to_sec_self_amount,
    sec_to_pub_payload,
    verify_sec_to_pub_transfer_data,
    verify_transfer_data,
)
from idwallet.errors import InputError
from idwallet.serial import compose, decompose
from idwallet.types import AccountAddress


@pytest.fixture(scope="module")
def table(global_context):
    return BabyStepGiantStep.new(global_context.elgamal_generator, 256)


@pytest.fixture(scope="module")
def sender(global_context):
    secret = SecretKey.generate(global_context.elgamal_generator, Random(21))
    return secret, PublicKey.from_secret(secret)


@pytest.fixture(scope="module")
def receiver(global_context):
    secret = SecretKey.generate(global_context.elgamal_generator, Random(22))
    return secret, PublicKey.from_secret(secret)


@pytest.fixture(scope="module")
def balance(sender):
    _, public = sender
    csprng = Random(23)
    # two incoming amounts folded into one balance
    encrypted = aggregate_two_encrypted_amounts(
        encrypt_amount(public, 100, csprng), encrypt_amount(public, 50, csprng)
    )
    return AggregatedDecryptedAmount(encrypted, 150, 2)


class TestEncryptedTransfer:
    def test_transfer(self, global_context, table, sender, receiver, balance):
        sender_sk, sender_pk = sender
        receiver_sk, receiver_pk = receiver
        data = make_transfer_data(global_context, receiver_pk, sender_sk, balance, 60, Random(1))

        assert data is not None
        assert data.index == 2
        assert decrypt_amount(table, receiver_sk, data.transfer_amount) == 60
        assert decrypt_amount(table, sender_sk, data.remaining_amount) == 90
        assert verify_transfer_data(
            global_context, receiver_pk, sender_pk, balance.agg_encrypted_amount, data
        )

    def test_whole_balance(self, global_context, table, sender, receiver, balance):
        sender_sk, _ = sender
        _, receiver_pk = receiver
        data = make_transfer_data(global_context, receiver_pk, sender_sk, balance, 150, Random(2))
        assert decrypt_amount(table, sender_sk, data.remaining_amount) == 0

    def test_proof_binds_receiver(self, global_context, sender, receiver, balance):
        sender_sk, sender_pk = sender
        _, receiver_pk = receiver
        data = make_transfer_data(global_context, receiver_pk, sender_sk, balance, 10, Random(3))
        assert not verify_transfer_data(
            global_context, sender_pk, sender_pk, balance.agg_encrypted_amount, data
        )

    def test_insufficient_balance(self, global_context, sender, receiver, balance):
        sender_sk, _ = sender
        _, receiver_pk = receiver
        assert make_transfer_data(global_context, receiver_pk, sender_sk, balance, 151) is None

    def test_wrong_claimed_balance(self, global_context, sender, receiver, balance):
        sender_sk, _ = sender
        _, receiver_pk = receiver
        lying = AggregatedDecryptedAmount(balance.agg_encrypted_amount, 200, 2)
        assert make_transfer_data(global_context, receiver_pk, sender_sk, lying, 10) is None

    def test_key_of_other_generator(self, global_context, sender, balance):
        sender_sk, _ = sender
        foreign = PublicKey.from_secret(SecretKey.generate(g1_point(2), Random(4)))
        with pytest.raises(InputError):
            make_transfer_data(global_context, foreign, sender_sk, balance, 10)

    def test_payload(self, global_context, sender, receiver, balance):
        sender_sk, _ = sender
        _, receiver_pk = receiver
        data = make_transfer_data(global_context, receiver_pk, sender_sk, balance, 5, Random(5))
        to = AccountAddress(b"\x33" * 32)
        payload = encrypted_transfer_payload(to, data)
        assert payload[0] == 16
        assert payload[1:33] == b"\x33" * 32
        assert decompose(EncryptedAmountTransferData, payload[33:]) == data


class TestSecToPub:
    def test_transfer(self, global_context, table, sender, balance):
        sender_sk, sender_pk = sender
        data = make_sec_to_pub_transfer_data(global_context, sender_sk, balance, 120, Random(6))

        assert data.transfer_amount == 120
        assert decrypt_amount(table, sender_sk, data.remaining_amount) == 30
        assert verify_sec_to_pub_transfer_data(
            global_context, sender_pk, balance.agg_encrypted_amount, data
        )

    def test_amount_is_bound(self, global_context, sender, balance):
        sender_sk, sender_pk = sender
        data = make_sec_to_pub_transfer_data(global_context, sender_sk, balance, 120, Random(7))
        inflated = SecToPubAmountTransferData(data.remaining_amount, 121, data.index, data.proof)
        assert not verify_sec_to_pub_transfer_data(
            global_context, sender_pk, balance.agg_encrypted_amount, inflated
        )

    def test_insufficient_balance(self, global_context, sender, balance):
        sender_sk, _ = sender
        assert make_sec_to_pub_transfer_data(global_context, sender_sk, balance, 1000) is None

    def test_payload(self, global_context, sender, balance):
        sender_sk, _ = sender
        data = make_sec_to_pub_transfer_data(global_context, sender_sk, balance, 1, Random(8))
        payload = sec_to_pub_payload(data)
        assert payload[0] == 18
        assert payload[1:] == compose(data)


def test_pub_to_sec(global_context, table, sender):
    sender_sk, _ = sender
    payload = pub_to_sec_payload(250)
    assert payload == b"\x11" + (250).to_bytes(8, "big")
    added = pub_to_sec_self_amount(global_context, 250)
    assert added == pub_to_sec_self_amount(global_context, 250)
    assert decrypt_amount(table, sender_sk, added) == 250


if __name__ == "__main__":
    pytest.main()
