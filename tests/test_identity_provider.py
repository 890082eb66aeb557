# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only
from dataclasses import replace
from random import Random

import pytest

from idwallet.account_holder import create_credential
from idwallet.bls12381 import G2_SIZE, g1_point
from idwallet.errors import PolicyError, ProofError
from idwallet.identity_provider import (
    generate_ip_keys,
    sign_identity_object,
    validate_request,
    verify_credential,
    verify_identity_object,
)
from idwallet.schnorr import SchnorrProof
from idwallet.types import AccountAddress, Description, ExistingAccount, NewAccount


def test_valid_request(global_context, ip, ar_infos, identity_request):
    pio, _, _ = identity_request
    validate_request(ip[0], ar_infos, global_context, pio)


def test_request_for_other_provider(global_context, ar_infos, identity_request):
    pio, _, _ = identity_request
    other, _ = generate_ip_keys(7, Description("other", "", ""), Random(5))
    # every proof is bound to the provider identity
    with pytest.raises(ProofError):
        validate_request(other, ar_infos, global_context, pio)


def test_tampered_knowledge_proof(global_context, ip, ar_infos, identity_request):
    pio, _, _ = identity_request
    bad = replace(pio, pok_sc=SchnorrProof(pio.pok_sc.commitment, pio.pok_sc.response + 1))
    with pytest.raises(ProofError):
        validate_request(ip[0], ar_infos, global_context, bad)


def test_tampered_share(global_context, ip, ar_infos, identity_request):
    pio, _, _ = identity_request
    ip_ar_data = dict(pio.ip_ar_data)
    ip_ar_data[1], ip_ar_data[2] = ip_ar_data[2], ip_ar_data[1]
    with pytest.raises(ProofError):
        validate_request(ip[0], ar_infos, global_context, replace(pio, ip_ar_data=ip_ar_data))


def test_tampered_initial_account(global_context, ip, ar_infos, identity_request):
    pio, _, _ = identity_request
    initial = replace(pio.initial_account, reg_id=g1_point(3))
    with pytest.raises(ProofError):
        validate_request(ip[0], ar_infos, global_context, replace(pio, initial_account=initial))


def test_unknown_revoker(global_context, ip, ar_infos, identity_request):
    pio, _, _ = identity_request
    with pytest.raises(PolicyError):
        validate_request(ip[0], {1: ar_infos[1]}, global_context, pio)


def test_threshold_must_match_polynomial(global_context, ip, ar_infos, identity_request):
    pio, _, _ = identity_request
    choice = replace(pio.choice_ar_data, threshold=3)
    with pytest.raises(PolicyError):
        validate_request(ip[0], ar_infos, global_context, replace(pio, choice_ar_data=choice))


class TestIdentityObject:
    def test_signature(self, ip, identity):
        identity_object, _, _ = identity
        assert identity_object.alist.alist == {0: "John", 1: "Doe", 4: "DE"}
        assert len(bytes.fromhex(identity_object.signature)) == G2_SIZE
        assert verify_identity_object(ip[0], identity_object)

    def test_tampered_attributes(self, ip, identity):
        identity_object, _, _ = identity
        alist = replace(identity_object.alist, alist={0: "Jane", 1: "Doe", 4: "DE"})
        assert not verify_identity_object(ip[0], replace(identity_object, alist=alist))

    def test_refuses_invalid_request(self, global_context, ip, ar_infos, identity):
        identity_object, _, _ = identity
        bad = replace(identity_object.pre_identity_object, cmm_prf=g1_point(4))
        with pytest.raises(ProofError):
            sign_identity_object(ip[0], ip[1], ar_infos, global_context, bad, identity_object.alist)


class TestCredential:
    @pytest.fixture(scope="class")
    def credential(self, global_context, ip, ar_infos, identity):
        identity_object, use_data, _ = identity
        cdi, _ = create_credential(
            ip[0], ar_infos, global_context, identity_object, use_data, 2, [0, 4], NewAccount(500), Random(12)
        )
        return cdi

    def test_verifies(self, global_context, ip, credential):
        assert verify_credential(ip[0], global_context, credential, NewAccount(500))

    def test_bound_to_target(self, global_context, ip, credential):
        assert not verify_credential(ip[0], global_context, credential, NewAccount(501))
        existing = ExistingAccount(AccountAddress(bytes(32)))
        assert not verify_credential(ip[0], global_context, credential, existing)

    def test_existing_account(self, global_context, ip, ar_infos, identity):
        identity_object, use_data, _ = identity
        target = ExistingAccount(AccountAddress(b"\x05" * 32))
        cdi, _ = create_credential(
            ip[0], ar_infos, global_context, identity_object, use_data, 4, [], target, Random(13)
        )
        assert verify_credential(ip[0], global_context, cdi, target)

    def test_revealed_value_must_match(self, global_context, ip, credential):
        policy = replace(credential.values.policy, policy_vec={0: "Jane", 4: "DE"})
        forged = replace(credential, values=replace(credential.values, policy=policy))
        assert not verify_credential(ip[0], global_context, forged, NewAccount(500))

    def test_reg_id_is_bound(self, global_context, ip, credential):
        forged = replace(credential, values=replace(credential.values, cred_id=g1_point(8)))
        assert not verify_credential(ip[0], global_context, forged, NewAccount(500))

    def test_other_provider(self, global_context, ip, credential):
        other = replace(ip[0], ip_identity=1)
        assert not verify_credential(other, global_context, credential, NewAccount(500))


if __name__ == "__main__":
    pytest.main()
