# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only
from random import Random

import pytest

from idwallet.account_holder import create_identity_request
from idwallet.elgamal import PublicKey, SecretKey
from idwallet.identity_provider import generate_ip_keys, sign_identity_object
from idwallet.types import ArInfo, AttributeList, Description, GlobalContext

ALIST = AttributeList(
    valid_to="202612",
    created_at="202101",
    max_accounts=25,
    alist={0: "John", 1: "Doe", 4: "DE"},
)


@pytest.fixture(scope="session")
def global_context():
    return GlobalContext.generate("idwallet test chain")


@pytest.fixture(scope="session")
def ip(global_context):
    return generate_ip_keys(0, Description("ip", "https://ip.example", "test provider"), Random(1))


@pytest.fixture(scope="session")
def ar_secrets(global_context):
    rand = Random(2)
    return {i: SecretKey.generate(global_context.elgamal_generator, rand) for i in (1, 2, 3)}


@pytest.fixture(scope="session")
def ar_infos(ar_secrets):
    return {
        i: ArInfo(i, Description(f"ar {i}", "", "test revoker"), PublicKey.from_secret(secret))
        for i, secret in ar_secrets.items()
    }


@pytest.fixture(scope="session")
def identity_request(global_context, ip, ar_infos):
    return create_identity_request(ip[0], ar_infos, global_context, Random(3))


@pytest.fixture(scope="session")
def identity(global_context, ip, ar_infos, identity_request):
    pio, use_data, initial_keys = identity_request
    ip_info, ip_secret = ip
    identity_object = sign_identity_object(ip_info, ip_secret, ar_infos, global_context, pio, ALIST)
    return identity_object, use_data, initial_keys
