# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only
import pytest
from random import Random

from idwallet.commands import (
    GLOBAL_FILE,
    IDENTITY_OBJECT_FILE,
    ID_REQUEST_FILE,
    IP_INFO_FILE,
    deploy_credential,
    generate_table,
    issue_identity,
    load_table,
    request_identity,
    setup_chain,
)
from idwallet.dlog import BabyStepGiantStep
from idwallet.errors import PolicyError
from idwallet.files import load_json
from idwallet.identity_provider import verify_credential
from idwallet.serial import from_json, unversioned
from idwallet.types import (
    AccountAddress,
    AccountCredentialMessage,
    GlobalContext,
    IpInfo,
    NewAccount,
)


@pytest.fixture(scope="module")
def data_dir(tmp_path_factory):
    path = tmp_path_factory.mktemp("chain")
    setup_chain(path, "command test chain", ar_count=2, csprng=Random(30))
    request_identity(path, Random(31))
    issue_identity(
        path,
        {"firstName": "Ada", "nationality": "GB"},
        valid_to="203001",
        created_at="202501",
        max_accounts=4,
    )
    return path


def test_setup_files(data_dir):
    for name in (GLOBAL_FILE, IP_INFO_FILE, "ip-secret.json", "ars-infos.json", "ar-secrets.json"):
        assert (data_dir / name).exists()
    assert sorted(load_json(data_dir / "ars-infos.json")) == ["1", "2"]


def test_identity_request_file(data_dir):
    response = load_json(data_dir / ID_REQUEST_FILE)
    assert set(response) == {"idObjectRequest", "privateIdObjectData", "initialAccountData"}
    assert response["idObjectRequest"]["v"] == 0
    initial = response["initialAccountData"]
    AccountAddress.from_string(initial["accountAddress"])


def test_identity_object_file(data_dir):
    identity_object = load_json(data_dir / IDENTITY_OBJECT_FILE)
    assert identity_object["v"] == 0
    assert identity_object["value"]["alist"]["alist"] == {
        "firstName": "Ada",
        "nationality": "GB",
    }


def test_deploy_credential(data_dir):
    path = deploy_credential(data_dir, 1, ["nationality"], expiry=1800000000, csprng=Random(32))
    assert path.name == "credential-1.json"
    response = load_json(path)
    message = unversioned(AccountCredentialMessage, response["credential"])
    assert message.message_expiry == 1800000000

    global_context = from_json(GlobalContext, load_json(data_dir / GLOBAL_FILE))
    ip_info = from_json(IpInfo, load_json(data_dir / IP_INFO_FILE))
    credential = message.credential
    assert credential.values.policy.policy_vec == {5: "GB"}
    assert verify_credential(ip_info, global_context, credential, NewAccount(1800000000))
    assert response["accountAddress"] == str(AccountAddress.new(credential.values.cred_id))


def test_deploy_beyond_max_accounts(data_dir):
    with pytest.raises(PolicyError):
        deploy_credential(data_dir, 4, [], expiry=1, csprng=Random(33))


def test_generate_table(data_dir, tmp_path):
    path = tmp_path / "table.cbor"
    generate_table(path, data_dir, 16)
    table = BabyStepGiantStep.load(path)
    assert table.m == 16
    assert table.base == from_json(GlobalContext, load_json(data_dir / GLOBAL_FILE)).elgamal_generator


def test_load_table_builds_once(data_dir, tmp_path):
    path = tmp_path / "cache" / "table.cbor"
    first = load_table(path, data_dir, 16)
    assert path.exists()
    saved = path.stat().st_mtime_ns
    second = load_table(path, data_dir, 16)
    assert path.stat().st_mtime_ns == saved
    assert second is not first
    assert second.to_bytes() == first.to_bytes()

    # a different size replaces the artifact
    assert load_table(path, data_dir, 32).m == 32
    assert BabyStepGiantStep.load(path).m == 32


if __name__ == "__main__":
    pytest.main()
