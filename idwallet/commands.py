# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only
import json
from pathlib import Path
from random import Random

from idwallet import api
from idwallet.api import AR_INFOS
from idwallet.bls12381 import from_int, to_int
from idwallet.constants import TABLE_SIZE, VERSION_0
from idwallet.dlog import BabyStepGiantStep
from idwallet.elgamal import PublicKey, SecretKey
from idwallet.files import load_json, save_json
from idwallet.identity_provider import generate_ip_keys, sign_identity_object
from idwallet.serial import from_json, to_json, unversioned, versioned
from idwallet.types import (
    ArInfo,
    AttributeList,
    Description,
    GlobalContext,
    IpInfo,
    PreIdentityObject,
)

GLOBAL_FILE = "global.json"
IP_INFO_FILE = "ip-info.json"
IP_SECRET_FILE = "ip-secret.json"
ARS_INFOS_FILE = "ars-infos.json"
AR_SECRETS_FILE = "ar-secrets.json"
ID_REQUEST_FILE = "id-request.json"
IDENTITY_OBJECT_FILE = "identity-object.json"


def setup_chain(
    data_dir: str | Path,
    genesis_string: str,
    ar_count: int = 3,
    csprng: Random | None = None,
) -> None:
    """
    Create the public chain parameters, an identity provider and `ar_count`
    anonymity revokers, and write them to `data_dir`.

    Side effects (writes files):
    - global.json, ip-info.json, ars-infos.json (public)
    - ip-secret.json, ar-secrets.json (secret keys of the provider and the
      revokers, for test setups only)
    """
    data_dir = Path(data_dir)
    global_context = GlobalContext.generate(genesis_string)
    ip_info, ip_secret = generate_ip_keys(
        0, Description("identity provider", "", "test identity provider"), csprng
    )
    ar_infos, ar_secrets = {}, {}
    for ar_identity in range(1, ar_count + 1):
        secret = SecretKey.generate(global_context.elgamal_generator, csprng)
        ar_infos[ar_identity] = ArInfo(
            ar_identity,
            Description(f"revoker {ar_identity}", "", "test anonymity revoker"),
            PublicKey.from_secret(secret),
        )
        ar_secrets[str(ar_identity)] = to_json(secret)

    save_json(data_dir / GLOBAL_FILE, to_json(global_context))
    save_json(data_dir / IP_INFO_FILE, to_json(ip_info))
    save_json(data_dir / IP_SECRET_FILE, {"secret": from_int(ip_secret)}, private=True)
    save_json(data_dir / ARS_INFOS_FILE, AR_INFOS.to_json(ar_infos))
    save_json(data_dir / AR_SECRETS_FILE, ar_secrets, private=True)


def _public_inputs(data_dir: Path) -> dict:
    return {
        "global": load_json(data_dir / GLOBAL_FILE),
        "ipInfo": load_json(data_dir / IP_INFO_FILE),
        "arsInfos": load_json(data_dir / ARS_INFOS_FILE),
    }


def request_identity(data_dir: str | Path, csprng: Random | None = None) -> None:
    """
    Account holder step: build an identity request against the chain set up
    in `data_dir` and write the full response to id-request.json.
    """
    data_dir = Path(data_dir)
    request = json.dumps(_public_inputs(data_dir))
    response = api.create_id_request_and_private_data(request, csprng)
    save_json(data_dir / ID_REQUEST_FILE, json.loads(response), private=True)


def issue_identity(
    data_dir: str | Path,
    attributes: dict[str, str],
    valid_to: str,
    created_at: str,
    max_accounts: int = 25,
) -> None:
    """
    Identity provider step: validate the request in id-request.json, attach
    `attributes` and sign. Writes the versioned identity object to
    identity-object.json.

    Raises:
        PolicyError, ProofError: If the request does not validate.
    """
    data_dir = Path(data_dir)
    inputs = _public_inputs(data_dir)
    global_context = from_json(GlobalContext, inputs["global"])
    ip_info = from_json(IpInfo, inputs["ipInfo"])
    ar_infos = AR_INFOS.from_json(inputs["arsInfos"])
    ip_secret = to_int(load_json(data_dir / IP_SECRET_FILE)["secret"])
    pio = unversioned(PreIdentityObject, load_json(data_dir / ID_REQUEST_FILE)["idObjectRequest"])
    alist = from_json(
        AttributeList,
        {
            "validTo": valid_to,
            "createdAt": created_at,
            "maxAccounts": max_accounts,
            "alist": attributes,
        },
    )
    identity_object = sign_identity_object(ip_info, ip_secret, ar_infos, global_context, pio, alist)
    save_json(data_dir / IDENTITY_OBJECT_FILE, versioned(identity_object, VERSION_0))


def deploy_credential(
    data_dir: str | Path,
    account_number: int,
    revealed_attributes: list[str],
    expiry: int,
    csprng: Random | None = None,
) -> Path:
    """
    Account holder step: create the credential for `account_number` and write
    the response to credential-<account_number>.json.

    Returns:
        Path to the written file.
    """
    data_dir = Path(data_dir)
    request = _public_inputs(data_dir)
    request.update(
        {
            "identityObject": load_json(data_dir / IDENTITY_OBJECT_FILE),
            "privateIdObjectData": load_json(data_dir / ID_REQUEST_FILE)["privateIdObjectData"],
            "revealedAttributes": revealed_attributes,
            "accountNumber": account_number,
            "expiry": expiry,
        }
    )
    path = data_dir / f"credential-{account_number}.json"
    save_json(path, json.loads(api.create_credential(json.dumps(request), csprng)), private=True)
    return path


def generate_table(path: str | Path, data_dir: str | Path, m: int) -> None:
    """
    Precompute the decryption table for the chain's generator and save it.
    """
    global_context = from_json(GlobalContext, load_json(Path(data_dir) / GLOBAL_FILE))
    BabyStepGiantStep.new(global_context.elgamal_generator, m).save(path)


def load_table(path: str | Path, data_dir: str | Path, m: int = TABLE_SIZE) -> BabyStepGiantStep:
    """
    The decryption table for the chain's generator, read from `path`. The
    table is built and saved there on first use.
    """
    global_context = from_json(GlobalContext, load_json(Path(data_dir) / GLOBAL_FILE))
    return BabyStepGiantStep.load_or_build(global_context.elgamal_generator, m, path)
