# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# idwallet/api.py

"""
JSON request / response boundary of the wallet core.

Every operation takes its request as a JSON string and returns its response
as a JSON string. `call` wraps an operation so that the host always gets back
exactly one of a success response or an error message, together with a
success flag:

    response, success = call(create_transfer, request)
"""

import json
from random import Random
from typing import Any, Callable

from structlog import get_logger

from idwallet import account_holder, encrypted_transfers
from idwallet.constants import VERSION_0
from idwallet.dlog import BabyStepGiantStep
from idwallet.elgamal import EncryptedAmount, PublicKey, SecretKey, decrypt_amount
from idwallet.errors import InputError, InvalidAddress, WalletError
from idwallet.serial import U8, U32, U64, Codec, ListOf, MapOf, Struct, to_json, unversioned, versioned
from idwallet.transactions import (
    TransferContext,
    make_signatures,
    make_transaction_bytes,
)
from idwallet.types import (
    ADDRESS,
    ATTRIBUTE_TAG,
    AccountAddress,
    AccountCredentialMessage,
    AccountEntry,
    AccountKeys,
    ArInfo,
    ExistingAccount,
    GlobalContext,
    IdentityObject,
    IdObjectUseData,
    IpInfo,
    NewAccount,
)

logger = get_logger()

AR_INFOS = MapOf(U32, Struct(ArInfo), 4)
REVEALED_ATTRIBUTES = ListOf(ATTRIBUTE_TAG, 1)


def _parse(request: str) -> dict:
    try:
        value = json.loads(request)
    except json.JSONDecodeError as e:
        raise InputError(f"Could not parse input: {e}") from e
    if not isinstance(value, dict):
        raise InputError("Input must be a JSON object")
    return value


def try_get(value: dict, field: str, codec: Codec) -> Any:
    if field not in value:
        raise InputError(f"Field {field} not present, but should be.")
    return codec.from_json(value[field])


def try_get_object(value: dict, field: str, cls: type) -> Any:
    """
    Like `try_get` for a structure, accepting both its plain and its
    versioned JSON form.
    """
    if field not in value:
        raise InputError(f"Field {field} not present, but should be.")
    raw = value[field]
    if isinstance(raw, dict) and set(raw) == {"v", "value"}:
        return unversioned(cls, raw, VERSION_0)
    return Struct(cls).from_json(raw)


def _transfer_context(value: dict) -> TransferContext:
    return TransferContext(
        from_=try_get(value, "from", ADDRESS),
        nonce=try_get(value, "nonce", U64),
        energy=try_get(value, "energy", U64),
        expiry=try_get(value, "expiry", U64),
        keys=try_get_object(value, "keys", AccountKeys),
    )


def _signed(ctx: TransferContext, payload: bytes, **extra: Any) -> str:
    hash_to_sign, body = make_transaction_bytes(ctx, payload)
    signatures = make_signatures(ctx.keys, hash_to_sign)
    response = {"signatures": to_json(signatures)["signatures"], "transaction": body.hex()}
    response.update(extra)
    return json.dumps(response)


def _account_json(entry: AccountEntry) -> dict:
    return {
        "encryptionSecretKey": to_json(entry.encryption_secret_key),
        "encryptionPublicKey": to_json(entry.encryption_public_key),
        "accountAddress": str(entry.address),
    }


def create_transfer(request: str) -> str:
    """
    A plain transfer of `amount` from the public balance of `from` to `to`.
    """
    value = _parse(request)
    ctx = _transfer_context(value)
    to = try_get(value, "to", ADDRESS)
    amount = try_get(value, "amount", U64)
    return _signed(ctx, encrypted_transfers.transfer_payload(to, amount))


def create_encrypted_transfer(request: str, csprng: Random | None = None) -> str:
    """
    A transfer between shielded balances. The response carries the sender's
    new shielded balance as `remaining`.
    """
    value = _parse(request)
    ctx = _transfer_context(value)
    to = try_get(value, "to", ADDRESS)
    global_context = try_get_object(value, "global", GlobalContext)
    amount = try_get(value, "amount", U64)
    sender_sk = try_get_object(value, "senderSecretKey", SecretKey)
    receiver_pk = try_get_object(value, "receiverPublicKey", PublicKey)
    input_amount = try_get_object(
        value, "inputEncryptedAmount", encrypted_transfers.AggregatedDecryptedAmount
    )
    data = encrypted_transfers.make_transfer_data(
        global_context, receiver_pk, sender_sk, input_amount, amount, csprng
    )
    if data is None:
        raise WalletError("Could not produce payload.")
    return _signed(
        ctx,
        encrypted_transfers.encrypted_transfer_payload(to, data),
        remaining=to_json(data.remaining_amount),
    )


def create_pub_to_sec_transfer(request: str) -> str:
    """
    Move `amount` from the public to the shielded balance. The response carries
    the encryption added to the shielded balance as `addedSelfEncryptedAmount`.
    """
    value = _parse(request)
    ctx = _transfer_context(value)
    amount = try_get(value, "amount", U64)
    global_context = try_get_object(value, "global", GlobalContext)
    added = encrypted_transfers.pub_to_sec_self_amount(global_context, amount)
    return _signed(
        ctx, encrypted_transfers.pub_to_sec_payload(amount), addedSelfEncryptedAmount=to_json(added)
    )


def create_sec_to_pub_transfer(request: str, csprng: Random | None = None) -> str:
    value = _parse(request)
    ctx = _transfer_context(value)
    global_context = try_get_object(value, "global", GlobalContext)
    amount = try_get(value, "amount", U64)
    sender_sk = try_get_object(value, "senderSecretKey", SecretKey)
    input_amount = try_get_object(
        value, "inputEncryptedAmount", encrypted_transfers.AggregatedDecryptedAmount
    )
    data = encrypted_transfers.make_sec_to_pub_transfer_data(
        global_context, sender_sk, input_amount, amount, csprng
    )
    if data is None:
        raise WalletError("Could not produce payload.")
    return _signed(
        ctx,
        encrypted_transfers.sec_to_pub_payload(data),
        remaining=to_json(data.remaining_amount),
    )


def combine_encrypted_amounts(left: str, right: str) -> str:
    """
    Homomorphic sum of two encrypted amounts, each given as a JSON string.
    """
    try:
        left_amount = Struct(EncryptedAmount).from_json(json.loads(left))
        right_amount = Struct(EncryptedAmount).from_json(json.loads(right))
    except json.JSONDecodeError as e:
        raise InputError(f"Could not parse input: {e}") from e
    combined = encrypted_transfers.aggregate_two_encrypted_amounts(left_amount, right_amount)
    return json.dumps(to_json(combined))


def create_id_request_and_private_data(request: str, csprng: Random | None = None) -> str:
    value = _parse(request)
    ip_info = try_get_object(value, "ipInfo", IpInfo)
    global_context = try_get_object(value, "global", GlobalContext)
    ar_infos = try_get(value, "arsInfos", AR_INFOS)
    pio, use_data, initial_keys = account_holder.create_identity_request(
        ip_info, ar_infos, global_context, csprng
    )
    entry = account_holder.account_entry(global_context, use_data.aci.prf_key, 0)
    initial_account = {"accountKeys": to_json(AccountKeys.from_credential_data(initial_keys))}
    initial_account.update(_account_json(entry))
    return json.dumps(
        {
            "idObjectRequest": versioned(pio, VERSION_0),
            "privateIdObjectData": versioned(use_data, VERSION_0),
            "initialAccountData": initial_account,
        }
    )


def create_credential(request: str, csprng: Random | None = None) -> str:
    """
    Credential for account `accountNumber` of an identity. A new account is
    created unless the request names an `existingAccount` address to attach
    the credential to.
    """
    value = _parse(request)
    expiry = try_get(value, "expiry", U64)
    ip_info = try_get_object(value, "ipInfo", IpInfo)
    ar_infos = try_get(value, "arsInfos", AR_INFOS)
    global_context = try_get_object(value, "global", GlobalContext)
    identity_object = try_get_object(value, "identityObject", IdentityObject)
    use_data = try_get_object(value, "privateIdObjectData", IdObjectUseData)
    tags = try_get(value, "revealedAttributes", REVEALED_ATTRIBUTES)
    account_number = try_get(value, "accountNumber", U8)
    if "existingAccount" in value:
        target = ExistingAccount(try_get(value, "existingAccount", ADDRESS))
    else:
        target = NewAccount(expiry)

    cdi, cred_data = account_holder.create_credential(
        ip_info,
        ar_infos,
        global_context,
        identity_object,
        use_data,
        account_number,
        tags,
        target,
        csprng,
    )
    entry = account_holder.account_entry(global_context, use_data.aci.prf_key, account_number)
    if isinstance(target, ExistingAccount):
        address = target.address
    else:
        address = AccountAddress.new(cdi.values.cred_id)
    response = {
        "credential": versioned(AccountCredentialMessage(expiry, cdi), VERSION_0),
        "accountKeys": to_json(AccountKeys.from_credential_data(cred_data)),
    }
    response.update(_account_json(entry))
    response["accountAddress"] = str(address)
    return json.dumps(response)


def generate_accounts(request: str) -> str:
    value = _parse(request)
    global_context = try_get_object(value, "global", GlobalContext)
    identity_object = try_get_object(value, "identityObject", IdentityObject)
    use_data = try_get_object(value, "privateIdObjectData", IdObjectUseData)
    start = U8.from_json(value["start"]) if "start" in value else 0
    accounts = account_holder.enumerate_accounts(global_context, identity_object, use_data, start)
    return json.dumps([_account_json(entry) for entry in accounts])


def decrypt_encrypted_amount(request: str, table: BabyStepGiantStep) -> int:
    value = _parse(request)
    encrypted = try_get_object(value, "encryptedAmount", EncryptedAmount)
    secret = try_get_object(value, "encryptionSecretKey", SecretKey)
    return decrypt_amount(table, secret, encrypted)


def check_account_address(address: str) -> bool:
    try:
        AccountAddress.from_string(address)
    except InvalidAddress:
        return False
    return True


def call(operation: Callable[..., Any], *inputs: Any) -> tuple[Any, bool]:
    """
    Run an operation and report either its response or why it failed.

    Returns:
        `(response, True)` on success, `(message, False)` on failure.
    """
    if any(i is None for i in inputs):
        return "Null pointer input.", False
    try:
        response = operation(*inputs)
    except ValueError as e:
        logger.info("request failed", operation=operation.__name__, error=str(e))
        return f"Could not produce response: {e}", False
    return response, True
