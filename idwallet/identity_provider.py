# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# idwallet/identity_provider.py

"""
Identity provider side of the identity protocol, and credential checks.

The identity provider checks a pre-identity object, attaches the attribute
list it vouches for, and signs both with a BLS signature. Anyone holding the
provider's public key can then check identity objects and the credentials
built from them.
"""

import secrets
from random import Random

from py_ecc.bls import G2ProofOfPossession as bls
from structlog import get_logger

from idwallet.account_holder import (
    com_enc_eq_statement,
    credential_challenge,
    initial_account_message,
    pio_context,
    reg_id_statement,
    share_commitment,
)
from idwallet.constants import IDO_DOMAIN_TAG
from idwallet.errors import PolicyError, ProofError
from idwallet.hashing import digest
from idwallet.schnorr import verify_schnorr
from idwallet.serial import U32, compose
from idwallet.sigma import verify_linear
from idwallet.types import (
    ArInfo,
    AttributeList,
    CredentialDeploymentInfo,
    CredentialPublicKeys,
    CredentialTarget,
    Description,
    GlobalContext,
    IdentityObject,
    IpInfo,
    PreIdentityObject,
    verify_signature,
)

logger = get_logger()


def generate_ip_keys(
    ip_identity: int, description: Description, csprng: Random | None = None
) -> tuple[IpInfo, int]:
    """
    Create an identity provider key pair.

    Returns:
        The public provider info and the BLS secret key.
    """
    ikm = secrets.token_bytes(32) if csprng is None else csprng.randbytes(32)
    secret = bls.KeyGen(ikm)
    return IpInfo(ip_identity, description, bytes(bls.SkToPk(secret)).hex()), secret


def _signed_by_keys(keys: CredentialPublicKeys, message: bytes, sigs: dict[int, bytes]) -> bool:
    if len(sigs) < keys.threshold:
        return False
    for index, sig in sigs.items():
        if index not in keys.keys or not verify_signature(keys.keys[index], message, sig):
            return False
    return True


def validate_request(
    ip_info: IpInfo,
    ar_infos: dict[int, ArInfo],
    global_context: GlobalContext,
    pio: PreIdentityObject,
) -> None:
    """
    Check every proof in a pre-identity object.

    Raises:
        PolicyError: If the revoker choice or threshold is inconsistent.
        ProofError: If a proof or signature does not verify.
    """
    ck = global_context.on_chain_commitment_key
    choice = pio.choice_ar_data
    if not 1 <= choice.threshold <= len(choice.ar_identities):
        raise PolicyError("Invalid anonymity revocation threshold")
    if any(i not in ar_infos for i in choice.ar_identities):
        raise PolicyError("Unknown anonymity revoker")
    if sorted(pio.ip_ar_data) != sorted(choice.ar_identities):
        raise PolicyError("Anonymity revoker data does not match the choice")
    if len(pio.cmm_prf_sharing_coeff) != choice.threshold:
        raise PolicyError("Sharing polynomial does not match the threshold")
    if pio.cmm_prf_sharing_coeff[0] != pio.cmm_prf:
        raise ProofError("PRF key commitment does not open the sharing polynomial")

    context = pio_context(ip_info, pio.id_cred_pub)
    if not verify_schnorr(pio.pok_sc, ck.g, pio.id_cred_pub, context):
        raise ProofError("Invalid proof of knowledge of the id credential secret")
    for ar_identity, data in pio.ip_ar_data.items():
        statement = com_enc_eq_statement(
            ck,
            ar_infos[ar_identity].ar_public_key,
            share_commitment(pio.cmm_prf_sharing_coeff, ar_identity),
            data.enc_prf_key_share,
        )
        if not verify_linear(statement, data.proof_com_enc_eq, context + U32.put(ar_identity).hex()):
            raise ProofError(f"Invalid PRF key share for anonymity revoker {ar_identity}")

    initial = pio.initial_account
    statement = reg_id_statement(ck, initial.reg_id, pio.cmm_prf, account_number=0)
    if not verify_linear(statement, initial.proof_reg_id, context):
        raise ProofError("Invalid registration ID of the initial account")
    message = initial_account_message(pio.id_cred_pub, initial.reg_id, initial.cred_key_info)
    if not _signed_by_keys(initial.cred_key_info, message, initial.sigs):
        raise ProofError("Invalid signatures of the initial account")


def identity_object_message(
    ip_identity: int, pio: PreIdentityObject, alist: AttributeList
) -> bytes:
    return digest(
        bytes.fromhex(IDO_DOMAIN_TAG) + U32.put(ip_identity) + compose(pio) + compose(alist)
    )


def sign_identity_object(
    ip_info: IpInfo,
    ip_secret: int,
    ar_infos: dict[int, ArInfo],
    global_context: GlobalContext,
    pio: PreIdentityObject,
    alist: AttributeList,
) -> IdentityObject:
    """
    Validate a request and sign it together with the attribute list.

    Raises:
        PolicyError, ProofError: If the request does not validate.
    """
    validate_request(ip_info, ar_infos, global_context, pio)
    signature = bls.Sign(ip_secret, identity_object_message(ip_info.ip_identity, pio, alist))
    logger.debug(
        "signed identity object", ip_identity=ip_info.ip_identity, attributes=len(alist.alist)
    )
    return IdentityObject(pio, alist, bytes(signature).hex())


def verify_identity_object(ip_info: IpInfo, identity_object: IdentityObject) -> bool:
    message = identity_object_message(
        ip_info.ip_identity, identity_object.pre_identity_object, identity_object.alist
    )
    return bls.Verify(
        bytes.fromhex(ip_info.ip_verify_key), message, bytes.fromhex(identity_object.signature)
    )


def verify_credential(
    ip_info: IpInfo,
    global_context: GlobalContext,
    credential: CredentialDeploymentInfo,
    target: CredentialTarget,
) -> bool:
    """
    Check a credential against the identity provider that issued its identity
    object: the provider signature, the revealed attributes, the registration
    ID proof and the account key signatures.
    """
    values, proofs = credential.values, credential.proofs
    identity_object = proofs.identity_object
    pio = identity_object.pre_identity_object
    alist = identity_object.alist
    if values.ip_identity != ip_info.ip_identity:
        return False
    if not verify_identity_object(ip_info, identity_object):
        logger.debug("credential carries an invalid identity object")
        return False

    policy = values.policy
    if (policy.valid_to, policy.created_at) != (alist.valid_to, alist.created_at):
        return False
    if any(alist.alist.get(tag) != value for tag, value in policy.policy_vec.items()):
        return False
    choice = pio.choice_ar_data
    if values.threshold != choice.threshold or sorted(values.ar_data) != sorted(choice.ar_identities):
        return False

    ck = global_context.on_chain_commitment_key
    challenge = credential_challenge(values, identity_object, proofs.cmm_account_number, target)
    statement = reg_id_statement(
        ck, values.cred_id, pio.cmm_prf, cmm_account_number=proofs.cmm_account_number
    )
    if not verify_linear(statement, proofs.proof_reg_id, challenge):
        logger.debug("credential has an invalid registration ID proof")
        return False
    return _signed_by_keys(values.cred_key_info, bytes.fromhex(challenge), proofs.proof_acc_sk)
