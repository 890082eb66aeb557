# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# idwallet/account_holder.py

"""
Account holder side of the identity protocol.

An account holder asks an identity provider for an identity object and later
turns that identity object into credentials, one per account. Each account is
identified by its registration ID

    R_n = g^(1 / (prf_key + n))

which is deterministic in the PRF key and the account number, unlinkable
without the PRF key, and doubles as the account's shielded balance public key.
"""

from collections.abc import Iterator
from random import Random

from structlog import get_logger

from idwallet.bls12381 import curve_order, multi_scale, rng, scale, subtract
from idwallet.constants import CRD_DOMAIN_TAG, MAX_AR_THRESHOLD, PIO_DOMAIN_TAG
from idwallet.elgamal import (
    Cipher,
    PublicKey,
    SecretKey,
    encrypt_exponent_given_randomness,
    encrypt_point,
)
from idwallet.errors import InputError, PolicyError, PrfOutOfDomain
from idwallet.hashing import digest, generate
from idwallet.pedersen import CommitmentKey
from idwallet.prf import prf, prf_exponent
from idwallet.schnorr import schnorr_proof
from idwallet.serial import U32, compose
from idwallet.sharing import evaluate, share
from idwallet.sigma import Equation, prove_linear
from idwallet.types import (
    CREDENTIAL_TARGET,
    AccCredentialInfo,
    AccountAddress,
    AccountEntry,
    ArInfo,
    ChainArData,
    ChoiceArParameters,
    CredentialDeploymentInfo,
    CredentialDeploymentProofs,
    CredentialDeploymentValues,
    CredentialData,
    CredentialPublicKeys,
    CredentialTarget,
    GlobalContext,
    IdentityObject,
    IdObjectUseData,
    InitialAccount,
    IpArData,
    IpInfo,
    Policy,
    PreIdentityObject,
)

logger = get_logger()


def reg_id_statement(
    ck: CommitmentKey,
    reg_id: str,
    cmm_prf: str,
    account_number: int | None = None,
    cmm_account_number: str | None = None,
) -> list[Equation]:
    """
    Statement that `reg_id` is the PRF output for the key inside `cmm_prf`.

    With a public `account_number` the witnesses are (prf_key, prf randomness).
    With a hidden one, committed in `cmm_account_number`, they are
    (prf_key, prf randomness, account number, account number randomness).
    """
    prf_key_relation = (cmm_prf, [(ck.g, 0), (ck.h, 1)])
    if account_number is not None:
        return [
            (subtract(ck.g, scale(reg_id, account_number)), [(reg_id, 0)]),
            prf_key_relation,
        ]
    if cmm_account_number is None:
        raise InputError("A hidden account number needs its commitment")
    return [
        (ck.g, [(reg_id, 0), (reg_id, 2)]),
        prf_key_relation,
        (cmm_account_number, [(ck.g, 2), (ck.h, 3)]),
    ]


def com_enc_eq_statement(
    ck: CommitmentKey, ar_public_key: PublicKey, commitment: str, cipher: Cipher
) -> list[Equation]:
    """
    Statement that `commitment` and `cipher` hide the same share. Witnesses:
    (share, commitment randomness, encryption randomness).
    """
    return [
        (commitment, [(ck.g, 0), (ck.h, 1)]),
        (cipher.c1, [(ar_public_key.generator, 2)]),
        (cipher.c2, [(ar_public_key.generator, 0), (ar_public_key.key, 2)]),
    ]


def share_commitment(coefficient_commitments: list[str], x: int) -> str:
    """
    Commitment to the share at `x`, derived from the commitments to the
    sharing polynomial's coefficients.
    """
    return multi_scale(
        [(cmm, pow(x, j, curve_order)) for j, cmm in enumerate(coefficient_commitments)]
    )


def revocation_threshold(ar_count: int) -> int:
    """
    Number of revokers needed to revoke: all but one, at least one and at
    most `MAX_AR_THRESHOLD`.
    """
    return min(MAX_AR_THRESHOLD, max(1, ar_count - 1))


def pio_context(ip_info: IpInfo, id_cred_pub: str) -> str:
    return PIO_DOMAIN_TAG + U32.put(ip_info.ip_identity).hex() + id_cred_pub


def initial_account_message(id_cred_pub: str, reg_id: str, keys: CredentialPublicKeys) -> bytes:
    return digest(bytes.fromhex(PIO_DOMAIN_TAG + id_cred_pub + reg_id + compose(keys).hex()))


def create_identity_request(
    ip_info: IpInfo,
    ar_infos: dict[int, ArInfo],
    global_context: GlobalContext,
    csprng: Random | None = None,
) -> tuple[PreIdentityObject, IdObjectUseData, CredentialData]:
    """
    Create the request sent to an identity provider.

    Every anonymity revoker in `ar_infos` is chosen, and any
    `revocation_threshold(n)` of them can later revoke anonymity, so losing a
    single revoker is tolerated.

    Args:
        ip_info: The identity provider the request is for.
        ar_infos: Anonymity revokers by identity.
        global_context: Chain-wide commitment key and generator.
        csprng: Source of randomness.

    Returns:
        The pre-identity object, the private data the holder must keep, and
        the keys of the initial account.

    Raises:
        PolicyError: If there are no anonymity revokers or one has identity 0.
    """
    if not ar_infos:
        raise PolicyError("At least one anonymity revoker is required")
    ck = global_context.on_chain_commitment_key
    ar_identities = sorted(ar_infos)
    threshold = revocation_threshold(len(ar_identities))

    id_cred_sec = rng(csprng)
    prf_key = rng(csprng)
    id_cred_pub = scale(ck.g, id_cred_sec)
    context = pio_context(ip_info, id_cred_pub)
    pok_sc = schnorr_proof(id_cred_sec, ck.g, id_cred_pub, context, csprng)

    coefficients, shares = share(prf_key, threshold, ar_identities, csprng)
    randomness = [rng(csprng) for _ in coefficients]
    coefficient_commitments = [ck.commit(a, r) for a, r in zip(coefficients, randomness)]
    cmm_prf = coefficient_commitments[0]

    ip_ar_data = {}
    for ar_identity in ar_identities:
        ar_public_key = ar_infos[ar_identity].ar_public_key
        k = rng(csprng)
        cipher = encrypt_exponent_given_randomness(ar_public_key, shares[ar_identity], k)
        statement = com_enc_eq_statement(
            ck, ar_public_key, share_commitment(coefficient_commitments, ar_identity), cipher
        )
        proof = prove_linear(
            statement,
            [shares[ar_identity], evaluate(randomness, ar_identity), k],
            context + U32.put(ar_identity).hex(),
            csprng,
        )
        ip_ar_data[ar_identity] = IpArData(cipher, proof)

    initial_keys = CredentialData.generate(csprng)
    reg_id = prf(global_context.elgamal_generator, prf_key, 0)
    proof_reg_id = prove_linear(
        reg_id_statement(ck, reg_id, cmm_prf, account_number=0),
        [prf_key, randomness[0]],
        context,
        csprng,
    )
    cred_key_info = initial_keys.public()
    initial_account = InitialAccount(
        reg_id,
        cred_key_info,
        proof_reg_id,
        initial_keys.sign(initial_account_message(id_cred_pub, reg_id, cred_key_info)),
    )
    pio = PreIdentityObject(
        id_cred_pub=id_cred_pub,
        ip_ar_data=ip_ar_data,
        choice_ar_data=ChoiceArParameters(ar_identities, threshold),
        pok_sc=pok_sc,
        cmm_prf=cmm_prf,
        cmm_prf_sharing_coeff=coefficient_commitments,
        initial_account=initial_account,
    )
    logger.debug(
        "created identity request",
        ip_identity=ip_info.ip_identity,
        ar_count=len(ar_identities),
        threshold=threshold,
    )
    use_data = IdObjectUseData(AccCredentialInfo(id_cred_sec, prf_key), randomness[0])
    return pio, use_data, initial_keys


def build_policy(identity_object: IdentityObject, revealed_tags: list[int]) -> Policy:
    """
    Policy revealing the listed attributes of the identity object.

    Raises:
        PolicyError: If a tag is listed twice or is not in the attribute list.
    """
    alist = identity_object.alist
    revealed = {}
    for tag in revealed_tags:
        if tag in revealed:
            raise PolicyError("Cannot reveal an attribute more than once.")
        if tag not in alist.alist:
            raise PolicyError("Cannot reveal an attribute which is not part of the attribute list.")
        revealed[tag] = alist.alist[tag]
    return Policy(alist.valid_to, alist.created_at, revealed)


def credential_challenge(
    values: CredentialDeploymentValues,
    identity_object: IdentityObject,
    cmm_account_number: str,
    target: CredentialTarget,
) -> str:
    return generate(
        CRD_DOMAIN_TAG
        + compose(values).hex()
        + compose(identity_object).hex()
        + cmm_account_number
        + CREDENTIAL_TARGET.put(target).hex()
    )


def create_credential(
    ip_info: IpInfo,
    ar_infos: dict[int, ArInfo],
    global_context: GlobalContext,
    identity_object: IdentityObject,
    id_use_data: IdObjectUseData,
    account_number: int,
    revealed_tags: list[int],
    target: CredentialTarget,
    csprng: Random | None = None,
) -> tuple[CredentialDeploymentInfo, CredentialData]:
    """
    Create the credential deploying account `account_number` of an identity.

    The credential carries fresh account keys, the registration ID, the
    identity credential public key shared among the chosen anonymity revokers,
    the revealed attributes, and proofs binding all of it to the identity
    object. The account number itself stays hidden behind a commitment.

    Returns:
        The credential and the new account's signing keys.

    Raises:
        PolicyError: On an invalid reveal request or an account number at or
            above the identity's `max_accounts`.
        InputError: If a chosen anonymity revoker is missing from `ar_infos`.
        PrfOutOfDomain: If the PRF is undefined for `account_number`.
    """
    alist = identity_object.alist
    if not 0 <= account_number < alist.max_accounts:
        raise PolicyError(f"Account number must be below {alist.max_accounts}")
    policy = build_policy(identity_object, revealed_tags)
    pio = identity_object.pre_identity_object
    choice = pio.choice_ar_data
    missing = [i for i in choice.ar_identities if i not in ar_infos]
    if missing:
        raise InputError(f"Unknown anonymity revokers {missing}")

    ck = global_context.on_chain_commitment_key
    aci = id_use_data.aci
    reg_id = prf(global_context.elgamal_generator, aci.prf_key, account_number)
    cred_data = CredentialData.generate(csprng)

    _, shares = share(aci.id_cred_sec, choice.threshold, choice.ar_identities, csprng)
    ar_data = {}
    for ar_identity, s in shares.items():
        ar_public_key = ar_infos[ar_identity].ar_public_key
        ar_data[ar_identity] = ChainArData(
            encrypt_point(ar_public_key, scale(ar_public_key.generator, s), csprng)
        )

    values = CredentialDeploymentValues(
        cred_key_info=cred_data.public(),
        cred_id=reg_id,
        ip_identity=ip_info.ip_identity,
        threshold=choice.threshold,
        ar_data=ar_data,
        policy=policy,
    )
    cmm_account_number, account_randomness = ck.commit_fresh(account_number, csprng)
    challenge = credential_challenge(values, identity_object, cmm_account_number, target)
    proof_reg_id = prove_linear(
        reg_id_statement(ck, reg_id, pio.cmm_prf, cmm_account_number=cmm_account_number),
        [aci.prf_key, id_use_data.randomness, account_number, account_randomness],
        challenge,
        csprng,
    )
    proofs = CredentialDeploymentProofs(
        identity_object=identity_object,
        cmm_account_number=cmm_account_number,
        proof_reg_id=proof_reg_id,
        proof_acc_sk=cred_data.sign(bytes.fromhex(challenge)),
    )
    logger.debug(
        "created credential",
        ip_identity=ip_info.ip_identity,
        revealed=len(policy.policy_vec),
    )
    return CredentialDeploymentInfo(values, proofs), cred_data


def account_entry(global_context: GlobalContext, prf_key: int, account_number: int) -> AccountEntry:
    """
    Address and shielded balance keys of one account.

    Raises:
        PrfOutOfDomain: If the PRF is undefined for `account_number`.
    """
    g = global_context.elgamal_generator
    secret = SecretKey(g, prf_exponent(prf_key, account_number))
    reg_id = scale(g, secret.scalar)
    return AccountEntry(
        account_number=account_number,
        address=AccountAddress.new(reg_id),
        reg_id=reg_id,
        encryption_secret_key=secret,
        encryption_public_key=PublicKey(g, reg_id),
    )


def enumerate_accounts(
    global_context: GlobalContext,
    identity_object: IdentityObject,
    id_use_data: IdObjectUseData,
    start: int = 0,
) -> Iterator[AccountEntry]:
    """
    Lazily derive the accounts of an identity, from `start` up to its
    `max_accounts`. Account numbers outside the PRF domain are skipped.
    """
    for n in range(start, identity_object.alist.max_accounts):
        try:
            entry = account_entry(global_context, id_use_data.aci.prf_key, n)
        except PrfOutOfDomain:
            logger.debug("skipping account outside the prf domain", account_number=n)
            continue
        yield entry
