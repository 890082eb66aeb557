# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# idwallet/types.py

"""
Data model shared by the identity and transfer protocols.

Field order in each `FIELDS` table is the canonical wire order. Secret
material (`AccCredentialInfo`, `KeyPair`, `CredentialData`) is plain data
owned by the caller; nothing in this package keeps a reference to it between
calls.
"""

import secrets
from dataclasses import dataclass
from random import Random
from typing import Any

import base58
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from idwallet.constants import (
    ACCOUNT_ADDRESS_SIZE,
    ADDRESS_VERSION,
    ATTRIBUTE_NAMES,
    DEFAULT_SIGNATURE_THRESHOLD,
)
from idwallet.elgamal import Cipher, PublicKey, SecretKey
from idwallet.errors import InvalidAddress, SerialError
from idwallet.hashing import digest
from idwallet.pedersen import CommitmentKey
from idwallet.schnorr import SchnorrProof
from idwallet.serial import (
    G1,
    G2,
    SCALAR,
    U8,
    U32,
    U64,
    Codec,
    FixedBytes,
    ListOf,
    MapOf,
    Reader,
    String,
    Struct,
    Tagged,
    UInt,
    VarBytes,
)
from idwallet.sigma import LinearProof

# ed25519 keys and signatures
VERIFY_KEY = FixedBytes(32)
SIGN_KEY = FixedBytes(32)
SIGNATURE = VarBytes(2)
# identity provider signature, a compressed G2 element
IP_SIGNATURE = G2


@dataclass(frozen=True)
class AccountAddress:
    raw: bytes

    def __post_init__(self):
        if len(self.raw) != ACCOUNT_ADDRESS_SIZE:
            raise InvalidAddress(f"Address size must be {ACCOUNT_ADDRESS_SIZE} bytes")

    @classmethod
    def new(cls, reg_id: str) -> "AccountAddress":
        """
        Address of the account created by the credential with `reg_id`.
        """
        return cls(digest(bytes.fromhex(reg_id)))

    @classmethod
    def from_string(cls, address58: str) -> "AccountAddress":
        """
        Decode a base58check address.

        Raises:
            InvalidAddress: If the string is not valid base58, has a bad
                checksum, the wrong version byte or the wrong length.
        """
        try:
            decoded = base58.b58decode_check(address58)
        except ValueError as e:
            raise InvalidAddress("Invalid base58 address") from e
        if len(decoded) != ACCOUNT_ADDRESS_SIZE + 1:
            raise InvalidAddress("Address size must have 33 bytes")
        if decoded[0] != ADDRESS_VERSION:
            raise InvalidAddress(f"Unknown address version {decoded[0]}")
        return cls(decoded[1:])

    def __str__(self) -> str:
        return base58.b58encode_check(bytes([ADDRESS_VERSION]) + self.raw).decode("utf-8")


class AddressCodec(Codec):
    def put(self, value: AccountAddress) -> bytes:
        return value.raw

    def get(self, reader: Reader) -> AccountAddress:
        return AccountAddress(reader.take(ACCOUNT_ADDRESS_SIZE))

    def to_json(self, value: AccountAddress) -> str:
        return str(value)

    def from_json(self, value: Any) -> AccountAddress:
        if not isinstance(value, str):
            raise InvalidAddress("Address must be a string")
        return AccountAddress.from_string(value)


class YearMonthCodec(Codec):
    """
    A "YYYYMM" string, written as year (u16) and month (u8).
    """

    def put(self, value: str) -> bytes:
        year, month = _parse_year_month(value)
        return year.to_bytes(2, "big") + bytes([month])

    def get(self, reader: Reader) -> str:
        year = int.from_bytes(reader.take(2), "big")
        month = reader.take(1)[0]
        value = f"{year:04d}{month:02d}"
        _parse_year_month(value)
        return value

    def from_json(self, value: Any) -> str:
        _parse_year_month(value)
        return value


def _parse_year_month(value: Any) -> tuple[int, int]:
    if not isinstance(value, str) or len(value) != 6 or not value.isdigit():
        raise SerialError(f"Expected a YYYYMM string, got {value!r}")
    year, month = int(value[:4]), int(value[4:])
    if not 1 <= month <= 12:
        raise SerialError(f"Invalid month in {value!r}")
    return year, month


class AttributeTagCodec(UInt):
    """
    Attribute tags are u8 on the wire and use their names in JSON when known.
    """

    def __init__(self):
        super().__init__(1)

    def to_json(self, value: int) -> Any:
        if value < len(ATTRIBUTE_NAMES):
            return ATTRIBUTE_NAMES[value]
        return value

    def from_json(self, value: Any) -> int:
        if isinstance(value, str) and value in ATTRIBUTE_NAMES:
            return ATTRIBUTE_NAMES.index(value)
        if isinstance(value, str) and not value.isdigit():
            raise SerialError(f"Unknown attribute tag {value!r}")
        tag = super().from_json(value)
        if tag > 253:
            raise SerialError(f"Attribute tag {tag} is reserved")
        return tag


ADDRESS = AddressCodec()
YEAR_MONTH = YearMonthCodec()
ATTRIBUTE_TAG = AttributeTagCodec()
# attribute values are short strings
ATTRIBUTE_VALUE = String(1)


def verify_signature(verify_key: bytes, message: bytes, signature: bytes) -> bool:
    try:
        Ed25519PublicKey.from_public_bytes(verify_key).verify(signature, message)
    except (InvalidSignature, ValueError):
        return False
    return True


@dataclass(frozen=True)
class KeyPair:
    sign_key: bytes
    verify_key: bytes

    FIELDS = (("sign_key", SIGN_KEY), ("verify_key", VERIFY_KEY))

    @classmethod
    def generate(cls, csprng: Random | None = None) -> "KeyPair":
        seed = secrets.token_bytes(32) if csprng is None else csprng.randbytes(32)
        private = Ed25519PrivateKey.from_private_bytes(seed)
        public = private.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
        return cls(seed, public)

    def sign(self, message: bytes) -> bytes:
        return Ed25519PrivateKey.from_private_bytes(self.sign_key).sign(message)

    def __repr__(self) -> str:
        return f"KeyPair(verify_key={self.verify_key.hex()!r}, sign_key=<hidden>)"


@dataclass(frozen=True)
class CredentialPublicKeys:
    keys: dict[int, bytes]
    threshold: int

    FIELDS = (("keys", MapOf(U8, VERIFY_KEY, 1)), ("threshold", U8))


@dataclass(frozen=True)
class CredentialData:
    """
    Signing keys of one credential on an account, with the signature
    threshold.
    """

    keys: dict[int, KeyPair]
    threshold: int

    FIELDS = (("keys", MapOf(U8, Struct(KeyPair), 1)), ("threshold", U8))

    @classmethod
    def generate(cls, csprng: Random | None = None) -> "CredentialData":
        return cls({0: KeyPair.generate(csprng)}, DEFAULT_SIGNATURE_THRESHOLD)

    def public(self) -> CredentialPublicKeys:
        return CredentialPublicKeys(
            {i: kp.verify_key for i, kp in self.keys.items()}, self.threshold
        )

    def sign(self, message: bytes) -> dict[int, bytes]:
        return {i: self.keys[i].sign(message) for i in sorted(self.keys)}


@dataclass(frozen=True)
class AccountKeys:
    keys: dict[int, CredentialData]
    threshold: int

    FIELDS = (("keys", MapOf(U8, Struct(CredentialData), 1)), ("threshold", U8))

    @classmethod
    def from_credential_data(cls, data: CredentialData) -> "AccountKeys":
        return cls({0: data}, DEFAULT_SIGNATURE_THRESHOLD)


@dataclass(frozen=True)
class Description:
    name: str
    url: str
    description: str

    FIELDS = (("name", String(4)), ("url", String(4)), ("description", String(4)))


@dataclass(frozen=True)
class IpInfo:
    ip_identity: int
    ip_description: Description
    # compressed G1 BLS public key
    ip_verify_key: str

    FIELDS = (
        ("ip_identity", U32),
        ("ip_description", Struct(Description)),
        ("ip_verify_key", G1),
    )


@dataclass(frozen=True)
class ArInfo:
    ar_identity: int
    ar_description: Description
    ar_public_key: PublicKey

    FIELDS = (
        ("ar_identity", U32),
        ("ar_description", Struct(Description)),
        ("ar_public_key", Struct(PublicKey)),
    )


@dataclass(frozen=True)
class GlobalContext:
    on_chain_commitment_key: CommitmentKey
    genesis_string: str

    FIELDS = (
        ("on_chain_commitment_key", Struct(CommitmentKey)),
        ("genesis_string", String(4)),
    )

    @classmethod
    def generate(cls, genesis_string: str) -> "GlobalContext":
        return cls(
            CommitmentKey.from_seed(genesis_string.encode("utf-8").hex()),
            genesis_string,
        )

    @property
    def elgamal_generator(self) -> str:
        return self.on_chain_commitment_key.g


@dataclass(frozen=True)
class AttributeList:
    valid_to: str
    created_at: str
    max_accounts: int
    alist: dict[int, str]

    FIELDS = (
        ("valid_to", YEAR_MONTH),
        ("created_at", YEAR_MONTH),
        ("max_accounts", U8),
        ("alist", MapOf(ATTRIBUTE_TAG, ATTRIBUTE_VALUE, 1)),
    )


@dataclass(frozen=True)
class Policy:
    valid_to: str
    created_at: str
    policy_vec: dict[int, str]

    FIELDS = (
        ("valid_to", YEAR_MONTH),
        ("created_at", YEAR_MONTH),
        ("policy_vec", MapOf(ATTRIBUTE_TAG, ATTRIBUTE_VALUE, 2)),
    )


@dataclass(frozen=True)
class AccCredentialInfo:
    id_cred_sec: int
    prf_key: int

    FIELDS = (("id_cred_sec", SCALAR), ("prf_key", SCALAR))

    def __repr__(self) -> str:
        return "AccCredentialInfo(<hidden>)"


@dataclass(frozen=True)
class IdObjectUseData:
    """
    Private data the account holder keeps after requesting an identity: the
    secrets and the randomness of the PRF key commitment.
    """

    aci: AccCredentialInfo
    randomness: int

    FIELDS = (("aci", Struct(AccCredentialInfo)), ("randomness", SCALAR))

    def __repr__(self) -> str:
        return "IdObjectUseData(<hidden>)"


@dataclass(frozen=True)
class ChoiceArParameters:
    ar_identities: list[int]
    threshold: int

    FIELDS = (("ar_identities", ListOf(U32, 4)), ("threshold", U8))


@dataclass(frozen=True)
class IpArData:
    enc_prf_key_share: Cipher
    proof_com_enc_eq: LinearProof

    FIELDS = (
        ("enc_prf_key_share", Struct(Cipher)),
        ("proof_com_enc_eq", Struct(LinearProof)),
    )


@dataclass(frozen=True)
class InitialAccount:
    reg_id: str
    cred_key_info: CredentialPublicKeys
    proof_reg_id: LinearProof
    sigs: dict[int, bytes]

    FIELDS = (
        ("reg_id", G1),
        ("cred_key_info", Struct(CredentialPublicKeys)),
        ("proof_reg_id", Struct(LinearProof)),
        ("sigs", MapOf(U8, SIGNATURE, 1)),
    )


@dataclass(frozen=True)
class PreIdentityObject:
    id_cred_pub: str
    ip_ar_data: dict[int, IpArData]
    choice_ar_data: ChoiceArParameters
    pok_sc: SchnorrProof
    cmm_prf: str
    cmm_prf_sharing_coeff: list[str]
    initial_account: InitialAccount

    FIELDS = (
        ("id_cred_pub", G1),
        ("ip_ar_data", MapOf(U32, Struct(IpArData), 4)),
        ("choice_ar_data", Struct(ChoiceArParameters)),
        ("pok_sc", Struct(SchnorrProof)),
        ("cmm_prf", G1),
        ("cmm_prf_sharing_coeff", ListOf(G1, 1)),
        ("initial_account", Struct(InitialAccount)),
    )


@dataclass(frozen=True)
class IdentityObject:
    pre_identity_object: PreIdentityObject
    alist: AttributeList
    signature: str

    FIELDS = (
        ("pre_identity_object", Struct(PreIdentityObject)),
        ("alist", Struct(AttributeList)),
        ("signature", IP_SIGNATURE),
    )


@dataclass(frozen=True)
class ChainArData:
    enc_id_cred_pub_share: Cipher

    FIELDS = (("enc_id_cred_pub_share", Struct(Cipher)),)


@dataclass(frozen=True)
class CredentialDeploymentValues:
    cred_key_info: CredentialPublicKeys
    cred_id: str
    ip_identity: int
    threshold: int
    ar_data: dict[int, ChainArData]
    policy: Policy

    FIELDS = (
        ("cred_key_info", Struct(CredentialPublicKeys)),
        ("cred_id", G1),
        ("ip_identity", U32),
        ("threshold", U8),
        ("ar_data", MapOf(U32, Struct(ChainArData), 2)),
        ("policy", Struct(Policy)),
    )


@dataclass(frozen=True)
class CredentialDeploymentProofs:
    # forwarded verbatim from the identity object
    identity_object: IdentityObject
    cmm_account_number: str
    proof_reg_id: LinearProof
    proof_acc_sk: dict[int, bytes]

    FIELDS = (
        ("identity_object", Struct(IdentityObject)),
        ("cmm_account_number", G1),
        ("proof_reg_id", Struct(LinearProof)),
        ("proof_acc_sk", MapOf(U8, SIGNATURE, 1)),
    )


@dataclass(frozen=True)
class CredentialDeploymentInfo:
    values: CredentialDeploymentValues
    proofs: CredentialDeploymentProofs

    FIELDS = (
        ("values", Struct(CredentialDeploymentValues)),
        ("proofs", Struct(CredentialDeploymentProofs)),
    )


@dataclass(frozen=True)
class NewAccount:
    expiry: int

    FIELDS = (("expiry", U64),)


@dataclass(frozen=True)
class ExistingAccount:
    address: AccountAddress

    FIELDS = (("address", ADDRESS),)


CredentialTarget = NewAccount | ExistingAccount

CREDENTIAL_TARGET = Tagged({0: ("NewAccount", NewAccount), 1: ("ExistingAccount", ExistingAccount)})


@dataclass(frozen=True)
class AccountCredentialMessage:
    message_expiry: int
    credential: CredentialDeploymentInfo

    FIELDS = (
        ("message_expiry", U64),
        ("credential", Struct(CredentialDeploymentInfo)),
    )


@dataclass(frozen=True)
class AccountEntry:
    """
    One account derivable from an identity: its number, address and shielded
    balance keys.
    """

    account_number: int
    address: AccountAddress
    reg_id: str
    encryption_secret_key: SecretKey
    encryption_public_key: PublicKey
