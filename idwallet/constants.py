# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# domain tags
SCH_DOMAIN_TAG = "SCHNORR|PROOF|v1|".encode("utf-8").hex()
LIN_DOMAIN_TAG = "LINEAR|RELATION|PROOF|v1|".encode("utf-8").hex()
CMM_DOMAIN_TAG = "PEDERSEN|COMMITMENT|KEY|v1|".encode("utf-8").hex()
CRD_DOMAIN_TAG = "CREDENTIAL|CHALLENGE|v1|".encode("utf-8").hex()
ENC_DOMAIN_TAG = "ENCRYPTED|TRANSFER|v1|".encode("utf-8").hex()
STP_DOMAIN_TAG = "SEC|To|PUB|TRANSFER|v1|".encode("utf-8").hex()
PIO_DOMAIN_TAG = "PRE|IDENTITY|OBJECT|v1|".encode("utf-8").hex()
IDO_DOMAIN_TAG = "IDENTITY|OBJECT|v1|".encode("utf-8").hex()

# transaction payload type tags
TRANSFER_TAG = 3
ENCRYPTED_TRANSFER_TAG = 16
PUB_TO_SEC_TAG = 17
SEC_TO_PUB_TAG = 18

# a plain transfer payload is tag + address + amount
TRANSFER_PAYLOAD_SIZE = 41

# account addresses
ACCOUNT_ADDRESS_SIZE = 32
ADDRESS_VERSION = 1

# amounts are u64 and encrypted in two 32 bit chunks
CHUNK_SIZE = 32
MAX_AMOUNT = 2**64 - 1

# default size of the baby-step giant-step table
TABLE_SIZE = 2**16

# version of every versioned object this library produces
VERSION_0 = 0

# the wallet creates single key accounts
DEFAULT_SIGNATURE_THRESHOLD = 1

# revocation thresholds are encoded in a single byte
MAX_AR_THRESHOLD = 255

# attribute tags 0.. in order
ATTRIBUTE_NAMES = (
    "firstName",
    "lastName",
    "sex",
    "dob",
    "countryOfResidence",
    "nationality",
    "idDocType",
    "idDocNo",
    "idDocIssuer",
    "idDocIssuedAt",
    "idDocExpiresAt",
    "nationalIdNo",
    "taxIdNo",
    "lei",
    "legalName",
    "legalCountry",
    "businessNumber",
    "registrationAuth",
)
