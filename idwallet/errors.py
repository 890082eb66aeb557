# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only


class WalletError(ValueError):
    """Base class for exceptions raised by the wallet core."""


class InputError(WalletError):
    """Missing or malformed input."""


class SerialError(InputError):
    """Bytes or JSON that do not decode to the expected structure."""


class InvalidAddress(InputError):
    """Account address with a bad encoding, version or checksum."""


class PolicyError(WalletError):
    """Request violates a protocol policy, e.g. an attribute revealed twice."""


class ProofError(WalletError):
    """A proof or payload could not be constructed."""


class PrfOutOfDomain(WalletError):
    """The PRF is not defined for the given input."""
