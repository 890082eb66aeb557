# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only
from idwallet.bls12381 import curve_order, scalar_inverse, scale
from idwallet.errors import PrfOutOfDomain


def prf_exponent(key: int, n: int) -> int:
    """
    Exponent of the Dodis-Yampolskiy PRF, `1 / (key + n) mod q`.

    Raises:
        PrfOutOfDomain: If `key + n` is zero in the scalar field.
    """
    if (key + n) % curve_order == 0:
        raise PrfOutOfDomain(f"PRF is not defined for input {n}")
    return scalar_inverse(key + n)


def prf(generator: str, key: int, n: int) -> str:
    """
    Evaluate the PRF: `generator^(1 / (key + n))`.

    This is the registration ID of account number `n`. The same exponent is
    the account's shielded balance secret key, so the registration ID is also
    its encryption public key.
    """
    return scale(generator, prf_exponent(key, n))
