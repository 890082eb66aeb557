# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only
from random import Random

from idwallet.bls12381 import curve_order, multi_scale, rng, scalar_inverse
from idwallet.errors import PolicyError


def share(
    secret: int, threshold: int, points: list[int], csprng: Random | None = None
) -> tuple[list[int], dict[int, int]]:
    """
    Shamir-share `secret` so that any `threshold` of the `points` recover it.

    Args:
        secret: Scalar to share.
        threshold: Number of shares needed to reconstruct.
        points: Distinct non-zero evaluation points, one per share holder.
        csprng: Source of randomness for the polynomial.

    Returns:
        The polynomial coefficients (constant term first, equal to `secret`)
        and a mapping point -> share.

    Raises:
        PolicyError: If the threshold is outside [1, len(points)] or a point is
            zero.
    """
    if threshold < 1 or threshold > len(points):
        raise PolicyError(f"Threshold {threshold} must be between 1 and {len(points)}")
    if any(x % curve_order == 0 for x in points):
        raise PolicyError("Sharing points must be non-zero")
    coefficients = [secret % curve_order] + [rng(csprng) for _ in range(threshold - 1)]
    return coefficients, {x: evaluate(coefficients, x) for x in points}


def evaluate(coefficients: list[int], x: int) -> int:
    acc = 0
    for a in reversed(coefficients):
        acc = (acc * x + a) % curve_order
    return acc


def lagrange_at_zero(points: list[int]) -> dict[int, int]:
    out = {}
    for i in points:
        num, den = 1, 1
        for j in points:
            if j != i:
                num = num * j % curve_order
                den = den * (j - i) % curve_order
        out[i] = num * scalar_inverse(den) % curve_order
    return out


def reveal(shares: dict[int, int]) -> int:
    """
    Interpolate scalar shares back to the secret.
    """
    lagrange = lagrange_at_zero(list(shares))
    return sum(lagrange[x] * s for x, s in shares.items()) % curve_order


def reveal_in_exponent(shares: dict[int, str]) -> str:
    """
    Interpolate shares held as group elements `s_i*g` to `secret*g`.
    """
    lagrange = lagrange_at_zero(list(shares))
    return multi_scale([(point, lagrange[x]) for x, point in shares.items()])
