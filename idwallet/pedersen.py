# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only
from dataclasses import dataclass
from random import Random

from idwallet.bls12381 import g1_point, multi_scale, rng, same_point, to_int
from idwallet.constants import CMM_DOMAIN_TAG
from idwallet.hashing import generate
from idwallet.serial import G1


@dataclass(frozen=True)
class CommitmentKey:
    """
    Pedersen commitment key `(g, h)` in G1. A commitment to `v` with
    randomness `r` is `v*g + r*h`.
    """

    g: str
    h: str

    FIELDS = (("g", G1), ("h", G1))

    @classmethod
    def from_seed(cls, seed: str) -> "CommitmentKey":
        """
        Derive a key from a hex seed: `g` is the G1 generator and `h` is a
        hash-derived multiple of it. Intended for test setups; production keys
        come from the chain's global context.
        """
        return cls(g1_point(1), g1_point(to_int(generate(CMM_DOMAIN_TAG + seed))))

    def commit(self, value: int, randomness: int) -> str:
        return multi_scale([(self.g, value), (self.h, randomness)])

    def commit_fresh(self, value: int, csprng: Random | None = None) -> tuple[str, int]:
        randomness = rng(csprng)
        return self.commit(value, randomness), randomness

    def open(self, commitment: str, value: int, randomness: int) -> bool:
        return same_point(commitment, self.commit(value, randomness))
