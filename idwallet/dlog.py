# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

# idwallet/dlog.py

"""
Baby-step giant-step recovery of small discrete logarithms.

Amounts are encrypted "in the exponent", so decryption yields `x*g` rather
than `x`. Recovering `x` is a discrete logarithm that is only feasible
because amounts are small. The table maps `j*g -> j` for `j in [0, m)` and
keeps `-m*g`; a lookup walks giant steps of size `m` from the target until it
lands in the table.

The table is expensive to build (O(m) group additions) so it is meant to be
built once, stored as an artifact with `save`, and loaded read-only with
`load` for the lifetime of the process.
"""

from pathlib import Path
from types import MappingProxyType
from typing import Mapping

import cbor2
from py_ecc.bls.g2_primitives import G1_to_pubkey
from py_ecc.optimized_bls12_381 import Z1, add, neg
from structlog import get_logger

from idwallet.bls12381 import G1_SIZE, uncompress
from idwallet.errors import SerialError
from idwallet.files import load_bytes, save_bytes

logger = get_logger()


def _artifact_point(raw) -> str:
    if not isinstance(raw, bytes) or len(raw) != G1_SIZE:
        raise SerialError("Table artifact contains an invalid point")
    element = raw.hex()
    uncompress(element)
    return element


class BabyStepGiantStep:
    """
    Precomputed table of powers of `base`.

    Instances are immutable and can be shared between threads without
    synchronisation.
    """

    __slots__ = ("_base", "_m", "_table", "_inverse_point")

    def __init__(self, base: str, m: int, table: Mapping[bytes, int], inverse_point: str):
        if m <= 0:
            raise ValueError("table size must be positive")
        self._base = base
        self._m = m
        self._table = MappingProxyType(dict(table))
        self._inverse_point = inverse_point

    @property
    def base(self) -> str:
        return self._base

    @property
    def m(self) -> int:
        return self._m

    @property
    def inverse_point(self) -> str:
        return self._inverse_point

    def __len__(self) -> int:
        return len(self._table)

    @classmethod
    def new(cls, base: str, m: int) -> "BabyStepGiantStep":
        """
        Build the table for `base` with `m` baby steps.

        Args:
            base: Compressed G1 generator.
            m: Number of baby steps.

        Returns:
            BabyStepGiantStep: The precomputed table.
        """
        point = uncompress(base)
        base_j = Z1
        table: dict[bytes, int] = {}
        for j in range(m):
            table[G1_to_pubkey(base_j)] = j
            base_j = add(base_j, point)
        logger.debug("built baby-step giant-step table", m=m)
        return cls(base, m, table, G1_to_pubkey(neg(base_j)).hex())

    def discrete_log(self, v: str) -> int:
        """
        Find `x` such that `x * base == v`.

        Performance is linear in `x / m`. There is no upper bound on the
        search: if `v` is not a small multiple of `base` this appears to loop
        forever. Only call this on values known to encode a u64 amount.

        Args:
            v: Compressed G1 element.

        Returns:
            int: The discrete logarithm of `v`.
        """
        y = uncompress(v)
        inverse = uncompress(self._inverse_point)
        i = 0
        while True:
            j = self._table.get(G1_to_pubkey(y))
            if j is not None:
                return i * self._m + j
            y = add(y, inverse)
            i += 1

    @staticmethod
    def discrete_log_full(base: str, m: int, v: str) -> int:
        """
        Build a table and look up `v` in one go. Less efficient than reusing
        a table.
        """
        return BabyStepGiantStep.new(base, m).discrete_log(v)

    def to_bytes(self) -> bytes:
        """
        Canonical CBOR encoding of the table. Baby steps are stored in order,
        so the exponent of each entry is its position in the list.
        """
        steps = [b""] * self._m
        for point, j in self._table.items():
            steps[j] = point
        return cbor2.dumps(
            {
                "base": bytes.fromhex(self._base),
                "m": self._m,
                "inverse": bytes.fromhex(self._inverse_point),
                "steps": steps,
            },
            canonical=True,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "BabyStepGiantStep":
        """
        Load a table produced by `to_bytes`.

        Raises:
            SerialError: If the data does not have the expected shape.
        """
        try:
            m = cbor2.loads(data)
        except cbor2.CBORDecodeError as e:
            raise SerialError(f"Could not decode table: {e}") from e
        if not isinstance(m, dict) or {"base", "m", "inverse", "steps"} - set(m):
            raise SerialError("Table artifact is missing fields")
        size = m["m"]
        # bool is an int subclass
        if not isinstance(size, int) or isinstance(size, bool) or size <= 0:
            raise SerialError("Table artifact has an invalid size")
        base = _artifact_point(m["base"])
        inverse = _artifact_point(m["inverse"])
        steps = m["steps"]
        if not isinstance(steps, list) or len(steps) != size:
            raise SerialError("Table artifact has the wrong number of steps")
        if any(not isinstance(p, bytes) or len(p) != G1_SIZE for p in steps):
            raise SerialError("Table artifact contains an invalid point")
        table = {point: j for j, point in enumerate(steps)}
        if len(table) != size:
            raise SerialError("Table artifact contains repeated points")
        return cls(base, size, table, inverse)

    def save(self, path: str | Path) -> None:
        save_bytes(path, self.to_bytes())

    @classmethod
    def load(cls, path: str | Path) -> "BabyStepGiantStep":
        table = cls.from_bytes(load_bytes(path))
        logger.debug("loaded baby-step giant-step table", path=str(path), m=table.m)
        return table

    @classmethod
    def load_or_build(cls, base: str, m: int, path: str | Path) -> "BabyStepGiantStep":
        """
        Load the table artifact at `path`, building and saving it first when
        it is missing or was built for another generator or size. Every call
        returns a new table owned by the caller.

        Raises:
            SerialError: If the file exists but is not a table artifact.
        """
        if Path(path).exists():
            table = cls.load(path)
            if table.m == m and table.base == base:
                return table
            logger.info("table artifact does not match, rebuilding", path=str(path), m=m)
        table = cls.new(base, m)
        table.save(path)
        return table
