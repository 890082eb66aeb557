#!/usr/bin/env python3

# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only

"""
Precompute the baby-step giant-step table used to decrypt shielded amounts.

Run from the repository root:
    python scripts/generate_table.py [--m 65536] [--global global.json] [out]

Without --global the table is built for the G1 generator, which is the
ElGamal generator of every global context derived with
`GlobalContext.generate`.
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
from idwallet.bls12381 import g1_point
from idwallet.constants import TABLE_SIZE
from idwallet.dlog import BabyStepGiantStep
from idwallet.files import load_json
from idwallet.serial import from_json
from idwallet.types import GlobalContext

parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
parser.add_argument("out", nargs="?", default="data/table.cbor", help="output file")
parser.add_argument("--m", type=int, default=TABLE_SIZE, help="number of baby steps")
parser.add_argument("--global", dest="global_path", help="global context JSON file")
args = parser.parse_args()

if args.global_path:
    generator = from_json(GlobalContext, load_json(args.global_path)).elgamal_generator
else:
    generator = g1_point(1)

table = BabyStepGiantStep.new(generator, args.m)
table.save(args.out)
print(f"Wrote a table of {len(table)} baby steps to {args.out}")
