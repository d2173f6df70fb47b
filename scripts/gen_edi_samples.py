#!/usr/bin/env python3
"""Sample EDI order file generator.

Writes synthetic pipe-delimited order files (one header row, N detail rows,
one summary row) for manual runs and load testing of the EDI importer.
Field positions match edi_import.edi.rows.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np

HEADER_WIDTH = 101
DETAIL_WIDTH = 16
SUMMARY_WIDTH = 7

CUSTOMERS = ["ALDI01", "ALDI02", "WOOL01", "COLES1", "METCSH"]
UNITS = ["CT", "EA", "200"]


def _line(width: int, values: dict[int, str]) -> str:
    fields = [""] * width
    for index, value in values.items():
        fields[index] = value
    return "|".join(fields)


def generate_order(rng: np.random.Generator, purchase_order: str, lines: int, amended: bool = False) -> str:
    """Build the text of one order file.

    Args:
        rng: Random generator (seeded by the caller for reproducible output)
        purchase_order: Customer PO number written to the header
        lines: Number of detail rows
        amended: Write a non-"000" version so the file is treated as an amended order
    """
    customer = str(rng.choice(CUSTOMERS))
    delivery = np.datetime64("2024-01-01") + rng.integers(0, 365)
    header = _line(HEADER_WIDTH, {
        0: "H",
        20: purchase_order,
        29: customer,
        31: f"DOC{rng.integers(100000, 999999)}",
        35: str(delivery).replace("-", ""),
        36: f"{rng.integers(6, 18):02d}00",
        39: f"{rng.integers(1, 9):03d}" if amended else "000",
        100: f"V{rng.integers(1000, 9999)}",
    })

    rows = [header]
    quantities = rng.integers(0, 50, lines)
    prices = np.round(rng.uniform(0.5, 250.0, lines), 2)
    for i in range(lines):
        stock_code = f"SC{rng.integers(10000, 99999)}"
        # roughly one in five lines relies on the GTIN lookup
        product = "" if rng.random() < 0.2 else f"{rng.integers(10**12, 10**13 - 1)}"
        rows.append(_line(DETAIL_WIDTH, {
            0: "D",
            4: str(i + 1),
            6: product,
            8: stock_code,
            12: f"A{stock_code}",
            13: f"{quantities[i]}.00",
            14: str(rng.choice(UNITS)),
            15: f"{prices[i]:.2f}",
        }))

    total_value = float(np.sum(quantities * prices))
    rows.append(_line(SUMMARY_WIDTH, {0: "S", 4: str(lines), 6: f"{total_value:.2f}"}))
    return "\n".join(rows) + "\n"


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate synthetic EDI order files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # 10 files of 20 lines into ./input
  %(prog)s input

  # 500 files of 200 lines, a quarter of them amended orders
  %(prog)s input --files 500 --lines 200 --amended-ratio 0.25
        """,
    )
    parser.add_argument("output", type=Path, help="Output directory")
    parser.add_argument("--files", type=int, default=10, help="Number of files (default: 10)")
    parser.add_argument("--lines", type=int, default=20, help="Detail rows per file (default: 20)")
    parser.add_argument("--amended-ratio", type=float, default=0.0,
                        help="Share of files written as amended orders (default: 0)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()

    if args.files <= 0 or args.lines <= 0:
        print("Error: --files and --lines must be positive", file=sys.stderr)
        return 1
    if not 0.0 <= args.amended_ratio <= 1.0:
        print("Error: --amended-ratio must be between 0 and 1", file=sys.stderr)
        return 1

    rng = np.random.default_rng(args.seed)
    args.output.mkdir(parents=True, exist_ok=True)
    for n in range(1, args.files + 1):
        purchase_order = f"PO{args.seed:03d}{n:06d}"
        amended = bool(rng.random() < args.amended_ratio)
        path = args.output / f"ORDERS_{purchase_order}.txt"
        path.write_text(generate_order(rng, purchase_order, args.lines, amended), encoding="utf-8")

    print(f"Created {args.files} order files in {args.output} ({args.lines} detail rows each)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
