#!/usr/bin/env python3
# scripts/bulk_calculate.py
# -*- coding: utf-8 -*-

"""
Bulk energy norms: trains CSV → results CSV
===========================================

Given a CSV with one train per row (locomotive, train_weight_t, axle_count,
route_id and optionally locomotive_count, cold_count, conditional_wagons),
this script:

  1. Loads the route catalog once.
  2. Evaluates every row (bad rows get the `error` column filled).
  3. Writes the input columns plus the result columns to --output.

Exit code is 0 even if some rows failed; 1 if the input cannot be read.
"""

from __future__ import annotations

# ───────────────────── path bootstrap (must be first) ─────────────────────
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]  # repo root (one level above /scripts)
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
# ──────────────────────────────────────────────────────────────────────────

import argparse
import logging

from railnorm.app.batch import evaluate_frame, load_trains_csv
from railnorm.core.config import get_catalog_paths
from railnorm.infra.logging import init_logging, log_banner
from railnorm.routes.loader import build_catalog

log = logging.getLogger(__name__)


# ───────────────────────────────── parser / CLI ────────────────────────────
def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compute energy norms for every train in a CSV and write the results to another CSV."
    )
    parser.add_argument(
          "--input"
        , type=Path
        , required=True
        , help="Trains CSV (columns: locomotive, train_weight_t, axle_count, route_id, ...)."
    )
    parser.add_argument("--output", type=Path, required=True, help="Results CSV path.")
    parser.add_argument(
          "--routes-dir"
        , type=Path
        , default=get_catalog_paths().routes_dir
        , help=f"Directory with route files. Default: {get_catalog_paths().routes_dir}"
    )
    parser.add_argument(
          "--log-level"
        , default="INFO"
        , choices=["DEBUG", "INFO", "WARNING", "ERROR"]
    )
    return parser


def main(
    argv: list[str] | None = None
) -> int:
    """
    Entrypoint for the bulk calculator.

    Returns
    -------
    int
        0 on success, 1 when the input CSV is missing or malformed.
    """
    args = _build_parser().parse_args(argv)

    init_logging(
          level=args.log_level
        , force=True
        , write_output=False
    )
    log_banner(log, f"Bulk calculation: {args.input}")

    try:
        trains = load_trains_csv(args.input)
    except (FileNotFoundError, ValueError) as e:
        log.error("Cannot read trains CSV: %s", e)
        return 1

    catalog = build_catalog(args.routes_dir)
    results = evaluate_frame(trains, catalog)

    args.output.parent.mkdir(parents=True, exist_ok=True)
    results.to_csv(args.output, index=False)

    n_err = int((results["error"] != "").sum())
    log.info(
          "Wrote %d rows to %s (%d ok, %d with errors)."
        , len(results)
        , args.output
        , len(results) - n_err
        , n_err
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
