#!/usr/bin/env python3
"""Compare element-access and forwarding latency of wrapped and plain arrays."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from inbounds_arrays.benchmark import run_benchmark


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("reports"),
        help="Directory where the benchmark reports will be stored.",
    )
    parser.add_argument("--size", type=int, default=256, help="Length of the benchmark vectors.")
    parser.add_argument("--repeats", type=int, default=20, help="Number of timed runs per case.")
    parser.add_argument("--seed", type=int, default=7, help="Random seed for the benchmark data.")
    parser.add_argument("--verbose", action="store_true", help="Log forwarding decisions.")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    metrics = run_benchmark(
        size=args.size,
        repeats=args.repeats,
        output_dir=str(args.output),
        seed=args.seed,
    )
    print(json.dumps({"cases": metrics["cases"], "mean_overhead_ratio": metrics["mean_overhead_ratio"]}, indent=2))


if __name__ == "__main__":
    main()
