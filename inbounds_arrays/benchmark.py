"""Latency comparison between wrapped and plain storage."""

from __future__ import annotations

import json
import math
import os
import statistics
import time
from typing import Any, Callable, Dict, List, Mapping, Sequence

import numpy as np

from .catalog.sparse import sparse
from .core import InboundsArray
from .settings import get_capability_mode


def _percentile(values: Sequence[float], pct: float) -> float:
    if not values:
        return 0.0
    ordered = sorted(values)
    k = (len(ordered) - 1) * pct / 100.0
    f = math.floor(k)
    c = math.ceil(k)
    if f == c:
        return ordered[int(k)]
    return ordered[f] + (ordered[c] - ordered[f]) * (k - f)


def _time(func: Callable[[], Any], repeats: int) -> List[float]:
    latencies: List[float] = []
    for _ in range(max(1, repeats)):
        start = time.perf_counter()
        func()
        latencies.append((time.perf_counter() - start) * 1000.0)
    return latencies


def _element_loop(arr: Any, n: int) -> float:
    total = 0.0
    for i in range(n):
        total += arr[i]
    return total


def _summary(plain: Sequence[float], wrapped: Sequence[float]) -> Dict[str, float]:
    plain_p50 = _percentile(plain, 50.0)
    wrapped_p50 = _percentile(wrapped, 50.0)
    return {
        "plain_p50": plain_p50,
        "plain_p95": _percentile(plain, 95.0),
        "wrapped_p50": wrapped_p50,
        "wrapped_p95": _percentile(wrapped, 95.0),
        "overhead_ratio": wrapped_p50 / plain_p50 if plain_p50 > 0 else 0.0,
    }


def run_benchmark(
    *,
    size: int = 256,
    repeats: int = 20,
    output_dir: str | None = "reports",
    seed: int = 7,
) -> Dict[str, object]:
    """Time element loops and forwarded operations on plain and wrapped arrays."""

    rng = np.random.default_rng(seed)
    vector = rng.standard_normal(size)
    matrix = rng.standard_normal((size, size))
    wrapped_vector = InboundsArray(vector)
    wrapped_matrix = InboundsArray(matrix)
    mask = rng.random((size, size)) < 0.05
    sparse_matrix = sparse(np.where(mask, matrix, 0.0))
    wrapped_sparse = InboundsArray(sparse_matrix)

    cases: Dict[str, tuple[Callable[[], Any], Callable[[], Any]]] = {
        "element_loop": (
            lambda: _element_loop(vector, size),
            lambda: _element_loop(wrapped_vector, size),
        ),
        "elementwise_add": (lambda: vector + vector, lambda: wrapped_vector + wrapped_vector),
        "reduction_sum": (lambda: np.sum(matrix), lambda: np.sum(wrapped_matrix)),
        "matmul": (lambda: matrix @ vector, lambda: wrapped_matrix @ wrapped_vector),
        "sparse_matvec": (lambda: sparse_matrix @ vector, lambda: wrapped_sparse @ wrapped_vector),
    }

    results: Dict[str, Dict[str, float]] = {}
    for name, (plain_case, wrapped_case) in cases.items():
        plain_case()
        wrapped_case()
        results[name] = _summary(_time(plain_case, repeats), _time(wrapped_case, repeats))

    ratios = [entry["overhead_ratio"] for entry in results.values() if entry["overhead_ratio"] > 0]
    metrics: Dict[str, object] = {
        "config": {
            "size": size,
            "repeats": repeats,
            "seed": seed,
            "capability_mode": get_capability_mode().value,
            "numpy": np.__version__,
        },
        "cases": results,
        "mean_overhead_ratio": float(statistics.mean(ratios)) if ratios else 0.0,
    }

    if output_dir is not None:
        os.makedirs(output_dir, exist_ok=True)
        json_path = os.path.join(output_dir, "benchmark_report.json")
        with open(json_path, "w", encoding="utf-8") as fh:
            json.dump(metrics, fh, indent=2)
        _write_markdown_report(metrics, os.path.join(output_dir, "benchmark_report.md"))

    return metrics


def _write_markdown_report(metrics: Mapping[str, object], path: str) -> None:
    config = metrics.get("config", {})
    cases = metrics.get("cases", {})

    lines = ["# inbounds-arrays Benchmark", ""]
    if isinstance(config, Mapping):
        lines.append(
            "- size={}, repeats={}, mode={}".format(
                config.get("size"), config.get("repeats"), config.get("capability_mode")
            )
        )
        lines.append("")

    lines.append("| case | plain p50 (ms) | wrapped p50 (ms) | wrapped p95 (ms) | ratio |")
    lines.append("| --- | --- | --- | --- | --- |")
    if isinstance(cases, Mapping):
        for name, entry in cases.items():
            lines.append(
                "| {} | {:.4f} | {:.4f} | {:.4f} | {:.2f} |".format(
                    name,
                    entry.get("plain_p50", 0.0),
                    entry.get("wrapped_p50", 0.0),
                    entry.get("wrapped_p95", 0.0),
                    entry.get("overhead_ratio", 0.0),
                )
            )
    lines.append("")
    lines.append(f"Mean overhead ratio: {metrics.get('mean_overhead_ratio', 0.0):.2f}")

    with open(path, "w", encoding="utf-8") as fh:
        fh.write("\n".join(lines) + "\n")
