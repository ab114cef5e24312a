"""Benchmark: access check latency for deep paths, p50/p99.

Measures AccessChecker.evaluate() against a policy with a few hundred
sections, for plain READ walks and for READ_TREE checks that also scan the
subtree.
"""
from __future__ import annotations

import json
import time
from pathlib import Path

from repo_authz.engine.checker import AccessChecker, AccessQuery
from repo_authz.engine.permissions import Permission
from repo_authz.policy.source import AccessPolicy

_WARMUP: int = 100
_ITERATIONS: int = 2_000
_SECTION_COUNT: int = 300
_DEEP_PATH: str = "/proj/a/b/c/d/e/f/g/h/file.txt"


def _make_policy(count: int) -> AccessPolicy:
    """Build a policy with ``count`` project sections plus a few repo overrides."""
    sections: dict[str, dict[str, str]] = {
        "groups": {"devs": ", ".join(f"dev{i}" for i in range(50))},
        "/": {"*": "r"},
        "/proj": {"@devs": "rw"},
    }
    for i in range(count):
        sections[f"/proj/area{i}"] = {"@devs": "rw", "*": ""}
    for i in range(0, count, 10):
        sections[f"repo:/proj/area{i}"] = {"dev0": "r"}
    return AccessPolicy.from_mapping(sections)


def _measure(checker: AccessChecker, query: AccessQuery) -> list[float]:
    for _ in range(_WARMUP):
        checker.evaluate(query)

    latencies_ms: list[float] = []
    for _ in range(_ITERATIONS):
        t0 = time.perf_counter()
        checker.evaluate(query)
        latencies_ms.append((time.perf_counter() - t0) * 1000)
    return latencies_ms


def bench_check_latency() -> dict[str, object]:
    """Benchmark AccessChecker.evaluate() per-call latency.

    Returns
    -------
    dict with keys: operation, iterations, total_seconds, ops_per_second,
    avg_latency_ms, p99_latency_ms, read_tree_avg_latency_ms.
    """
    checker = AccessChecker(_make_policy(_SECTION_COUNT))
    read_query = AccessQuery("repo", _DEEP_PATH, "dev7", Permission.READ)
    tree_query = AccessQuery("repo", "/proj", "dev7", Permission.READ_TREE)

    latencies_ms = _measure(checker, read_query)
    tree_latencies_ms = _measure(checker, tree_query)

    sorted_lats = sorted(latencies_ms)
    n = len(sorted_lats)
    total = sum(latencies_ms) / 1000

    result: dict[str, object] = {
        "operation": "access_check_latency",
        "iterations": _ITERATIONS,
        "total_seconds": round(total, 4),
        "ops_per_second": round(_ITERATIONS / total, 1),
        "avg_latency_ms": round(sum(latencies_ms) / n, 4),
        "p99_latency_ms": round(sorted_lats[min(int(n * 0.99), n - 1)], 4),
        "read_tree_avg_latency_ms": round(sum(tree_latencies_ms) / len(tree_latencies_ms), 4),
    }
    print(
        f"[bench_check_latency] {result['operation']}: "
        f"p99={result['p99_latency_ms']:.4f}ms  "
        f"mean={result['avg_latency_ms']:.4f}ms  "
        f"read-tree mean={result['read_tree_avg_latency_ms']:.4f}ms"
    )
    return result


def run_benchmark() -> dict[str, object]:
    """Entry point returning the benchmark result dict."""
    return bench_check_latency()


if __name__ == "__main__":
    result = run_benchmark()
    results_dir = Path(__file__).parent / "results"
    results_dir.mkdir(exist_ok=True)
    output_path = results_dir / "check_latency_baseline.json"
    with open(output_path, "w", encoding="utf-8") as fh:
        json.dump(result, fh, indent=2)
    print(f"Results saved to {output_path}")
