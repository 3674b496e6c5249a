from __future__ import annotations

from collections import Counter
from typing import Any

from ..recommendations.scoring import NoveltyMode


def _rate(part: int, total: int) -> float:
    return round(part / total * 100, 1) if total else 0.0


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    picks = [e for e in events if e["type"] == "pick"]
    scans = [e for e in events if e["type"] == "nearby_scan"]
    total = len(picks)

    # Average response time
    times = [p["response_time_ms"] for p in picks if "response_time_ms" in p]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    # Novelty mode usage, every mode listed even when unused
    mode_counter: Counter[str] = Counter(p.get("novelty_mode", "balanced") for p in picks)
    mode_usage = {m.value: mode_counter.get(m.value, 0) for m in NoveltyMode}

    # Cuisine filters people ask for
    cuisine_counter: Counter[str] = Counter()
    for p in picks:
        for c in p.get("cuisines", []) or []:
            cuisine_counter[c.strip().lower()] += 1
    top_cuisines = [{"name": n, "count": c} for n, c in cuisine_counter.most_common(10)]

    empty_picks = sum(1 for p in picks if p.get("results_returned", 0) == 0)
    with_nearby = sum(1 for p in picks if p.get("include_nearby"))
    avg_pool = (
        round(sum(p.get("pool_size", 0) for p in picks) / total, 1) if total else 0.0
    )

    # Nearby scans
    ok_scans = [s for s in scans if not s.get("error")]
    scan_hits = sum(1 for s in ok_scans if s.get("cache_hit"))
    error_counter: Counter[str] = Counter(s["error"] for s in scans if s.get("error"))

    return {
        "total_picks": total,
        "avg_response_time_ms": avg_time,
        "avg_pool_size": avg_pool,
        "empty_pick_rate": _rate(empty_picks, total),
        "novelty_mode_usage": mode_usage,
        "top_cuisines": top_cuisines,
        "nearby_usage_rate": _rate(with_nearby, total),
        "nearby_scans": {
            "total": len(scans),
            "succeeded": len(ok_scans),
            "cache_hits": scan_hits,
            "cache_hit_rate": _rate(scan_hits, len(ok_scans)),
            "errors": dict(error_counter),
        },
    }
