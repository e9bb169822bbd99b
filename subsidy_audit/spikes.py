"""Spike detection over per-group anomaly counts.

Groups are ranked against the cross-group baseline so audit effort can be allocated.
A spike is a statistical outlier, not a determination about any beneficiary.
"""
from __future__ import annotations

import statistics
from typing import Dict, List, Optional, Tuple

from .entities import GroupAnomalyStat

# Standard deviations above the mean, checked from the strictest tier down.
SEVERITY_THRESHOLDS: List[Tuple[str, float]] = [
    ("CRITICAL", 2.5),
    ("HIGH", 2.0),
    ("MODERATE", 1.5),
]


def baseline(counts: List[int]) -> Tuple[float, float]:
    """Population mean and standard deviation."""
    if not counts:
        return 0.0, 0.0
    return statistics.fmean(counts), statistics.pstdev(counts)


def _classify(count: int, mean: float, std_dev: float) -> Optional[str]:
    for severity, k in SEVERITY_THRESHOLDS:
        if count > mean + k * std_dev:
            return severity
    return None


def _deviation_pct(count: int, mean: float) -> Optional[float]:
    if mean == 0:
        return None
    return round((count - mean) / mean * 100, 1)


def detect_spikes(group_counts: Dict[str, int], limit: Optional[int] = None) -> List[GroupAnomalyStat]:
    counts = [int(c) for c in group_counts.values()]
    mean, std_dev = baseline(counts)

    spikes = []
    for group_key, count in group_counts.items():
        severity = _classify(int(count), mean, std_dev)
        if severity is None:
            continue
        spikes.append(GroupAnomalyStat(
            group_key=group_key,
            count=int(count),
            baseline_mean=round(mean, 2),
            baseline_std_dev=round(std_dev, 2),
            deviation_pct=_deviation_pct(int(count), mean),
            severity=severity,
        ))

    spikes.sort(key=lambda s: s.count, reverse=True)
    if limit is not None:
        spikes = spikes[:limit]
    return spikes
