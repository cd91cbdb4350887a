"""
Verification pipeline metrics.

Counts how far claims get (requests, distance checks, outcomes) and the
last signing latency. No wallet addresses, no coordinates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict


@dataclass
class Metrics:
    """Per-process pipeline counters; best-effort, not locked."""

    counters: Dict[str, int] = field(default_factory=dict)
    gauges: Dict[str, float] = field(default_factory=dict)

    def inc(self, stage: str, by: int = 1) -> None:
        self.counters[stage] = self.counters.get(stage, 0) + by

    def observe(self, gauge: str, value: float) -> None:
        self.gauges[gauge] = float(value)

    def count(self, stage: str) -> int:
        """Times `stage` was reached (0 if never)."""
        return self.counters.get(stage, 0)

    def snapshot(self) -> dict:
        """Copy of all counters and gauges, e.g. for a status dump."""
        return {"counters": dict(self.counters), "gauges": dict(self.gauges)}
