"""
Per-variant accuracy tallies.

The harness only counts: it never divides, and it assumes every recorded pair
has a ground-truth label (frames without one are filtered by the caller).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Hashable, List

import pandas as pd


@dataclass
class EvalTally:
    variant: Hashable
    correct_count: int = 0
    total_count: int = 0

    def to_row(self) -> Dict:
        return {
            "variant": self.variant,
            "correct": int(self.correct_count),
            "total": int(self.total_count),
        }


class EvaluationHarness:
    """Accumulates correct/total counts per recognition-method variant."""

    def __init__(self):
        # dict keeps first-recorded order for summarize()
        self._tallies: Dict[Hashable, EvalTally] = {}

    def record(self, variant: Hashable, expected: Hashable, detected: Hashable) -> None:
        tally = self._tallies.get(variant)
        if tally is None:
            tally = self._tallies[variant] = EvalTally(variant=variant)

        tally.total_count += 1
        if expected == detected:
            tally.correct_count += 1

    def tally(self, variant: Hashable) -> EvalTally:
        """Current tally for `variant` (zero counts if nothing was recorded)."""
        return self._tallies.get(variant, EvalTally(variant=variant))

    def summarize(self) -> List[EvalTally]:
        return [
            EvalTally(t.variant, t.correct_count, t.total_count)
            for t in self._tallies.values()
        ]

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            [t.to_row() for t in self.summarize()],
            columns=["variant", "correct", "total"],
        )
