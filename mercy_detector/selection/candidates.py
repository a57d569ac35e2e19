"""
Scored recognition candidates.

A recognizer run produces one `CandidateSet` per frame. Every candidate in a
set shares the set's `ScoreDirection`, which is fixed by the recognizer's
configuration and never inferred from the scores themselves.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Hashable, Iterator, List


class ScoreDirection(Enum):
    """Whether a lower or a higher score indicates a better match."""

    MINIMIZE_IS_BETTER = "minimize"
    MAXIMIZE_IS_BETTER = "maximize"


@dataclass(frozen=True)
class Candidate:
    label: Hashable
    score: float


@dataclass
class CandidateSet:
    """Ordered candidates for a single frame and a single recognition method."""

    direction: ScoreDirection
    candidates: List[Candidate] = field(default_factory=list)

    def add(self, label: Hashable, score: float) -> None:
        self.candidates.append(Candidate(label=label, score=float(score)))

    def extend(self, other: "CandidateSet") -> None:
        """Append another set's candidates; both sets must share a direction."""
        if other.direction is not self.direction:
            raise ValueError(
                f"cannot mix {other.direction.value} candidates into a "
                f"{self.direction.value} set"
            )
        self.candidates.extend(other.candidates)

    def __iter__(self) -> Iterator[Candidate]:
        return iter(self.candidates)

    def __len__(self) -> int:
        return len(self.candidates)
