"""
Best-candidate selection.

Picks the winning label among scored candidates. The comparison direction is
supplied by the caller; ties keep the first candidate encountered and no
absolute score threshold is applied.
"""

from __future__ import annotations

from typing import Hashable, Iterable, Optional

from mercy_detector.selection.candidates import (Candidate, CandidateSet,
                                                 ScoreDirection)


def _is_better(score: float, best: float, direction: ScoreDirection) -> bool:
    # Strict comparison: equal scores never replace the current best
    if direction is ScoreDirection.MINIMIZE_IS_BETTER:
        return score < best
    return score > best


def select_best(
    candidates: Iterable[Candidate], direction: ScoreDirection
) -> Optional[Hashable]:
    """Return the label of the best-scoring candidate.

    Args:
        candidates: Candidates for one frame, in recognizer order
        direction: Whether lower or higher scores are better

    Returns:
        The winning label, or None when there are no candidates

    Raises:
        ValueError: If `candidates` is a CandidateSet built for the other direction
    """
    if isinstance(candidates, CandidateSet) and candidates.direction is not direction:
        raise ValueError(
            f"candidate set is {candidates.direction.value}-is-better but "
            f"{direction.value}-is-better selection was requested"
        )

    best: Optional[Candidate] = None
    for candidate in candidates:
        if best is None or _is_better(candidate.score, best.score, direction):
            best = candidate

    return best.label if best is not None else None
