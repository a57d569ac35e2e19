"""
Temporal vote aggregation over a fixed set of labels.

Each label keeps a bounded, newest-first history of confidence values. The
current label is the one whose history sums highest, which damps single-frame
misclassifications without any cross-frame motion model.

Values must be added in frame order; skipped or reordered frames silently shift
the effective window.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, Dict, Hashable, Iterable, List, Optional, Tuple

from mercy_detector.utils.labels import label_name

HISTORY_SIZE = 10

# Starting value of every label's summed score. A label needs positive evidence
# to rise above it, so an untouched aggregator reports no label.
SCORE_FLOOR = -1.0

NO_LABEL = "NONE"


class TemporalAggregator:
    """Sliding-window vote counter keyed by a fixed, ordered set of labels."""

    def __init__(self, keys: Iterable[Hashable], history_size: int = HISTORY_SIZE):
        keys = tuple(keys)
        if not keys:
            raise ValueError("TemporalAggregator requires at least one key")
        if len(set(keys)) != len(keys):
            raise ValueError("TemporalAggregator keys must be unique")
        if int(history_size) < 1:
            raise ValueError("history_size must be >= 1")

        self._keys: Tuple[Hashable, ...] = keys
        self._history_size = int(history_size)
        self._histories: Dict[Hashable, Deque[float]] = {
            key: deque(maxlen=self._history_size) for key in keys
        }

    @property
    def keys(self) -> Tuple[Hashable, ...]:
        return self._keys

    @property
    def history_size(self) -> int:
        return self._history_size

    def add_value(self, key: Hashable, value: float) -> bool:
        """Push a confidence value for `key`.

        Returns False, leaving all histories untouched, if `key` was not given
        at construction. At capacity the oldest value is evicted first.
        """
        history = self._histories.get(key)
        if history is None:
            return False

        if len(history) >= self._history_size:
            history.pop()
        history.appendleft(float(value))
        return True

    def history(self, key: Hashable) -> List[float]:
        """Copy of the values held for `key`, most recent first."""
        if key not in self._histories:
            raise KeyError(f"unknown aggregator key: {key!r}")
        return list(self._histories[key])

    def scores(self) -> Dict[Hashable, float]:
        return {
            key: SCORE_FLOOR + sum(self._histories[key]) for key in self._keys
        }

    def current_index(self) -> Optional[int]:
        """Index (construction order) of the highest-scoring key.

        Ties keep the earlier key. Returns None while no key scores above
        SCORE_FLOOR, which includes the case where nothing has been added.
        """
        best_score = SCORE_FLOOR
        best_index: Optional[int] = None

        scores = self.scores()
        for index, key in enumerate(self._keys):
            score = scores[key]
            if score > best_score:
                best_score = score
                best_index = index

        return best_index

    def current_key(self) -> Optional[Hashable]:
        index = self.current_index()
        return None if index is None else self._keys[index]

    def current_label(self) -> str:
        key = self.current_key()
        return NO_LABEL if key is None else label_name(key)

    def reset(self) -> None:
        """Clear every history; the key set is unchanged."""
        for history in self._histories.values():
            history.clear()
