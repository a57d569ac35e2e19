from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List

from mercy_detector.utils.config import Config


class BaseLabelSolution(ABC):
    """Interface that turns per-frame labels into smoothed per-frame and video labels."""

    @abstractmethod
    def aggregate(self, frame_results: List[Dict], config: Config) -> Dict:
        """Aggregate per-frame dicts into a video-level result dict."""
        raise NotImplementedError
