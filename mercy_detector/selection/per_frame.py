from __future__ import annotations

from collections import Counter
from typing import Dict, List

from mercy_detector.selection.base import BaseLabelSolution
from mercy_detector.utils.config import Config
from mercy_detector.utils.labels import Hero, WeaponAction


class PerFrameSolution(BaseLabelSolution):
    """Baseline solution: every frame keeps its own raw label, no smoothing."""

    def aggregate(self, frame_results: List[Dict], config: Config) -> Dict:
        # Edge case: no frames
        if not frame_results:
            return {
                "hero": Hero.NO_HERO.value,
                "action": WeaponAction.NO_ACTION.value,
                "total_frames": 0,
                "hero_counts": {},
                "action_counts": {},
                "frame_results": [],
            }

        for fr in frame_results:
            fr["smoothed_hero"] = fr.get("hero", Hero.NO_HERO.value)
            fr["smoothed_action"] = fr.get("action", WeaponAction.NO_ACTION.value)

        last = frame_results[-1]
        return {
            "hero": last["smoothed_hero"],
            "action": last["smoothed_action"],
            "total_frames": len(frame_results),
            "hero_counts": dict(Counter(fr["smoothed_hero"] for fr in frame_results)),
            "action_counts": dict(
                Counter(fr["smoothed_action"] for fr in frame_results)
            ),
            "frame_results": frame_results,
        }
