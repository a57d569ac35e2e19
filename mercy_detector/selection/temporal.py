from __future__ import annotations

from collections import Counter
from typing import Dict, Hashable, Iterable, List, Optional

from loguru import logger

from mercy_detector.selection.aggregator import TemporalAggregator
from mercy_detector.selection.base import BaseLabelSolution
from mercy_detector.utils.config import Config
from mercy_detector.utils.labels import (Hero, WeaponAction, action_from_string,
                                         hero_from_string, identifiable_actions,
                                         playable_heroes)


def _vote(aggregator: TemporalAggregator, winner: Hashable, weight: float) -> bool:
    """Give `winner` a vote and every other key a zero, advancing all windows."""
    accepted = False
    for key in aggregator.keys:
        if key == winner:
            accepted = aggregator.add_value(key, weight)
        else:
            aggregator.add_value(key, 0.0)
    return accepted


class TemporalVotingSolution(BaseLabelSolution):
    """Temporal voting over the per-frame hero and weapon-action labels.

    Rules:
    - One TemporalAggregator per label universe, keyed by every identifiable label
    - Each frame, the raw winner receives VOTE_WEIGHT and every other label 0.0,
      so all histories cover the same last HISTORY_SIZE frames
    - The smoothed label of a frame is the aggregator's current label after that
      frame's vote; "no label yet" maps to the NO_HERO / NO_ACTION sentinel
    """

    def __init__(
        self,
        hero_keys: Optional[Iterable[Hero]] = None,
        action_keys: Optional[Iterable[WeaponAction]] = None,
    ):
        super().__init__()
        self.hero_keys = list(hero_keys) if hero_keys is not None else playable_heroes()
        self.action_keys = (
            list(action_keys) if action_keys is not None else identifiable_actions()
        )

    def aggregate(self, frame_results: List[Dict], config: Config) -> Dict:
        total_frames = len(frame_results)
        if total_frames == 0:
            return {
                "hero": Hero.NO_HERO.value,
                "action": WeaponAction.NO_ACTION.value,
                "total_frames": 0,
                "hero_counts": {},
                "action_counts": {},
                "frame_results": [],
            }

        history_size = max(1, int(config.HISTORY_SIZE))
        weight = float(config.VOTE_WEIGHT)

        heroes = TemporalAggregator(self.hero_keys, history_size=history_size)
        actions = TemporalAggregator(self.action_keys, history_size=history_size)

        logger.debug(
            f"temporal: history={history_size}, weight={weight}, "
            f"hero_keys={len(heroes.keys)}, action_keys={len(actions.keys)}"
        )

        for frame_idx, fr in enumerate(frame_results):
            raw_hero = hero_from_string(fr.get("hero", Hero.NO_HERO.value))
            raw_action = action_from_string(
                fr.get("action", WeaponAction.NO_ACTION.value)
            )

            if not _vote(heroes, raw_hero, weight) and raw_hero is not Hero.NO_HERO:
                logger.debug(
                    f"temporal: frame={frame_idx} hero {raw_hero.value} not tracked"
                )
            if (
                not _vote(actions, raw_action, weight)
                and raw_action is not WeaponAction.NO_ACTION
            ):
                logger.debug(
                    f"temporal: frame={frame_idx} action {raw_action.value} not tracked"
                )

            hero = heroes.current_key()
            action = actions.current_key()
            fr["smoothed_hero"] = (hero or Hero.NO_HERO).value
            fr["smoothed_action"] = (action or WeaponAction.NO_ACTION).value

        last = frame_results[-1]
        logger.debug(
            f"temporal: final hero={last['smoothed_hero']} "
            f"action={last['smoothed_action']}"
        )

        return {
            "hero": last["smoothed_hero"],
            "action": last["smoothed_action"],
            "total_frames": total_frames,
            "hero_counts": dict(Counter(fr["smoothed_hero"] for fr in frame_results)),
            "action_counts": dict(
                Counter(fr["smoothed_action"] for fr in frame_results)
            ),
            "frame_results": frame_results,
        }
