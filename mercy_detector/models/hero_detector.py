"""
Hero and weapon-action detector that labels every frame of a video.

This class orchestrates frame iteration, delegates per-frame scoring to the
selected recognizers, picks the best candidate per frame, and hands the
per-frame labels to a solution strategy that smooths them over time.
"""

import time
from collections import deque
from typing import Deque, Dict, List, Optional

import numpy as np
from loguru import logger

from mercy_detector.models.recognizers import Recognizer, build_recognizers
from mercy_detector.selection.base import BaseLabelSolution
from mercy_detector.selection.candidates import CandidateSet
from mercy_detector.selection.per_frame import PerFrameSolution
from mercy_detector.selection.selector import select_best
from mercy_detector.selection.temporal import TemporalVotingSolution
from mercy_detector.utils.config import Config
from mercy_detector.utils.labels import (Hero, WeaponAction, action_from_string,
                                         hero_from_string, label_name)
from mercy_detector.utils.metadata import MetaFile
from mercy_detector.utils.video_processor import VideoProcessor


class HeroDetector:
    """
    A class for identifying the hero and weapon action in gameplay videos.

    The hero is chosen per frame from the hero recognizer's candidates; the
    weapon action is then chosen using that hero's action recognizer.
    """

    def __init__(
        self,
        method: str = "template",
        solution: str = "temporal",
        match_method: Optional[int] = None,
        config: Optional[Config] = None,
        hero_recognizer: Optional[Recognizer] = None,
        action_recognizers: Optional[Dict[Hero, Recognizer]] = None,
    ):
        """
        Initialize the hero detector.

        Args:
            method: Recognition method ('template' or 'cascade')
            solution: Label solution ('per_frame' or 'temporal')
            match_method: OpenCV template matching method (template only,
                default from config)
            config: Configuration (default: Config())
            hero_recognizer: Prebuilt hero recognizer, skips loading from disk
            action_recognizers: Prebuilt per-hero action recognizers
        """
        self.method = method
        self.solution_name = solution
        self.config = config or Config()
        self.video_processor = VideoProcessor(self.config)

        if hero_recognizer is None:
            hero_recognizer, loaded = build_recognizers(
                method, self.config, match_method=match_method
            )
            if action_recognizers is None:
                action_recognizers = loaded

        self.hero_recognizer: Recognizer = hero_recognizer
        self.action_recognizers: Dict[Hero, Recognizer] = action_recognizers or {}
        self.solution: BaseLabelSolution = self._init_solution()

        logger.info(
            f"HeroDetector initialized with method={self.method}, "
            f"solution={self.solution_name}, "
            f"action recognizers for {len(self.action_recognizers)} heroes"
        )
        logger.debug(f"Config: {self.config.to_dict()}")

    def _init_solution(self) -> BaseLabelSolution:
        if self.solution_name == "per_frame":
            return PerFrameSolution()
        if self.solution_name == "temporal":
            return TemporalVotingSolution()
        raise ValueError(
            "Unsupported solution '" + self.solution_name + "'. Supported: "
            "['per_frame', 'temporal']",
        )

    def predict(self, video_path: str) -> Dict:
        """
        Label every (sampled) frame of a video.

        Per-frame processing time is measured around recognition only, so
        frame decoding does not count against it.

        Args:
            video_path: Path to the input video file

        Returns:
            Dictionary containing the smoothed result, per-frame labels and
            processing speed
        """
        try:
            logger.info(f"Processing video: {video_path}")

            frame_results = []
            times = deque()
            for frame_index, frame in self.video_processor.iter_frames(video_path):
                start = time.time()
                result = self._process_frame(frame)
                elapsed = time.time() - start
                times.append(elapsed)

                result["frame_index"] = frame_index
                result["processing_ms"] = elapsed * 1000.0
                frame_results.append(result)

            final_result = self.solution.aggregate(frame_results, self.config)
            final_result.update(self._processing_stats(times))

            logger.info(
                f"Detection complete: hero={final_result['hero']}, "
                f"action={final_result['action']} "
                f"over {final_result['total_frames']} frames "
                f"({final_result['processing_fps']:.1f} fps)"
            )

            return final_result

        except Exception as e:
            logger.error(f"Error in prediction: {e}")
            raise

    def _processing_stats(self, times: Deque[float]) -> Dict:
        """Average processing time per frame, and whether it keeps up with playback."""
        total = sum(times)
        avg = total / len(times) if len(times) > 0 else 0.0
        fps = 1.0 / avg if avg > 0 else 0.0
        video_fps = self.video_processor.fps
        return {
            "avg_processing_ms": avg * 1000.0,
            "max_processing_ms": max(times) * 1000.0 if len(times) > 0 else 0.0,
            "processing_fps": fps,
            "video_fps": video_fps,
            # Realtime when a frame is processed within one frame time
            "realtime": (fps >= video_fps) if video_fps and fps > 0 else None,
        }

    def _score(self, recognizer: Recognizer, frame: np.ndarray) -> CandidateSet:
        try:
            return recognizer.score_frame(frame)
        except Exception as e:
            logger.error(f"Error scoring frame: {e}")
            # An unusable frame counts as nothing recognized
            return CandidateSet(recognizer.direction)

    def _process_frame(self, frame: np.ndarray) -> Dict:
        """
        Label a single frame.

        Args:
            frame: Input frame as numpy array

        Returns:
            Dictionary containing the hero and action labels for the frame
        """
        hero_candidates = self._score(self.hero_recognizer, frame)
        hero = select_best(hero_candidates, self.hero_recognizer.direction)
        if hero is None:
            hero = Hero.NO_HERO

        action = WeaponAction.NO_ACTION
        action_recognizer = self.action_recognizers.get(hero)
        if action_recognizer is not None:
            action_candidates = self._score(action_recognizer, frame)
            best = select_best(action_candidates, action_recognizer.direction)
            if best is not None:
                action = best

        return {
            "hero": label_name(hero),
            "action": label_name(action),
            "hero_candidates": len(hero_candidates),
        }

    @staticmethod
    def to_metafile(result: Dict, smoothed: bool = True) -> Optional[MetaFile]:
        """Convert a predict() result into a MetaFile indexed by video frame.

        Frames skipped by sampling keep NO_HERO / NO_ACTION. Returns None when
        the result holds no frames.
        """
        frame_results: List[Dict] = result.get("frame_results", [])
        if not frame_results:
            return None

        hero_key = "smoothed_hero" if smoothed else "hero"
        action_key = "smoothed_action" if smoothed else "action"

        meta = MetaFile(max(int(fr["frame_index"]) for fr in frame_results) + 1)
        for fr in frame_results:
            index = int(fr["frame_index"])
            meta.set_hero(index, hero_from_string(fr.get(hero_key, fr["hero"])))
            meta.set_weapon_action(
                index, action_from_string(fr.get(action_key, fr["action"]))
            )
        return meta
