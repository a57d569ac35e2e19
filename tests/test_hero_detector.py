"""
Tests for the HeroDetector orchestration.
"""

import unittest
from unittest.mock import Mock, patch

import numpy as np

from mercy_detector.models.hero_detector import HeroDetector
from mercy_detector.selection.candidates import CandidateSet, ScoreDirection
from mercy_detector.utils.config import Config
from mercy_detector.utils.labels import Hero, WeaponAction


def _recognizer(direction, sequence):
    """Mock recognizer returning one CandidateSet per call from `sequence`."""
    rec = Mock()
    rec.direction = direction
    sets = []
    for scores in sequence:
        cset = CandidateSet(direction)
        for label, score in scores:
            cset.add(label, score)
        sets.append(cset)
    rec.score_frame.side_effect = sets
    return rec


class TestHeroDetector(unittest.TestCase):
    def setUp(self):
        self.frames = [(i, np.zeros((8, 8, 3), dtype=np.uint8)) for i in range(3)]

    def _detector(self, hero_rec, action_recs=None, solution="per_frame"):
        return HeroDetector(
            solution=solution,
            config=Config(),
            hero_recognizer=hero_rec,
            action_recognizers=action_recs or {},
        )

    def test_unsupported_solution(self):
        rec = _recognizer(ScoreDirection.MAXIMIZE_IS_BETTER, [])
        with self.assertRaises(ValueError):
            self._detector(rec, solution="hysteresis")

    @patch("mercy_detector.models.hero_detector.build_recognizers")
    def test_recognizers_built_from_config(self, mock_build):
        hero_rec = _recognizer(ScoreDirection.MAXIMIZE_IS_BETTER, [])
        mock_build.return_value = (hero_rec, {})
        detector = HeroDetector(method="cascade", solution="per_frame", config=Config())
        mock_build.assert_called_once()
        self.assertEqual(mock_build.call_args[0][0], "cascade")
        self.assertIs(detector.hero_recognizer, hero_rec)

    def test_predict_per_frame(self):
        hero_rec = _recognizer(
            ScoreDirection.MINIMIZE_IS_BETTER,
            [
                [(Hero.MERCY, 0.1), (Hero.LUCIO, 0.5)],
                [(Hero.MERCY, 0.6), (Hero.LUCIO, 0.2)],
                [],
            ],
        )
        action_rec = _recognizer(
            ScoreDirection.MAXIMIZE_IS_BETTER,
            [[(WeaponAction.HEALING, 0.9), (WeaponAction.MELEE, 0.3)]],
        )
        detector = self._detector(hero_rec, {Hero.MERCY: action_rec})

        with patch.object(
            detector.video_processor, "iter_frames", return_value=iter(self.frames)
        ):
            result = detector.predict("video.mp4")

        frames = result["frame_results"]
        self.assertEqual([f["hero"] for f in frames], ["Mercy", "Lucio", "No Hero"])
        self.assertEqual(
            [f["action"] for f in frames], ["Healing", "No Action", "No Action"]
        )
        self.assertEqual([f["frame_index"] for f in frames], [0, 1, 2])
        self.assertEqual(result["total_frames"], 3)
        # Action recognizer only runs for the hero it belongs to
        self.assertEqual(action_rec.score_frame.call_count, 1)

    def test_predict_temporal_smooths(self):
        hero_rec = _recognizer(
            ScoreDirection.MAXIMIZE_IS_BETTER,
            [
                [(Hero.MERCY, 0.9), (Hero.LUCIO, 0.1)],
                [(Hero.MERCY, 0.9), (Hero.LUCIO, 0.1)],
                [(Hero.MERCY, 0.2), (Hero.LUCIO, 0.8)],
            ],
        )
        detector = self._detector(hero_rec, solution="temporal")
        with patch.object(
            detector.video_processor, "iter_frames", return_value=iter(self.frames)
        ):
            result = detector.predict("video.mp4")

        self.assertEqual(result["frame_results"][2]["hero"], "Lucio")
        self.assertEqual(result["frame_results"][2]["smoothed_hero"], "Mercy")
        self.assertEqual(result["hero"], "Mercy")

    @patch("mercy_detector.models.hero_detector.time")
    def test_predict_reports_processing_speed(self, mock_time):
        mock_time.time.side_effect = [0.0, 0.25, 1.0, 1.25, 2.0, 2.25]
        hero_rec = _recognizer(
            ScoreDirection.MAXIMIZE_IS_BETTER, [[(Hero.MERCY, 1.0)]] * 3
        )
        detector = self._detector(hero_rec)
        detector.video_processor.fps = 2.0
        with patch.object(
            detector.video_processor, "iter_frames", return_value=iter(self.frames)
        ):
            result = detector.predict("video.mp4")

        self.assertEqual(result["avg_processing_ms"], 250.0)
        self.assertEqual(result["max_processing_ms"], 250.0)
        self.assertEqual(result["processing_fps"], 4.0)
        self.assertEqual(result["video_fps"], 2.0)
        self.assertTrue(result["realtime"])
        self.assertEqual(
            [f["processing_ms"] for f in result["frame_results"]], [250.0] * 3
        )

    def test_processing_stats_without_frames(self):
        detector = self._detector(_recognizer(ScoreDirection.MAXIMIZE_IS_BETTER, []))
        stats = detector._processing_stats([])
        self.assertEqual(stats["avg_processing_ms"], 0.0)
        self.assertEqual(stats["processing_fps"], 0.0)
        self.assertIsNone(stats["realtime"])

    def test_recognizer_error_counts_as_no_hero(self):
        hero_rec = Mock()
        hero_rec.direction = ScoreDirection.MAXIMIZE_IS_BETTER
        hero_rec.score_frame.side_effect = RuntimeError("bad frame")
        detector = self._detector(hero_rec)

        res = detector._process_frame(np.zeros((4, 4, 3), dtype=np.uint8))
        self.assertEqual(res["hero"], "No Hero")
        self.assertEqual(res["hero_candidates"], 0)

    def test_predict_propagates_video_errors(self):
        detector = self._detector(_recognizer(ScoreDirection.MAXIMIZE_IS_BETTER, []))
        with patch.object(
            detector.video_processor,
            "iter_frames",
            side_effect=ValueError("Could not open video file"),
        ):
            with self.assertRaises(ValueError):
                detector.predict("missing.mp4")

    def test_to_metafile(self):
        result = {
            "frame_results": [
                {"frame_index": 0, "hero": "Lucio", "action": "Firing",
                 "smoothed_hero": "Mercy", "smoothed_action": "Healing"},
                {"frame_index": 2, "hero": "Mercy", "action": "Melee",
                 "smoothed_hero": "Mercy", "smoothed_action": "Melee"},
            ]
        }
        meta = HeroDetector.to_metafile(result)
        self.assertEqual(len(meta), 3)
        self.assertIs(meta.get_hero(0), Hero.MERCY)
        self.assertIs(meta.get_hero(1), Hero.NO_HERO)
        self.assertIs(meta.get_weapon_action(2), WeaponAction.MELEE)

        raw = HeroDetector.to_metafile(result, smoothed=False)
        self.assertIs(raw.get_hero(0), Hero.LUCIO)

    def test_to_metafile_empty(self):
        self.assertIsNone(HeroDetector.to_metafile({"frame_results": []}))
