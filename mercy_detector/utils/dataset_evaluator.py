"""
Dataset evaluation utilities.

Runs every requested recognition-method variant over a list of videos and
compares the per-frame labels with ground truth.
"""

import json
import os
import sys
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

import pandas as pd
from loguru import logger
from sklearn.metrics import accuracy_score, classification_report
from tqdm import tqdm

from mercy_detector.models.hero_detector import HeroDetector
from mercy_detector.models.recognizers import MATCH_METHOD_NAMES
from mercy_detector.utils.config import Config
from mercy_detector.utils.evaluation import EvaluationHarness
from mercy_detector.utils.labels import Hero, hero_from_string
from mercy_detector.utils.metadata import MetaFile

TEMPLATE_VARIANTS = [f"template:{name}" for name in MATCH_METHOD_NAMES]
CASCADE_VARIANT = "cascade"
ALL_VARIANTS = TEMPLATE_VARIANTS + [CASCADE_VARIANT]

DETECTION_TYPES = {"template": "Template-Matching", "cascade": "Cascade-Classifier"}


def parse_variant(variant: str) -> Tuple[str, Optional[int]]:
    """Split a variant id into (method, match_method)."""
    if variant == CASCADE_VARIANT:
        return "cascade", None
    method, _, match_name = variant.partition(":")
    if method != "template" or match_name not in MATCH_METHOD_NAMES:
        raise ValueError(
            f"Unsupported variant '{variant}'. Supported: {ALL_VARIANTS}"
        )
    return method, MATCH_METHOD_NAMES[match_name]


class DatasetEvaluator:
    """
    Evaluates every recognition-method variant on a dataset of videos.

    The video list names each video (relative to the dataset directory) and
    optionally a per-frame metadata file with the ground truth. Without a
    metadata file, the expected hero is the video's first path component
    (``Mercy/Glock/idle.mp4`` is a Mercy video) and actions are not scored.
    """

    def __init__(
        self,
        dataset_path: str,
        labels_file: str,
        variants: Optional[List[str]] = None,
        solution: str = "per_frame",
        config: Optional[Config] = None,
        show_progress: bool = False,
    ):
        """
        Initialize the dataset evaluator.

        Args:
            dataset_path: Path to directory containing video files
            labels_file: CSV listing the videos (and optional metadata files)
            variants: Variant ids to evaluate (default: every template method)
            solution: Label solution used by every detector
            config: Shared configuration
            show_progress: Show a progress bar on interactive terminals
        """
        self.dataset_path = dataset_path
        self.labels_file = labels_file
        self.variants = list(variants) if variants else list(TEMPLATE_VARIANTS)
        self.solution = solution
        self.config = config or Config()
        self.show_progress = bool(show_progress)

        for variant in self.variants:
            parse_variant(variant)

        self.ground_truth = self._load_labels()

        # One detector per variant; templates and classifiers load once
        self.detectors: Dict[str, HeroDetector] = {}
        for variant in self.variants:
            method, match_method = parse_variant(variant)
            self.detectors[variant] = HeroDetector(
                method=method,
                solution=solution,
                match_method=match_method,
                config=self.config,
            )

        logger.info(
            f"DatasetEvaluator initialized with {len(self.ground_truth)} videos "
            f"and {len(self.variants)} variants"
        )

    def _load_labels(self) -> List[Dict]:
        """
        Load the video list.

        Returns:
            List of {"video": str, "metadata": Optional[str]} entries
        """
        try:
            df = pd.read_csv(self.labels_file, skipinitialspace=True)

            if "video" not in df.columns:
                raise ValueError(
                    "labels file is missing required column: ['video']"
                )

            df = df.dropna(subset=["video"]).copy()
            df["video"] = df["video"].astype(str).str.strip()

            dups = df[df.duplicated(subset=["video"], keep=False)]["video"].unique()
            if len(dups) > 0:
                raise ValueError(
                    f"duplicate video entries in labels file: {sorted(map(str, dups))}"
                )

            items = []
            for _, row in df.iterrows():
                metadata = row.get("metadata") if "metadata" in df.columns else None
                if metadata is not None and pd.isna(metadata):
                    metadata = None
                items.append(
                    {
                        "video": row["video"],
                        "metadata": str(metadata).strip() if metadata else None,
                    }
                )

            logger.info(f"Loaded {len(items)} videos from {self.labels_file}")
            return items

        except Exception as e:
            logger.error(f"Error loading labels: {e}")
            raise

    def _load_metadata(self, item: Dict) -> Optional[MetaFile]:
        if not item["metadata"]:
            return None
        path = item["metadata"]
        if not os.path.isabs(path):
            path = os.path.join(self.dataset_path, path)
        return MetaFile.load(path)

    @staticmethod
    def _hero_from_path(video: str) -> Hero:
        first = video.replace("\\", "/").split("/", 1)[0]
        return hero_from_string(first)

    def evaluate(self) -> Dict:
        """
        Evaluate every variant on the complete dataset.

        Returns:
            Dictionary containing per-video rows, per-variant tallies and
            classification reports
        """
        logger.info("Starting dataset evaluation...")

        hero_harness = EvaluationHarness()
        action_harness = EvaluationHarness()
        y_true: Dict[str, List[str]] = defaultdict(list)
        y_pred: Dict[str, List[str]] = defaultdict(list)
        video_results = []
        evaluated_videos = set()

        # Progress bar disabled in non-interactive contexts
        progress_disable = not sys.stderr.isatty() or not self.show_progress

        for item in tqdm(
            self.ground_truth, desc="Evaluating", leave=False, disable=progress_disable
        ):
            video_path = os.path.join(self.dataset_path, item["video"])
            if not os.path.exists(video_path):
                logger.warning(f"Video file not found: {video_path}")
                continue

            try:
                meta = self._load_metadata(item)
            except Exception as e:
                logger.error(f"Error loading metadata for {item['video']}: {e}")
                continue
            path_hero = self._hero_from_path(item["video"])

            for variant, detector in self.detectors.items():
                try:
                    logger.info(f"Processing video: {item['video']} ({variant})")
                    result = detector.predict(video_path=video_path)
                except Exception as e:
                    logger.error(
                        f"Error processing video {item['video']} ({variant}): {e}"
                    )
                    continue

                video_heroes = EvaluationHarness()
                video_actions = EvaluationHarness()
                for fr in result.get("frame_results", []):
                    index = int(fr["frame_index"])
                    expected = meta.get_hero(index) if meta else path_hero
                    # No ground truth for this frame
                    if expected is Hero.NO_HERO:
                        continue

                    detected = hero_from_string(fr.get("smoothed_hero", fr["hero"]))
                    hero_harness.record(variant, expected, detected)
                    video_heroes.record(variant, expected, detected)
                    y_true[variant].append(expected.value)
                    y_pred[variant].append(detected.value)

                    if meta is not None and index < len(meta):
                        detected_action = fr.get("smoothed_action", fr["action"])
                        expected_action = meta.get_weapon_action(index).value
                        action_harness.record(variant, expected_action, detected_action)
                        video_actions.record(variant, expected_action, detected_action)

                hero_tally = video_heroes.tally(variant)
                action_tally = video_actions.tally(variant)
                method, _ = parse_variant(variant)
                video_results.append(
                    {
                        "video": item["video"],
                        "method": DETECTION_TYPES[method],
                        "variant": variant,
                        "correct": hero_tally.correct_count,
                        "total": hero_tally.total_count,
                        "action_correct": action_tally.correct_count,
                        "action_total": action_tally.total_count,
                        "avg_processing_ms": result.get("avg_processing_ms"),
                        "processing_fps": result.get("processing_fps"),
                    }
                )
                evaluated_videos.add(item["video"])

        summary = []
        for tally in hero_harness.summarize():
            action_tally = action_harness.tally(tally.variant)
            summary.append(
                {
                    **tally.to_row(),
                    "action_correct": action_tally.correct_count,
                    "action_total": action_tally.total_count,
                }
            )

        reports = {
            variant: self._calculate_metrics(y_true[variant], y_pred[variant])
            for variant in y_true
        }

        results = {
            "total_videos": len(evaluated_videos),
            "variants": self.variants,
            "summary": summary,
            "video_results": video_results,
            "metrics": reports,
        }

        for row in summary:
            if row["total"] > 0:
                logger.info(
                    f"{row['variant']}: {row['correct']}/{row['total']} frames correct "
                    f"({row['correct'] / row['total'] * 100:.1f}%)"
                )
            else:
                logger.info(f"{row['variant']}: no frames with ground truth")

        return results

    def _calculate_metrics(self, true_labels: List[str], predictions: List[str]) -> Dict:
        """
        Calculate multi-class metrics for one variant.

        Args:
            true_labels: Expected hero names
            predictions: Detected hero names

        Returns:
            Dictionary with accuracy and the classification report
        """
        if not true_labels:
            return {"accuracy": None, "classification_report": {}}

        accuracy = accuracy_score(true_labels, predictions)
        # Zero division is used to avoid division by zero
        report = classification_report(
            true_labels, predictions, output_dict=True, zero_division=0
        )
        return {"accuracy": float(accuracy), "classification_report": report}

    def save_results(self, results: Dict, output_file: str):
        """
        Save detailed evaluation results to a JSON file, and the per-video rows
        to a CSV file next to it.

        Args:
            results: Evaluation results dictionary
            output_file: Path to save the results
        """
        try:
            with open(output_file, "w") as f:
                json.dump(results, f, indent=2)

            csv_file = os.path.splitext(output_file)[0] + ".csv"
            pd.DataFrame(
                results["video_results"],
                columns=[
                    "video", "method", "variant", "correct", "total",
                    "action_correct", "action_total", "avg_processing_ms",
                    "processing_fps",
                ],
            ).to_csv(csv_file, index=False)

            logger.info(f"Results saved to: {output_file}")

        except Exception as e:
            logger.error(f"Error saving results: {e}")
            raise
