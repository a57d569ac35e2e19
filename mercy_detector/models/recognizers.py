"""
Frame recognizers and base class.

This module defines a recognizer interface that scores a single frame against
a fixed set of labels, and two concrete implementations: OpenCV template
matching and OpenCV cascade classifiers. Each recognizer returns a
`CandidateSet` whose `ScoreDirection` is fixed at construction, so the rest of
the system can select a winner without knowing which method produced it.
"""

from __future__ import annotations

import glob
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Hashable, List, Optional, Sequence, Tuple

import cv2
import numpy as np
import pandas as pd
from loguru import logger

from mercy_detector.selection.candidates import CandidateSet, ScoreDirection
from mercy_detector.utils.labels import (Hero, action_from_string,
                                         hero_from_string)
from mercy_detector.utils.preprocessing import (EDGE_THRESHOLD, create_edge_map,
                                                lower_right_quadrant,
                                                to_equalized_gray)

Region = Tuple[int, int, int, int]  # x, y, w, h

# Score direction of every OpenCV template matching method
MATCH_METHOD_DIRECTIONS: Dict[int, ScoreDirection] = {
    cv2.TM_SQDIFF: ScoreDirection.MINIMIZE_IS_BETTER,
    cv2.TM_SQDIFF_NORMED: ScoreDirection.MINIMIZE_IS_BETTER,
    cv2.TM_CCORR: ScoreDirection.MAXIMIZE_IS_BETTER,
    cv2.TM_CCORR_NORMED: ScoreDirection.MAXIMIZE_IS_BETTER,
    cv2.TM_CCOEFF: ScoreDirection.MAXIMIZE_IS_BETTER,
    cv2.TM_CCOEFF_NORMED: ScoreDirection.MAXIMIZE_IS_BETTER,
}

MATCH_METHOD_NAMES: Dict[str, int] = {
    "TM_SQDIFF": cv2.TM_SQDIFF,
    "TM_SQDIFF_NORMED": cv2.TM_SQDIFF_NORMED,
    "TM_CCORR": cv2.TM_CCORR,
    "TM_CCORR_NORMED": cv2.TM_CCORR_NORMED,
    "TM_CCOEFF": cv2.TM_CCOEFF,
    "TM_CCOEFF_NORMED": cv2.TM_CCOEFF_NORMED,
}

# matchTemplate only honours a mask for these methods
MASKABLE_METHODS = (cv2.TM_SQDIFF, cv2.TM_CCORR_NORMED)


def match_method_name(method: int) -> str:
    for name, value in MATCH_METHOD_NAMES.items():
        if value == method:
            return name
    raise ValueError(f"Unsupported match method {method}")


class Recognizer(ABC):
    """Abstract base class for frame recognizers.

    Implementations expose a fixed `direction` and a `score_frame` method that
    returns one CandidateSet per frame, scored in the recognizer's native scale.
    """

    direction: ScoreDirection

    @abstractmethod
    def score_frame(self, frame: np.ndarray) -> CandidateSet:
        """Score a single BGR image (OpenCV format) against every known label.

        Args:
            frame: Input image as a NumPy array in BGR color order.

        Returns:
            CandidateSet in this recognizer's direction.
        """
        raise NotImplementedError


@dataclass
class TemplateSpec:
    """A labelled template, with optional mask and search region."""

    label: Hashable
    image: np.ndarray
    mask: Optional[np.ndarray] = None
    region: Optional[Region] = None  # None = lower-right quadrant of the frame


class TemplateMatchingRecognizer(Recognizer):
    """Template matching recognizer.

    Every template contributes one candidate: the best correlation (or
    smallest difference) found inside its search region.
    """

    def __init__(
        self,
        templates: Sequence[TemplateSpec],
        match_method: int = cv2.TM_CCOEFF_NORMED,
        use_mask: bool = False,
        use_grayscale: bool = True,
        use_edges: bool = False,
        edge_threshold: int = EDGE_THRESHOLD,
    ):
        if match_method not in MATCH_METHOD_DIRECTIONS:
            raise ValueError(
                f"Unsupported match method {match_method}. Supported: "
                f"{sorted(MATCH_METHOD_DIRECTIONS)}"
            )
        self.match_method = match_method
        self.direction = MATCH_METHOD_DIRECTIONS[match_method]
        self.use_mask = bool(use_mask) and match_method in MASKABLE_METHODS
        self.use_grayscale = use_grayscale
        self.use_edges = use_edges
        self.edge_threshold = edge_threshold

        if use_mask and not self.use_mask:
            logger.warning(
                f"Masks are ignored for {match_method_name(match_method)}; "
                "only TM_SQDIFF and TM_CCORR_NORMED support them"
            )

        # Templates are preprocessed once, frames once per template region
        self.templates: List[TemplateSpec] = [
            TemplateSpec(
                label=t.label,
                image=self._preprocess(t.image),
                mask=self._preprocess_mask(t.mask),
                region=t.region,
            )
            for t in templates
        ]

    def _preprocess(self, image: np.ndarray) -> np.ndarray:
        if self.use_edges:
            return create_edge_map(image, self.edge_threshold)
        if self.use_grayscale:
            return to_equalized_gray(image)
        return image

    def _preprocess_mask(self, mask: Optional[np.ndarray]) -> Optional[np.ndarray]:
        if mask is None or not self.use_mask:
            return None
        if self.use_grayscale or self.use_edges:
            # Mask must match the single-channel template
            if mask.ndim == 3:
                mask = cv2.cvtColor(mask, cv2.COLOR_BGR2GRAY)
        return mask

    def score_frame(self, frame: np.ndarray) -> CandidateSet:
        candidates = CandidateSet(self.direction)
        cache: Dict[Region, np.ndarray] = {}

        for template in self.templates:
            x, y, w, h = template.region or lower_right_quadrant(frame.shape)
            region = (x, y, w, h)
            if region not in cache:
                cache[region] = self._preprocess(frame[y:y + h, x:x + w])
            cropped = cache[region]

            th, tw = template.image.shape[:2]
            if cropped.shape[0] < th or cropped.shape[1] < tw:
                logger.warning(
                    f"Template for {template.label} ({tw}x{th}) is larger than its "
                    f"search region {region}; skipping"
                )
                continue

            if template.mask is not None:
                result = cv2.matchTemplate(
                    cropped, template.image, self.match_method, mask=template.mask
                )
            else:
                result = cv2.matchTemplate(cropped, template.image, self.match_method)

            min_val, max_val, _, _ = cv2.minMaxLoc(result)
            if self.direction is ScoreDirection.MINIMIZE_IS_BETTER:
                candidates.add(template.label, min_val)
            else:
                candidates.add(template.label, max_val)

        return candidates


class CascadeRecognizer(Recognizer):
    """Cascade classifier recognizer.

    Each trained classifier that fires on the frame contributes a candidate
    scored by its number of detections. Classifiers that find nothing
    contribute nothing, so a frame with no detections yields an empty set.
    """

    direction = ScoreDirection.MAXIMIZE_IS_BETTER

    def __init__(self, classifiers: Sequence[Tuple[Hashable, cv2.CascadeClassifier]]):
        self.classifiers = list(classifiers)

    @classmethod
    def from_directory(
        cls,
        directory: str,
        parse_label: Callable[[str], Hashable],
        labels: Optional[Sequence[Hashable]] = None,
    ) -> "CascadeRecognizer":
        """Load every ``*.xml`` classifier in a directory.

        The label of a classifier is parsed from its file stem. Classifiers
        that fail to load, or whose label is not in `labels`, are skipped.
        """
        classifiers = []
        for path in sorted(glob.glob(os.path.join(directory, "*.xml"))):
            stem = os.path.splitext(os.path.basename(path))[0]
            label = parse_label(stem)
            if labels is not None and label not in labels:
                logger.debug(f"Skipping classifier {path}: label not requested")
                continue

            classifier = cv2.CascadeClassifier()
            if not classifier.load(path):
                logger.error(f"Cannot load classifier for {stem}: {path}")
                continue
            classifiers.append((label, classifier))
            logger.info(f"Loaded cascade classifier: {path}")

        if not classifiers:
            logger.warning(f"No cascade classifiers loaded from {directory}")
        return cls(classifiers)

    def score_frame(self, frame: np.ndarray) -> CandidateSet:
        candidates = CandidateSet(self.direction)
        gray = to_equalized_gray(frame)

        for label, classifier in self.classifiers:
            occurrences = classifier.detectMultiScale(gray)
            if len(occurrences) > 0:
                candidates.add(label, len(occurrences))

        return candidates


def _read_image(path: str, flags: int = cv2.IMREAD_COLOR) -> Optional[np.ndarray]:
    if not os.path.exists(path):
        return None
    image = cv2.imread(path, flags)
    if image is None:
        logger.error(f"Cannot decode image file: {path}")
    return image


def load_hero_templates(
    template_dir: str, heroes: Sequence[Hero]
) -> List[TemplateSpec]:
    """Load ``<Hero>.png`` templates (and ``<Hero>_mask.png`` when present)."""
    templates = []
    for hero in heroes:
        image = _read_image(os.path.join(template_dir, f"{hero.value}.png"))
        if image is None:
            logger.warning(f"No template for hero {hero.value} in {template_dir}")
            continue
        mask = _read_image(os.path.join(template_dir, f"{hero.value}_mask.png"))
        templates.append(TemplateSpec(label=hero, image=image, mask=mask))

    logger.info(f"Loaded {len(templates)} hero templates from {template_dir}")
    return templates


def load_action_templates(
    template_dir: str, paths_file: str
) -> Dict[Hero, List[TemplateSpec]]:
    """
    Load weapon-action templates grouped by hero.

    The paths file is a CSV where a row with a single field names a hero and
    every following row describes one of that hero's templates as
    ``name, action, x, y, w, h``. Images live in ``<template_dir>/Weapon_Actions``
    as ``<name>.png`` with an optional ``<name>_mask.png``.
    """
    try:
        df = pd.read_csv(
            paths_file,
            header=None,
            names=["name", "action", "x", "y", "w", "h"],
            dtype=str,
            skipinitialspace=True,
        )
    except Exception as e:
        logger.error(f"Error loading action template list {paths_file}: {e}")
        raise

    image_dir = os.path.join(template_dir, "Weapon_Actions")
    grouped: Dict[Hero, List[TemplateSpec]] = {}
    hero: Optional[Hero] = None

    for row in df.itertuples(index=False):
        if pd.isna(row.action):
            hero = hero_from_string(row.name)
            grouped.setdefault(hero, [])
            continue
        if hero is None:
            logger.warning(f"Action template {row.name} listed before any hero")
            continue

        image = _read_image(os.path.join(image_dir, f"{row.name}.png"))
        if image is None:
            logger.warning(f"Missing action template image: {row.name}")
            continue
        try:
            region = (int(row.x), int(row.y), int(row.w), int(row.h))
        except (TypeError, ValueError):
            logger.warning(f"Invalid search region for action template {row.name}")
            continue

        grouped[hero].append(
            TemplateSpec(
                label=action_from_string(row.action),
                image=image,
                mask=_read_image(os.path.join(image_dir, f"{row.name}_mask.png")),
                region=region,
            )
        )

    return grouped


def load_weapon_classifiers(
    weapon_dir: str, heroes: Sequence[Hero]
) -> Dict[Hero, CascadeRecognizer]:
    """One CascadeRecognizer per hero from ``<weapon_dir>/<Hero>/*.xml``."""
    recognizers = {}
    for hero in heroes:
        hero_dir = os.path.join(weapon_dir, hero.value)
        if not os.path.isdir(hero_dir):
            continue
        recognizer = CascadeRecognizer.from_directory(hero_dir, action_from_string)
        if recognizer.classifiers:
            recognizers[hero] = recognizer
    return recognizers


def build_recognizers(
    method: str,
    config,
    match_method: Optional[int] = None,
) -> Tuple[Recognizer, Dict[Hero, Recognizer]]:
    """Build the hero recognizer and per-hero action recognizers for a method."""
    if method == "template":
        match_method = config.MATCH_METHOD if match_method is None else match_method
        options = dict(
            match_method=match_method,
            use_mask=config.USE_MASK,
            use_grayscale=config.USE_GRAYSCALE,
            use_edges=config.USE_EDGES,
            edge_threshold=config.EDGE_THRESHOLD,
        )
        heroes = [hero_from_string(h) for h in config.template_heroes()]
        heroes = [h for h in heroes if h is not Hero.NO_HERO]
        hero_recognizer = TemplateMatchingRecognizer(
            load_hero_templates(config.TEMPLATE_DIR, heroes), **options
        )
        action_recognizers: Dict[Hero, Recognizer] = {}
        if os.path.exists(config.ACTION_TEMPLATE_FILE):
            for hero, templates in load_action_templates(
                config.TEMPLATE_DIR, config.ACTION_TEMPLATE_FILE
            ).items():
                action_recognizers[hero] = TemplateMatchingRecognizer(
                    templates, **options
                )
        else:
            logger.warning(
                f"Action template list not found: {config.ACTION_TEMPLATE_FILE}"
            )
        return hero_recognizer, action_recognizers

    if method == "cascade":
        hero_recognizer = CascadeRecognizer.from_directory(
            config.HERO_CLASSIFIER_DIR, hero_from_string
        )
        heroes = [label for label, _ in hero_recognizer.classifiers]
        return hero_recognizer, dict(
            load_weapon_classifiers(config.WEAPON_CLASSIFIER_DIR, heroes)
        )

    raise ValueError(
        "Unsupported method '" + method + "'. Supported: ['template', 'cascade']"
    )
