"""
Configuration management for the hero and weapon-action detector.

Provides centralized configuration for all parameters and settings used
throughout the project. Supports environment variables and CLI overrides.
"""

import os
from dataclasses import dataclass
from typing import List, Optional


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    """
    Centralized configuration for the detector.
    Configuration can be set via:
    1. Environment variables (e.g., MERCY_DETECT_HISTORY_SIZE=15)
    2. CLI parameters (e.g., --history-size 15)
    3. Default values (defined below)

    Environment variables take precedence over defaults.
    CLI parameters take precedence over environment variables.
    """

    # Video Processing
    FRAME_SAMPLE_RATE: int = 1  # process every Nth frame
    MAX_FRAMES: Optional[int] = None  # max frames per video (None = process all frames)

    # Temporal smoothing: values kept per label, and the vote given to a frame winner
    HISTORY_SIZE: int = 10
    VOTE_WEIGHT: float = 1.0

    # Template matching
    MATCH_METHOD: int = 5  # cv2.TM_CCOEFF_NORMED
    TEMPLATE_DIR: str = "data/templates"
    ACTION_TEMPLATE_FILE: str = "data/templates/weapon_action_templates.csv"
    TEMPLATE_HEROES: str = "Mercy,Lucio"  # heroes with hero templates
    USE_GRAYSCALE: bool = True
    USE_EDGES: bool = False
    USE_MASK: bool = False
    EDGE_THRESHOLD: int = 100  # Canny low threshold, high = 2x

    # Cascade classifiers
    HERO_CLASSIFIER_DIR: str = "data/cascade_classifiers/heroes"
    WEAPON_CLASSIFIER_DIR: str = "data/cascade_classifiers/weapons"

    def __post_init__(self):
        """Load configuration from environment variables."""
        # Video Processing
        if env_val := os.getenv('MERCY_DETECT_FRAME_SAMPLE_RATE'):
            self.FRAME_SAMPLE_RATE = int(env_val)

        if env_val := os.getenv('MERCY_DETECT_MAX_FRAMES'):
            self.MAX_FRAMES = int(env_val) if env_val.lower() != 'none' else None

        # Temporal smoothing
        if env_val := os.getenv('MERCY_DETECT_HISTORY_SIZE'):
            self.HISTORY_SIZE = int(env_val)

        if env_val := os.getenv('MERCY_DETECT_VOTE_WEIGHT'):
            self.VOTE_WEIGHT = float(env_val)

        # Template matching
        if env_val := os.getenv('MERCY_DETECT_MATCH_METHOD'):
            self.MATCH_METHOD = int(env_val)

        if env_val := os.getenv('MERCY_DETECT_TEMPLATE_DIR'):
            self.TEMPLATE_DIR = env_val

        if env_val := os.getenv('MERCY_DETECT_ACTION_TEMPLATE_FILE'):
            self.ACTION_TEMPLATE_FILE = env_val

        if env_val := os.getenv('MERCY_DETECT_TEMPLATE_HEROES'):
            self.TEMPLATE_HEROES = env_val

        if env_val := os.getenv('MERCY_DETECT_USE_GRAYSCALE'):
            self.USE_GRAYSCALE = _env_bool(env_val)

        if env_val := os.getenv('MERCY_DETECT_USE_EDGES'):
            self.USE_EDGES = _env_bool(env_val)

        if env_val := os.getenv('MERCY_DETECT_USE_MASK'):
            self.USE_MASK = _env_bool(env_val)

        if env_val := os.getenv('MERCY_DETECT_EDGE_THRESHOLD'):
            self.EDGE_THRESHOLD = int(env_val)

        # Cascade classifiers
        if env_val := os.getenv('MERCY_DETECT_HERO_CLASSIFIER_DIR'):
            self.HERO_CLASSIFIER_DIR = env_val

        if env_val := os.getenv('MERCY_DETECT_WEAPON_CLASSIFIER_DIR'):
            self.WEAPON_CLASSIFIER_DIR = env_val

    def template_heroes(self) -> List[str]:
        """Hero names listed in TEMPLATE_HEROES."""
        return [h.strip() for h in self.TEMPLATE_HEROES.split(",") if h.strip()]

    def to_dict(self) -> dict:
        """Convert configuration to dictionary (for logging/debugging)."""
        return {
            'FRAME_SAMPLE_RATE': self.FRAME_SAMPLE_RATE,
            'MAX_FRAMES': self.MAX_FRAMES,
            'HISTORY_SIZE': self.HISTORY_SIZE,
            'VOTE_WEIGHT': self.VOTE_WEIGHT,
            'MATCH_METHOD': self.MATCH_METHOD,
            'TEMPLATE_DIR': self.TEMPLATE_DIR,
            'ACTION_TEMPLATE_FILE': self.ACTION_TEMPLATE_FILE,
            'TEMPLATE_HEROES': self.TEMPLATE_HEROES,
            'USE_GRAYSCALE': self.USE_GRAYSCALE,
            'USE_EDGES': self.USE_EDGES,
            'USE_MASK': self.USE_MASK,
            'EDGE_THRESHOLD': self.EDGE_THRESHOLD,
            'HERO_CLASSIFIER_DIR': self.HERO_CLASSIFIER_DIR,
            'WEAPON_CLASSIFIER_DIR': self.WEAPON_CLASSIFIER_DIR,
        }
