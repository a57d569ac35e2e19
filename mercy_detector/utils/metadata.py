"""
Per-frame metadata files.

A metadata file records the hero and weapon action of every frame of a video,
one row per frame: ``FRAME_NUMBER, HERO_NAME, WEAPON_ACTION``. Frame numbers are
1-based in the file; the accessors below use 0-based frame indices. The same
format serves as hand-labelled ground truth and as detector output.
"""

import os
from typing import List

import pandas as pd
from loguru import logger

from mercy_detector.utils.labels import (Hero, WeaponAction, action_from_string,
                                         hero_from_string)


class MetaFile:
    """Fixed-length list of per-frame hero and weapon-action labels."""

    def __init__(self, frame_count: int):
        """
        Create a metadata object with NO_HERO / NO_ACTION for every frame.

        Args:
            frame_count: Number of frames in the associated video
        """
        if int(frame_count) < 1:
            raise ValueError("Metafile frame count must be at least 1")

        self.identified_heroes: List[Hero] = [Hero.NO_HERO] * int(frame_count)
        self.identified_actions: List[WeaponAction] = (
            [WeaponAction.NO_ACTION] * int(frame_count)
        )

    @classmethod
    def load(cls, filename: str) -> "MetaFile":
        """
        Open a metadata CSV file.

        Only the first three fields of a row are read; anything after them is
        ignored. Rows with fewer than three fields are skipped with a warning,
        which allows comment lines in hand-edited files. Empty hero or action
        fields are kept as NO_HERO / NO_ACTION so every later row stays on its
        frame.
        """
        if not os.path.exists(filename) or os.path.getsize(filename) == 0:
            raise ValueError(f"Metadata file does not exist or is empty: {filename}")

        try:
            # Missing fields come back as NaN, empty ones as ""
            df = pd.read_csv(
                filename,
                header=None,
                names=["frame", "hero", "action"],
                index_col=False,
                dtype=str,
                keep_default_na=False,
                skipinitialspace=True,
                skip_blank_lines=True,
                engine="python",
                on_bad_lines=lambda fields: fields[:3],
            )
        except Exception as e:
            logger.error(f"Error loading metadata from {filename}: {e}")
            raise

        heroes: List[Hero] = []
        actions: List[WeaponAction] = []
        for line, row in enumerate(df.itertuples(index=False), start=1):
            if pd.isna(row.hero) or pd.isna(row.action):
                logger.warning(
                    f"Improperly formatted data on line {line} of {filename}, skipping"
                )
                continue
            heroes.append(hero_from_string(row.hero))
            actions.append(action_from_string(row.action))

        if not heroes:
            raise ValueError(f"Metadata file has no valid rows: {filename}")

        meta = cls(len(heroes))
        meta.identified_heroes = heroes
        meta.identified_actions = actions
        logger.info(f"Loaded metadata for {len(heroes)} frames from {filename}")
        return meta

    def __len__(self) -> int:
        return len(self.identified_heroes)

    def _in_range(self, index: int) -> bool:
        return 0 <= index < len(self.identified_heroes)

    def set_hero(self, index: int, hero: Hero) -> bool:
        if not self._in_range(index):
            return False
        self.identified_heroes[index] = hero
        return True

    def set_weapon_action(self, index: int, action: WeaponAction) -> bool:
        if not self._in_range(index):
            return False
        self.identified_actions[index] = action
        return True

    def get_hero(self, index: int) -> Hero:
        if not self._in_range(index):
            return Hero.NO_HERO
        return self.identified_heroes[index]

    def get_weapon_action(self, index: int) -> WeaponAction:
        if not self._in_range(index):
            return WeaponAction.NO_ACTION
        return self.identified_actions[index]

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "frame": range(1, len(self) + 1),
                "hero": [h.value for h in self.identified_heroes],
                "action": [a.value for a in self.identified_actions],
            }
        )

    def save(self, filename: str) -> None:
        """Write the metadata as CSV, overwriting any existing file."""
        directory = os.path.dirname(filename)
        if directory:
            os.makedirs(directory, exist_ok=True)
        try:
            self.to_dataframe().to_csv(filename, header=False, index=False)
            logger.info(f"Metadata saved to: {filename}")
        except Exception as e:
            logger.error(f"Error saving metadata: {e}")
            raise
