"""
Tests for per-frame metadata files.
"""

import os
import shutil
import tempfile
import unittest

from mercy_detector.utils.labels import Hero, WeaponAction
from mercy_detector.utils.metadata import MetaFile


class TestMetaFile(unittest.TestCase):
    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write(self, name, text):
        path = os.path.join(self.temp_dir, name)
        with open(path, "w") as f:
            f.write(text)
        return path

    def test_new_metafile_is_all_sentinels(self):
        meta = MetaFile(3)
        self.assertEqual(len(meta), 3)
        self.assertTrue(all(h is Hero.NO_HERO for h in meta.identified_heroes))
        self.assertIs(meta.get_weapon_action(2), WeaponAction.NO_ACTION)

    def test_invalid_frame_count(self):
        with self.assertRaises(ValueError):
            MetaFile(0)

    def test_set_and_get_with_range_checks(self):
        meta = MetaFile(2)
        self.assertTrue(meta.set_hero(1, Hero.MERCY))
        self.assertTrue(meta.set_weapon_action(1, WeaponAction.HEALING))
        self.assertFalse(meta.set_hero(2, Hero.LUCIO))
        self.assertFalse(meta.set_weapon_action(-1, WeaponAction.MELEE))
        self.assertIs(meta.get_hero(1), Hero.MERCY)
        self.assertIs(meta.get_weapon_action(1), WeaponAction.HEALING)
        self.assertIs(meta.get_hero(5), Hero.NO_HERO)

    def test_load(self):
        path = self._write(
            "meta.csv",
            "1, Mercy, Holding Staff\n2, Mercy, Healing\n3, Lucio, Firing\n",
        )
        meta = MetaFile.load(path)
        self.assertEqual(len(meta), 3)
        self.assertIs(meta.get_hero(2), Hero.LUCIO)
        self.assertIs(meta.get_weapon_action(1), WeaponAction.HEALING)

    def test_load_skips_malformed_rows(self):
        path = self._write("meta.csv", "1,Mercy,Healing\ncomment\n2,Mercy,Melee\n")
        meta = MetaFile.load(path)
        self.assertEqual(len(meta), 2)
        self.assertIs(meta.get_weapon_action(1), WeaponAction.MELEE)

    def test_load_keeps_rows_with_empty_fields(self):
        path = self._write("meta.csv", "1,,No Action\n2, Mercy, Healing\n3, Lucio,\n")
        meta = MetaFile.load(path)
        self.assertEqual(len(meta), 3)
        self.assertIs(meta.get_hero(0), Hero.NO_HERO)
        self.assertIs(meta.get_hero(1), Hero.MERCY)
        self.assertIs(meta.get_weapon_action(1), WeaponAction.HEALING)
        self.assertIs(meta.get_hero(2), Hero.LUCIO)
        self.assertIs(meta.get_weapon_action(2), WeaponAction.NO_ACTION)

    def test_load_ignores_extra_fields(self):
        path = self._write(
            "meta.csv", "1, Mercy, Healing, note\n2, Lucio, Firing, note\n"
        )
        meta = MetaFile.load(path)
        self.assertEqual(len(meta), 2)
        self.assertIs(meta.get_hero(0), Hero.MERCY)
        self.assertIs(meta.get_weapon_action(0), WeaponAction.HEALING)
        self.assertIs(meta.get_hero(1), Hero.LUCIO)
        self.assertIs(meta.get_weapon_action(1), WeaponAction.FIRING)

    def test_load_mixed_field_counts(self):
        path = self._write(
            "meta.csv", "1, Mercy, Healing\n2, Lucio, Firing, extra, fields\n3, Ana, Melee\n"
        )
        meta = MetaFile.load(path)
        self.assertEqual(len(meta), 3)
        self.assertIs(meta.get_hero(1), Hero.LUCIO)
        self.assertIs(meta.get_weapon_action(1), WeaponAction.FIRING)
        self.assertIs(meta.get_hero(2), Hero.ANA)

    def test_load_missing_or_empty(self):
        with self.assertRaises(ValueError):
            MetaFile.load(os.path.join(self.temp_dir, "nope.csv"))
        with self.assertRaises(ValueError):
            MetaFile.load(self._write("empty.csv", ""))

    def test_save_then_load(self):
        meta = MetaFile(2)
        meta.set_hero(0, Hero.SOLDIER76)
        meta.set_weapon_action(0, WeaponAction.FIRING)
        path = os.path.join(self.temp_dir, "out", "meta.csv")
        meta.save(path)

        with open(path) as f:
            first = f.readline().strip()
        self.assertEqual(first, "1,Soldier: 76,Firing")

        loaded = MetaFile.load(path)
        self.assertIs(loaded.get_hero(0), Hero.SOLDIER76)
        self.assertIs(loaded.get_hero(1), Hero.NO_HERO)
