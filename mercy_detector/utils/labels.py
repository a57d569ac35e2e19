"""
Hero and weapon-action label tables.

Both label universes are closed enums whose values are the display strings used
in metadata files, classifier/template file names and reports.
"""

from __future__ import annotations

from enum import Enum
from typing import Hashable, List


class Hero(Enum):
    """Overwatch heroes as of May 2021, plus the NO_HERO sentinel."""

    ANA = "Ana"
    ASHE = "Ashe"
    BAPTISTE = "Baptiste"
    BASTION = "Bastion"
    BRIGITTE = "Brigitte"
    DVA = "D.Va"
    DOOMFIST = "Doomfist"
    ECHO = "Echo"
    GENJI = "Genji"
    HANZO = "Hanzo"
    JUNKRAT = "Junkrat"
    LUCIO = "Lucio"
    MCCREE = "Mccree"
    MEI = "Mei"
    MERCY = "Mercy"
    MOIRA = "Moira"
    ORISA = "Orisa"
    PHARAH = "Pharah"
    REAPER = "Reaper"
    REINHARDT = "Reinhardt"
    ROADHOG = "Roadhog"
    SIGMA = "Sigma"
    SOLDIER76 = "Soldier: 76"
    SOMBRA = "Sombra"
    SYMMETRA = "Symmetra"
    TORBJORN = "Torbjorn"
    TRACER = "Tracer"
    WIDOWMAKER = "Widowmaker"
    WINSTON = "Winston"
    WRECKING_BALL = "Wrecking Ball"
    ZARYA = "Zarya"
    ZENYATTA = "Zenyatta"
    NO_HERO = "No Hero"


class WeaponAction(Enum):
    """Weapon actions that may be identified, plus the NO_ACTION sentinel."""

    HOLDING_STAFF = "Holding Staff"
    HOLDING_PISTOL = "Holding Pistol"
    FIRING = "Firing"
    MELEE = "Melee"
    HEALING = "Healing"
    DAMAGE_BOOSTING = "Damage Boosting"
    NO_ACTION = "No Action"


# Lookup by display string or member name (file stems use "Wrecking_Ball" etc.)
_HEROES_BY_NAME = {
    **{h.value.lower(): h for h in Hero},
    **{h.name.lower(): h for h in Hero},
}
_ACTIONS_BY_NAME = {
    **{a.value.lower(): a for a in WeaponAction},
    **{a.name.lower(): a for a in WeaponAction},
}


def hero_from_string(name: str) -> Hero:
    """Return the hero for a display string or member name, NO_HERO if unknown."""
    return _HEROES_BY_NAME.get(str(name).strip().lower(), Hero.NO_HERO)


def action_from_string(name: str) -> WeaponAction:
    """Return the action for a display string or member name, NO_ACTION if unknown."""
    return _ACTIONS_BY_NAME.get(str(name).strip().lower(), WeaponAction.NO_ACTION)


def label_name(label: Hashable) -> str:
    """Render any label (enum member or plain value) as a string."""
    if isinstance(label, Enum):
        return str(label.value)
    return str(label)


def playable_heroes() -> List[Hero]:
    return [h for h in Hero if h is not Hero.NO_HERO]


def identifiable_actions() -> List[WeaponAction]:
    return [a for a in WeaponAction if a is not WeaponAction.NO_ACTION]
