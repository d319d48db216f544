"""Bump levels and the max-merge lattice.

Every source of a version increment (a commit, a cascaded dependency bump)
is reduced to a BumpLevel and folded with merge(). NONE is the identity,
so folding an empty sequence yields NONE.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import IntEnum


class BumpLevel(IntEnum):
    """Magnitude of a semantic-version increment, ascending."""

    NONE = 0
    PATCH = 1
    MINOR = 2
    MAJOR = 3

    def __str__(self) -> str:
        return self.name.lower()


# "ignore" is the config spelling for a commit type that never bumps.
_ALIASES = {"ignore": BumpLevel.NONE}


def merge(a: BumpLevel, b: BumpLevel) -> BumpLevel:
    """Return the greater of two levels."""
    return a if a >= b else b


def compare(a: BumpLevel, b: BumpLevel) -> int:
    """Three-way comparison: -1 if a < b, 0 if equal, 1 if a > b."""
    return (a > b) - (a < b)


def max_level(levels: Iterable[BumpLevel]) -> BumpLevel:
    """Fold merge() over levels, starting from NONE."""
    result = BumpLevel.NONE
    for level in levels:
        result = merge(result, level)
    return result


def parse_level(value: BumpLevel | str | int) -> BumpLevel:
    """Convert a config value ("minor", "ignore", 2, ...) to a BumpLevel.

    Raises:
        ValueError: If value does not name a level.
    """
    if isinstance(value, BumpLevel):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return BumpLevel(value)
    if isinstance(value, str):
        key = value.strip().lower()
        if key in _ALIASES:
            return _ALIASES[key]
        try:
            return BumpLevel[key.upper()]
        except KeyError:
            pass
    valid = ", ".join([*(str(lv) for lv in BumpLevel), *_ALIASES])
    raise ValueError(f"Invalid bump level {value!r} (expected one of: {valid})")
