"""Version parsing and bumping utilities.

Versions are strict semantic versions: MAJOR.MINOR.PATCH with an optional
pre-release qualifier and build metadata. Bumping always yields a
release-shaped version; pre-release and snapshot qualifiers are re-applied
explicitly by the caller.
"""

from __future__ import annotations

import datetime

import semver

from .bumps import BumpLevel
from .errors import InvalidVersionError

SNAPSHOT_SUFFIX = "-SNAPSHOT"


def parse_version(version_str: str, module_id: str | None = None) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Unlike lenient parsers, incomplete versions such as "1.2" are rejected.

    Raises:
        InvalidVersionError: If version_str is not a semantic version.
    """
    try:
        return semver.Version.parse(version_str)
    except (ValueError, TypeError):
        raise InvalidVersionError(str(version_str), module_id) from None


def next_version(current: str, bump: BumpLevel) -> str:
    """Apply bump to current and return the new version string.

    Examples:
        "1.2.3", MAJOR → "2.0.0"
        "1.2.3", MINOR → "1.3.0"
        "1.2.3-rc.1", PATCH → "1.2.4"
        "1.2.3-SNAPSHOT", NONE → "1.2.3-SNAPSHOT"
    """
    version = parse_version(current)
    if bump is BumpLevel.MAJOR:
        return str(version.bump_major())
    if bump is BumpLevel.MINOR:
        return str(version.bump_minor())
    if bump is BumpLevel.PATCH:
        return str(version.bump_patch())
    return current


def next_prerelease_version(current: str, bump: BumpLevel, prerelease_id: str) -> str:
    """Bump current and mark the result as a pre-release.

    Examples:
        "1.2.3", MINOR, "alpha" → "1.3.0-alpha.0"
        "1.3.0-alpha.0", NONE, "alpha" → "1.3.0-alpha.1"
        "1.3.0", NONE, "alpha" → "1.3.0"
    """
    version = parse_version(current)
    if bump is BumpLevel.NONE:
        prerelease = version.prerelease or ""
        if prerelease == prerelease_id:
            counter = "0"
        elif prerelease.startswith(prerelease_id + "."):
            last = prerelease.rsplit(".", 1)[-1]
            if not last.isdigit():
                return current
            counter = str(int(last) + 1)
        else:
            return current
        return str(
            version.replace(prerelease=f"{prerelease_id}.{counter}", build=None)
        )
    bumped = parse_version(next_version(current, bump))
    return str(bumped.replace(prerelease=f"{prerelease_id}.0"))


def add_build_metadata(version_str: str, metadata: str) -> str:
    """Replace the build metadata of a version ("1.2.3" → "1.2.3+abc123")."""
    return str(parse_version(version_str).replace(build=metadata))


def timestamp_prerelease_id(
    prerelease_id: str, now: datetime.datetime | None = None
) -> str:
    """Suffix prerelease_id with a UTC timestamp.

    Each run gets its own identifier, so nightly builds never reuse a
    version: "alpha" at 2025-10-21 14:30:22 UTC → "alpha.20251021143022".
    """
    now = now or datetime.datetime.now(datetime.timezone.utc)
    return f"{prerelease_id}.{now.astimezone(datetime.timezone.utc):%Y%m%d%H%M%S}"


def is_release_version(version_str: str) -> bool:
    """True when the version carries no pre-release qualifier."""
    return parse_version(version_str).prerelease is None


def apply_snapshot_suffix(version_str: str) -> str:
    """Add -SNAPSHOT unless it is already there.

    Build metadata stays last.

    Examples:
        "1.2.3" → "1.2.3-SNAPSHOT"
        "1.2.3-SNAPSHOT" → "1.2.3-SNAPSHOT"
        "1.2.3+abc" → "1.2.3-SNAPSHOT+abc"
    """
    version, plus, build = version_str.partition("+")
    if not version.endswith(SNAPSHOT_SUFFIX):
        version += SNAPSHOT_SUFFIX
    return f"{version}{plus}{build}"


def strip_snapshot_suffix(version_str: str) -> str:
    """Remove the -SNAPSHOT marker, if present, keeping build metadata."""
    version, plus, build = version_str.partition("+")
    version = version.removesuffix(SNAPSHOT_SUFFIX)
    return f"{version}{plus}{build}"
