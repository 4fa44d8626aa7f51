"""Profile-driven duplicate comparison over normalized releases.

Every dimension is a boolean-gated predicate over two ``NormalizedRelease``
values. The profile selects which predicates run; a prior release is a
duplicate of the candidate only when every selected predicate holds.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from release_guard.releases.models import DuplicateReleaseProfile, NormalizedRelease

Comparator = Callable[[NormalizedRelease, NormalizedRelease], bool]


@dataclass(frozen=True, slots=True)
class Dimension:
    """One comparison dimension bound to its profile switch."""

    name: str
    compare: Comparator


def _same(attribute: str) -> Comparator:
    def compare(candidate: NormalizedRelease, prior: NormalizedRelease) -> bool:
        return getattr(candidate, attribute) == getattr(prior, attribute)

    return compare


# Evaluated in this order; the profile attribute of each entry matches its name.
DIMENSIONS: tuple[Dimension, ...] = (
    Dimension("title", _same("title")),
    Dimension("sub_title", _same("sub_title")),
    Dimension("protocol", _same("protocol")),
    Dimension("year", _same("year")),
    Dimension("month", _same("month")),
    Dimension("day", _same("day")),
    Dimension("season", _same("season")),
    Dimension("episode", _same("episode")),
    Dimension("source", _same("source")),
    Dimension("resolution", _same("resolution")),
    Dimension("codec", _same("codec")),
    Dimension("container", _same("container")),
    Dimension("hdr", _same("hdr")),
    Dimension("audio", _same("audio")),
    Dimension("group", _same("group")),
    Dimension("website", _same("website")),
    Dimension("proper", _same("proper")),
    Dimension("repack", _same("repack")),
)


def uses_exact_match(profile: DuplicateReleaseProfile) -> bool:
    return profile.exact or profile.release_name


def enabled_dimensions(profile: DuplicateReleaseProfile) -> list[Dimension]:
    """Dimensions whose switch is on, in evaluation order."""

    return [dimension for dimension in DIMENSIONS if getattr(profile, dimension.name)]


def matches(
    profile: DuplicateReleaseProfile,
    candidate: NormalizedRelease,
    prior: NormalizedRelease,
) -> bool:
    """True when ``prior`` agrees with ``candidate`` on every enabled dimension."""

    if uses_exact_match(profile):
        return candidate.torrent_name == prior.torrent_name
    return all(
        dimension.compare(candidate, prior) for dimension in enabled_dimensions(profile)
    )


def find_duplicate(
    profile: DuplicateReleaseProfile,
    candidate: NormalizedRelease,
    priors: Iterable[tuple[int, NormalizedRelease]],
) -> int | None:
    """Return the ID of the first prior release that duplicates the candidate."""

    for release_id, prior in priors:
        if matches(profile, candidate, prior):
            return release_id
    return None
