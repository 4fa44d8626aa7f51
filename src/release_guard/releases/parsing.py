"""Build release records from raw announce names with guessit."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from guessit import guessit

from release_guard.releases.models import IndexerMinimal, Release, ReleaseProtocol
from release_guard.releases.normalize import find_edition_markers, strip_leading_title

logger = logging.getLogger(__name__)

_HDR_VALUES = {"HDR10", "HDR10+", "Dolby Vision", "HLG", "SDR"}
_HDR_LABELS = {"Dolby Vision": "DV"}


def parse_release_name(
    name: str,
    *,
    indexer: IndexerMinimal | None = None,
    protocol: ReleaseProtocol = ReleaseProtocol.TORRENT,
) -> Release:
    """Parse ``name`` into a normalized release.

    Fields guessit cannot recognize stay at their empty defaults.
    """

    parsed: dict[str, Any] = dict(guessit(name))
    other = _as_list(parsed.get("other"))
    release_date = parsed.get("date")
    title = str(parsed.get("title") or "")
    proper, repack = _edition_flags(name, title, parsed, other)

    release = Release(
        torrent_name=name,
        title=title,
        sub_title=" ".join(str(value) for value in _as_list(parsed.get("episode_title"))),
        year=_first_int(parsed.get("year")),
        season=_first_int(parsed.get("season")),
        episode=_first_int(parsed.get("episode")),
        resolution=str(parsed.get("screen_size") or ""),
        source=str(parsed.get("source") or ""),
        codec=[str(value) for value in _as_list(parsed.get("video_codec"))],
        container=str(parsed.get("container") or ""),
        hdr=[_HDR_LABELS.get(str(value), str(value)) for value in other if value in _HDR_VALUES],
        audio=[str(value) for value in _as_list(parsed.get("audio_codec"))],
        audio_channels=str(parsed.get("audio_channels") or ""),
        group=str(parsed.get("release_group") or ""),
        website=str(parsed.get("streaming_service") or ""),
        proper=proper,
        repack=repack,
        protocol=protocol,
        indexer=indexer or IndexerMinimal(),
    )
    if isinstance(release_date, date):
        release.year = release_date.year
        release.month = release_date.month
        release.day = release_date.day

    logger.debug(
        "Parsed release name (name=%s title=%s season=%s episode=%s group=%s).",
        name,
        release.title,
        release.season,
        release.episode,
        release.group,
    )
    return release.normalize()


def _edition_flags(
    name: str,
    title: str,
    parsed: dict[str, Any],
    other: list[Any],
) -> tuple[bool, bool]:
    """PROPER/REPACK flags for edition markers guessit recognized.

    guessit reports both kinds as ``other: Proper``; the marker words after the
    title tell them apart. A marker word inside the title is part of the name.
    """

    if "Proper" not in other and not parsed.get("proper_count"):
        return False, False
    proper, repack = find_edition_markers(strip_leading_title(name, title))
    if not (proper or repack):
        proper = True
    return proper, repack


def _as_list(value: object) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _first_int(value: object) -> int:
    values = _as_list(value)
    if not values:
        return 0
    try:
        return int(values[0])
    except (TypeError, ValueError):
        return 0
