"""Domain models for releases, action outcomes and duplicate profiles."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from release_guard.releases.normalize import (
    has_proper_marker,
    has_repack_marker,
    normalize_text,
    normalize_values,
    strip_edition_markers,
)


class ReleaseProtocol(str, Enum):
    """Transport the release is fetched with."""

    TORRENT = "torrent"
    USENET = "usenet"


class ReleaseImplementation(str, Enum):
    """Announce mechanism that produced the release."""

    IRC = "irc"
    RSS = "rss"
    TORZNAB = "torznab"
    NEWZNAB = "newznab"


class ReleaseFilterStatus(str, Enum):
    """Outcome of filter matching for a release."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReleasePushStatus(str, Enum):
    """Outcome of one action attempt against a release."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ERROR = "error"


class ActionType(str, Enum):
    """Kinds of actions a filter can run for an approved release."""

    TEST = "test"
    EXEC = "exec"
    WATCH_FOLDER = "watch_folder"
    WEBHOOK = "webhook"
    QBITTORRENT = "qbittorrent"
    DELUGE = "deluge"
    RTORRENT = "rtorrent"
    TRANSMISSION = "transmission"
    SABNZBD = "sabnzbd"
    RADARR = "radarr"
    SONARR = "sonarr"
    LIDARR = "lidarr"
    READARR = "readarr"


@dataclass(slots=True)
class IndexerMinimal:
    """Reference to the indexer that announced a release."""

    id: int = 0
    name: str = ""
    identifier: str = ""
    identifier_external: str = ""


@dataclass(slots=True)
class ReleaseActionStatus:
    """Recorded outcome of one action attempt against one release."""

    status: ReleasePushStatus
    action: str
    type: ActionType
    release_id: int = 0
    filter_id: int = 0
    filter: str = ""
    action_id: int = 0
    client: str = ""
    rejections: list[str] = field(default_factory=list)
    timestamp: datetime | None = None
    id: int = 0


@dataclass(frozen=True, slots=True)
class NormalizedRelease:
    """Comparable projection of a release used by duplicate detection."""

    torrent_name: str
    protocol: str
    title: str
    sub_title: str
    year: int
    month: int
    day: int
    season: int
    episode: int
    source: str
    resolution: str
    codec: frozenset[str]
    container: str
    hdr: frozenset[str]
    audio: frozenset[str]
    audio_channels: str
    group: str
    website: str
    proper: bool
    repack: bool


@dataclass(slots=True)
class Release:
    """One announced release with the fields parsed from its name."""

    torrent_name: str = ""
    title: str = ""
    sub_title: str = ""
    year: int = 0
    month: int = 0
    day: int = 0
    season: int = 0
    episode: int = 0
    resolution: str = ""
    source: str = ""
    codec: list[str] = field(default_factory=list)
    container: str = ""
    hdr: list[str] = field(default_factory=list)
    audio: list[str] = field(default_factory=list)
    audio_channels: str = ""
    group: str = ""
    website: str = ""
    proper: bool = False
    repack: bool = False
    protocol: ReleaseProtocol = ReleaseProtocol.TORRENT
    implementation: ReleaseImplementation = ReleaseImplementation.IRC
    indexer: IndexerMinimal = field(default_factory=IndexerMinimal)
    filter_id: int = 0
    filter_name: str = ""
    filter_status: ReleaseFilterStatus = ReleaseFilterStatus.PENDING
    rejections: list[str] = field(default_factory=list)
    info_url: str = ""
    download_url: str = ""
    group_id: str = ""
    torrent_id: str = ""
    size: int = 0
    category: str = ""
    type: str = ""
    origin: str = ""
    tags: list[str] = field(default_factory=list)
    uploader: str = ""
    pre_time: str = ""
    normalized_title: str = ""
    timestamp: datetime | None = None
    action_status: list[ReleaseActionStatus] = field(default_factory=list)
    id: int = 0

    def normalize(self) -> Release:
        """Move PROPER/REPACK markers into flags and refresh derived fields.

        Safe to call repeatedly; a second call changes nothing.
        """

        for text in (self.title, self.sub_title):
            if has_proper_marker(text):
                self.proper = True
            if has_repack_marker(text):
                self.repack = True
        self.title = strip_edition_markers(self.title) or self.title
        self.sub_title = strip_edition_markers(self.sub_title)
        self.normalized_title = normalize_text(self.title)
        return self

    def normalized(self) -> NormalizedRelease:
        return NormalizedRelease(
            torrent_name=self.torrent_name,
            protocol=_enum_value(self.protocol),
            title=normalize_text(strip_edition_markers(self.title) or self.title),
            sub_title=normalize_text(strip_edition_markers(self.sub_title)),
            year=self.year,
            month=self.month,
            day=self.day,
            season=self.season,
            episode=self.episode,
            source=normalize_text(self.source),
            resolution=normalize_text(self.resolution),
            codec=normalize_values(self.codec),
            container=normalize_text(self.container),
            hdr=normalize_values(self.hdr),
            audio=normalize_values(self.audio),
            audio_channels=normalize_text(self.audio_channels),
            group=normalize_text(self.group),
            website=normalize_text(self.website),
            proper=self.proper or has_proper_marker(self.title) or has_proper_marker(self.sub_title),
            repack=self.repack or has_repack_marker(self.title) or has_repack_marker(self.sub_title),
        )


@dataclass(slots=True)
class DuplicateReleaseProfile:
    """Switches selecting which dimensions take part in duplicate comparison."""

    name: str = ""
    exact: bool = False
    release_name: bool = False
    protocol: bool = False
    title: bool = False
    sub_title: bool = False
    year: bool = False
    month: bool = False
    day: bool = False
    source: bool = False
    resolution: bool = False
    codec: bool = False
    container: bool = False
    hdr: bool = False
    audio: bool = False
    group: bool = False
    season: bool = False
    episode: bool = False
    website: bool = False
    proper: bool = False
    repack: bool = False
    id: int = 0


@dataclass(slots=True)
class SmartEpisodeParams:
    """Unit lookup for the smart episode guard."""

    title: str
    season: int = 0
    episode: int = 0
    year: int = 0
    month: int = 0
    day: int = 0
    allow_reacquire: bool = False

    @property
    def is_episode(self) -> bool:
        return self.episode > 0

    @property
    def is_season_pack(self) -> bool:
        return self.season > 0 and self.episode == 0

    @property
    def is_daily(self) -> bool:
        return (
            self.season == 0
            and self.episode == 0
            and self.year > 0
            and self.month > 0
            and self.day > 0
        )


@dataclass(slots=True)
class ReleaseQueryParams:
    """Search request for stored releases."""

    limit: int = 0
    offset: int = 0
    search: str = ""
    sort: dict[str, str] = field(default_factory=dict)
    indexers: list[str] = field(default_factory=list)
    push_status: ReleasePushStatus | None = None
    filter_status: ReleaseFilterStatus | None = None


@dataclass(slots=True)
class FindReleasesResult:
    """Page of releases with the total match count and next offset."""

    data: list[Release]
    total_count: int
    next_cursor: int


@dataclass(slots=True)
class DeleteReleaseRequest:
    """Bulk delete request; ``older_than_hours == 0`` removes every match."""

    older_than_hours: int = 0
    indexers: list[str] = field(default_factory=list)
    release_statuses: list[ReleasePushStatus] = field(default_factory=list)


@dataclass(slots=True)
class ReleaseStats:
    """Release and action outcome counters for dashboards."""

    total_count: int = 0
    filtered_count: int = 0
    filter_rejected_count: int = 0
    push_approved_count: int = 0
    push_rejected_count: int = 0
    push_error_count: int = 0


def _enum_value(value: Enum | str) -> str:
    return value.value if isinstance(value, Enum) else str(value)
