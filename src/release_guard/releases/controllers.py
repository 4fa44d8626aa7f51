"""Controllers for release CLI commands."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from release_guard.config import Settings
from release_guard.releases.models import (
    DeleteReleaseRequest,
    DuplicateReleaseProfile,
    IndexerMinimal,
    Release,
    ReleaseFilterStatus,
    ReleasePushStatus,
    ReleaseQueryParams,
)
from release_guard.releases.parsing import parse_release_name
from release_guard.releases.repository import ReleaseRepository
from release_guard.releases.services import ReleaseEvaluationService


@dataclass(slots=True)
class ReleasesListCommand:
    """CLI inputs for release list command."""

    db_path: Path | None
    limit: int
    offset: int
    search: str
    sort: tuple[str, ...]
    indexers: tuple[str, ...]
    push_status: str | None
    filter_status: str | None


@dataclass(slots=True)
class ReleasesShowCommand:
    """CLI inputs for release show command."""

    db_path: Path | None
    release_id: int


@dataclass(slots=True)
class ReleasesPruneCommand:
    """CLI inputs for release prune command."""

    db_path: Path | None
    older_than_hours: int | None
    indexers: tuple[str, ...]
    statuses: tuple[str, ...]


@dataclass(slots=True)
class ReleasesCheckDupeCommand:
    """CLI inputs for duplicate check command."""

    db_path: Path | None
    name: str
    filter_id: int
    profile_id: int | None
    indexer: str
    smart_episode: bool
    allow_reacquire: bool


class ReleasesCliController:
    """Coordinates release command execution."""

    def list_releases(self, command: ReleasesListCommand) -> list[str]:
        settings = _settings(command.db_path)
        params = ReleaseQueryParams(
            limit=command.limit,
            offset=command.offset,
            search=command.search,
            sort=_parse_sort(command.sort),
            indexers=list(command.indexers),
            push_status=ReleasePushStatus(command.push_status) if command.push_status else None,
            filter_status=(
                ReleaseFilterStatus(command.filter_status) if command.filter_status else None
            ),
        )
        with _repository(settings) as repository:
            result = repository.find(params)

        lines = [
            f"Releases: total={result.total_count} shown={len(result.data)} "
            f"offset={command.offset} next_cursor={result.next_cursor}",
        ]
        lines.extend(_release_line(release) for release in result.data)
        return lines

    def show(self, command: ReleasesShowCommand) -> list[str]:
        settings = _settings(command.db_path)
        with _repository(settings) as repository:
            release = repository.get(command.release_id)

        timestamp = release.timestamp.isoformat() if release.timestamp is not None else "-"
        lines = [
            f"Release {release.id}: {release.torrent_name}",
            f"  title={release.title or '-'} sub_title={release.sub_title or '-'}",
            f"  season={release.season} episode={release.episode} "
            f"date={release.year:04d}-{release.month:02d}-{release.day:02d}",
            f"  resolution={release.resolution or '-'} source={release.source or '-'} "
            f"codec={','.join(release.codec) or '-'} hdr={','.join(release.hdr) or '-'} "
            f"audio={','.join(release.audio) or '-'} group={release.group or '-'}",
            f"  proper={'yes' if release.proper else 'no'} "
            f"repack={'yes' if release.repack else 'no'} protocol={release.protocol.value}",
            f"  indexer={release.indexer.identifier or '-'} filter={release.filter_name or '-'} "
            f"filter_status={release.filter_status.value} timestamp={timestamp}",
        ]
        if release.rejections:
            lines.append(f"  rejections={'; '.join(release.rejections)}")
        if not release.action_status:
            lines.append("  actions: none")
            return lines

        lines.append("  actions:")
        for status in release.action_status:
            lines.append(
                f"    {status.id} action={status.action} type={status.type.value} "
                f"status={status.status.value} client={status.client or '-'}",
            )
        return lines

    def stats(self, db_path: Path | None) -> list[str]:
        settings = _settings(db_path)
        with _repository(settings) as repository:
            stats = repository.stats()

        return [
            "Releases: "
            f"total={stats.total_count} "
            f"filtered={stats.filtered_count} "
            f"filter_rejected={stats.filter_rejected_count}",
            "Actions: "
            f"approved={stats.push_approved_count} "
            f"rejected={stats.push_rejected_count} "
            f"error={stats.push_error_count}",
        ]

    def indexers(self, db_path: Path | None) -> list[str]:
        settings = _settings(db_path)
        with _repository(settings) as repository:
            identifiers = repository.get_indexer_options()

        if not identifiers:
            return ["No indexers recorded."]
        return identifiers

    def prune(self, command: ReleasesPruneCommand) -> list[str]:
        settings = _settings(command.db_path)
        older_than_hours = (
            command.older_than_hours
            if command.older_than_hours is not None
            else settings.store.retention_hours
        )
        request = DeleteReleaseRequest(
            older_than_hours=older_than_hours,
            indexers=list(command.indexers),
            release_statuses=[ReleasePushStatus(status) for status in command.statuses],
        )
        with _repository(settings) as repository:
            deleted = repository.delete(request)

        scope = f"older_than_hours={older_than_hours}" if older_than_hours > 0 else "all"
        return [f"Releases deleted: {deleted} ({scope})"]

    def check_dupe(self, command: ReleasesCheckDupeCommand) -> list[str]:
        settings = _settings(command.db_path)
        release = parse_release_name(
            command.name,
            indexer=IndexerMinimal(identifier=command.indexer),
        )
        release.filter_id = command.filter_id
        with _repository(settings) as repository:
            profile = _resolve_profile(repository, command.profile_id)
            result = ReleaseEvaluationService(repository=repository).evaluate(
                release,
                profile=profile,
                smart_episode=command.smart_episode,
                allow_reacquire=command.allow_reacquire,
            )

        lines = [
            f"Parsed: title={release.title or '-'} season={release.season} "
            f"episode={release.episode} resolution={release.resolution or '-'} "
            f"group={release.group or '-'}",
            f"Profile: {profile.name if profile is not None else '-'}",
            f"Decision: {'accept' if result.accepted else 'reject'}",
        ]
        lines.extend(f"  rejection={reason}" for reason in result.rejections)
        return lines


@contextmanager
def _repository(settings: Settings) -> Iterator[ReleaseRepository]:
    repository = ReleaseRepository(settings.db_path, settings=settings)
    try:
        repository.init_schema()
        yield repository
    finally:
        repository.close()


def _settings(db_path: Path | None) -> Settings:
    settings = Settings.from_env(db_path=db_path)
    settings.validate()
    return settings


def _resolve_profile(
    repository: ReleaseRepository,
    profile_id: int | None,
) -> DuplicateReleaseProfile | None:
    if profile_id is None:
        return None
    return repository.get_duplicate_profile(profile_id)


def _parse_sort(values: tuple[str, ...]) -> dict[str, str]:
    sort: dict[str, str] = {}
    for value in values:
        field_name, _, direction = value.partition(":")
        sort[field_name.strip()] = direction.strip() or "asc"
    return sort


def _release_line(release: Release) -> str:
    timestamp = release.timestamp.isoformat() if release.timestamp is not None else "-"
    pushed = ",".join(status.status.value for status in release.action_status) or "-"
    return (
        f"  {release.id} {release.torrent_name} "
        f"indexer={release.indexer.identifier or '-'} "
        f"filter_status={release.filter_status.value} actions={pushed} "
        f"timestamp={timestamp}"
    )
