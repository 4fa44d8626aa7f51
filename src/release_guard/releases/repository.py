"""SQLModel-backed release store, duplicate detector and smart episode guard."""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import timedelta
from pathlib import Path
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import Session, col, delete, select

from release_guard.config import Settings
from release_guard.errors import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    OperationContext,
    StoreUnavailableError,
    check_context,
)
from release_guard.releases.duplicates import find_duplicate, uses_exact_match
from release_guard.releases.models import (
    ActionType,
    DeleteReleaseRequest,
    DuplicateReleaseProfile,
    FindReleasesResult,
    IndexerMinimal,
    Release,
    ReleaseActionStatus,
    ReleaseFilterStatus,
    ReleaseImplementation,
    ReleaseProtocol,
    ReleasePushStatus,
    ReleaseQueryParams,
    ReleaseStats,
    SmartEpisodeParams,
)
from release_guard.releases.normalize import normalize_text, strip_edition_markers
from release_guard.releases.query import build_filters, next_cursor, resolve_page, resolve_sort
from release_guard.releases.storage.alembic_runner import upgrade_head
from release_guard.releases.storage.common import (
    build_sqlite_engine,
    connect_sqlite_with_policy,
    to_db_datetime,
    to_utc_aware_datetime,
    utc_now,
)
from release_guard.releases.storage.sqlmodel_models import (
    DuplicateProfileRow,
    ReleaseActionStatusRow,
    ReleaseRow,
)

logger = logging.getLogger(__name__)

_PROFILE_SWITCHES = (
    "exact",
    "release_name",
    "protocol",
    "title",
    "sub_title",
    "year",
    "month",
    "day",
    "source",
    "resolution",
    "codec",
    "container",
    "hdr",
    "audio",
    "season",
    "episode",
    "website",
    "proper",
    "repack",
)


class ReleaseRepository:
    """Facade that persists releases and action outcomes using SQLModel and Alembic."""

    def __init__(self, db_path: Path, *, settings: Settings | None = None) -> None:
        self.db_path = db_path
        self.settings = settings or Settings(db_path=db_path)
        busy_timeout_ms = self.settings.store.busy_timeout_ms
        self.engine = build_sqlite_engine(db_path=db_path, busy_timeout_ms=busy_timeout_ms)

        # Keep low-level connection for tests and ad-hoc debugging queries.
        self._connection = connect_sqlite_with_policy(
            db_path=db_path,
            busy_timeout_ms=busy_timeout_ms,
        )

    def close(self) -> None:
        self._connection.close()
        self.engine.dispose()

    def init_schema(self) -> None:
        upgrade_head(self.db_path)

    # Releases

    def store(self, release: Release, *, ctx: OperationContext | None = None) -> int:
        """Insert ``release`` and assign its ID.

        A preset non-zero ID is inserted as-is and fails with ``ConflictError``
        when that ID is already taken.
        """

        if release.timestamp is None:
            release.timestamp = utc_now()
        row = _release_to_row(release)
        with self._session(ctx) as session:
            session.add(row)
            session.flush()
            release_id = int(row.id or 0)
            self._commit(session, ctx)

        release.id = release_id
        logger.debug(
            "Stored release (id=%s name=%s filter_id=%s).",
            release_id,
            release.torrent_name,
            release.filter_id,
        )
        return release_id

    def get(self, release_id: int, *, ctx: OperationContext | None = None) -> Release:
        with self._session(ctx) as session:
            row = session.get(ReleaseRow, release_id)
            if row is None:
                raise NotFoundError(f"Release not found: {release_id}")
            statuses = self._statuses_by_release(session, [release_id])

        release = _row_to_release(row)
        release.action_status = statuses.get(release_id, [])
        return release

    def find(
        self,
        params: ReleaseQueryParams,
        *,
        ctx: OperationContext | None = None,
    ) -> FindReleasesResult:
        limit, offset = resolve_page(params, self.settings.query)
        order_by = resolve_sort(params.sort)
        conditions = build_filters(params)

        with self._session(ctx) as session:
            total_count = int(
                session.exec(
                    select(func.count()).select_from(ReleaseRow).where(*conditions),
                ).one(),
            )
            rows = session.exec(
                select(ReleaseRow)
                .where(*conditions)
                .order_by(*order_by)
                .offset(offset)
                .limit(limit),
            ).all()
            statuses = self._statuses_by_release(session, [int(row.id or 0) for row in rows])

        data: list[Release] = []
        for row in rows:
            release = _row_to_release(row)
            release.action_status = statuses.get(release.id, [])
            data.append(release)
        return FindReleasesResult(
            data=data,
            total_count=total_count,
            next_cursor=next_cursor(offset, len(data)),
        )

    def delete(
        self,
        request: DeleteReleaseRequest,
        *,
        ctx: OperationContext | None = None,
    ) -> int:
        """Bulk delete releases (and their action outcomes) in batches.

        Each batch commits on its own; on failure the batches already deleted
        stay deleted and the error propagates.
        """

        if request.older_than_hours < 0:
            raise InvalidArgumentError(
                f"older_than_hours must be >= 0: {request.older_than_hours}",
            )
        cutoff = (
            utc_now() - timedelta(hours=request.older_than_hours)
            if request.older_than_hours > 0
            else None
        )
        batch_size = self.settings.store.delete_batch_size

        deleted = 0
        while True:
            with self._session(ctx) as session:
                statement = select(ReleaseRow.id)
                if cutoff is not None:
                    statement = statement.where(
                        col(ReleaseRow.timestamp) < to_db_datetime(cutoff),
                    )
                if request.indexers:
                    statement = statement.where(
                        col(ReleaseRow.indexer_identifier).in_(request.indexers),
                    )
                if request.release_statuses:
                    statement = statement.where(
                        _has_action_status([status.value for status in request.release_statuses]),
                    )
                release_ids = list(
                    session.exec(statement.order_by(col(ReleaseRow.id)).limit(batch_size)).all(),
                )
                if not release_ids:
                    break

                session.exec(
                    delete(ReleaseActionStatusRow).where(
                        col(ReleaseActionStatusRow.release_id).in_(release_ids),
                    ),
                )
                session.exec(delete(ReleaseRow).where(col(ReleaseRow.id).in_(release_ids)))
                self._commit(session, ctx)
            deleted += len(release_ids)

        logger.info(
            "Deleted releases (count=%s older_than_hours=%s indexers=%s).",
            deleted,
            request.older_than_hours,
            ",".join(request.indexers) or "-",
        )
        return deleted

    def delete_release(self, release_id: int, *, ctx: OperationContext | None = None) -> bool:
        """Delete one release; returns False when it was already gone."""

        with self._session(ctx) as session:
            row = session.get(ReleaseRow, release_id)
            if row is None:
                return False
            session.exec(
                delete(ReleaseActionStatusRow).where(
                    col(ReleaseActionStatusRow.release_id) == release_id,
                ),
            )
            session.delete(row)
            self._commit(session, ctx)
        return True

    def get_indexer_options(self, *, ctx: OperationContext | None = None) -> list[str]:
        with self._session(ctx) as session:
            identifiers = session.exec(
                select(ReleaseRow.indexer_identifier)
                .where(col(ReleaseRow.indexer_identifier) != "")
                .distinct()
                .order_by(col(ReleaseRow.indexer_identifier)),
            ).all()
        return list(identifiers)

    def stats(self, *, ctx: OperationContext | None = None) -> ReleaseStats:
        with self._session(ctx) as session:
            filter_counts = session.exec(
                select(ReleaseRow.filter_status, func.count()).group_by(
                    col(ReleaseRow.filter_status),
                ),
            ).all()
            push_counts = session.exec(
                select(ReleaseActionStatusRow.status, func.count()).group_by(
                    col(ReleaseActionStatusRow.status),
                ),
            ).all()

        by_filter_status = {status: int(count) for status, count in filter_counts}
        by_push_status = {status: int(count) for status, count in push_counts}
        return ReleaseStats(
            total_count=sum(by_filter_status.values()),
            filtered_count=by_filter_status.get(ReleaseFilterStatus.APPROVED.value, 0),
            filter_rejected_count=by_filter_status.get(ReleaseFilterStatus.REJECTED.value, 0),
            push_approved_count=by_push_status.get(ReleasePushStatus.APPROVED.value, 0),
            push_rejected_count=by_push_status.get(ReleasePushStatus.REJECTED.value, 0),
            push_error_count=by_push_status.get(ReleasePushStatus.ERROR.value, 0),
        )

    # Action outcomes

    def store_release_action_status(
        self,
        status: ReleaseActionStatus,
        *,
        ctx: OperationContext | None = None,
    ) -> int:
        if status.timestamp is None:
            status.timestamp = utc_now()
        row = ReleaseActionStatusRow(
            release_id=status.release_id,
            status=status.status.value,
            action=status.action,
            action_id=status.action_id,
            type=status.type.value,
            client=status.client,
            filter=status.filter,
            filter_id=status.filter_id,
            rejections_json=json.dumps(status.rejections, ensure_ascii=False),
            timestamp=to_db_datetime(status.timestamp),
        )
        with self._session(ctx) as session:
            session.add(row)
            session.flush()
            status_id = int(row.id or 0)
            self._commit(session, ctx)

        status.id = status_id
        return status_id

    def get_action_status(
        self,
        status_id: int,
        *,
        ctx: OperationContext | None = None,
    ) -> ReleaseActionStatus:
        with self._session(ctx) as session:
            row = session.get(ReleaseActionStatusRow, status_id)
            if row is None:
                raise NotFoundError(f"Release action status not found: {status_id}")
            return _row_to_status(row)

    def list_action_statuses(
        self,
        release_id: int,
        *,
        ctx: OperationContext | None = None,
    ) -> list[ReleaseActionStatus]:
        with self._session(ctx) as session:
            return self._statuses_by_release(session, [release_id]).get(release_id, [])

    # Duplicate detection

    def check_is_duplicate_release(
        self,
        profile: DuplicateReleaseProfile,
        release: Release,
        *,
        ctx: OperationContext | None = None,
    ) -> bool:
        """True when an approved release of the same filter matches every enabled dimension."""

        exact = uses_exact_match(profile)
        if not (profile.title or exact):
            raise InvalidArgumentError(
                f"Duplicate profile {profile.name or profile.id!r} must enable title "
                "or exact release name matching.",
            )
        candidate = release.normalized()
        if exact and not candidate.torrent_name:
            raise InvalidArgumentError("Candidate release has no release name.")
        if not exact and not candidate.title:
            raise InvalidArgumentError("Candidate release has no title.")

        statement = select(ReleaseRow).where(
            col(ReleaseRow.filter_id) == release.filter_id,
            _has_action_status([ReleasePushStatus.APPROVED.value]),
        )
        if exact:
            statement = statement.where(col(ReleaseRow.torrent_name) == candidate.torrent_name)
        else:
            statement = statement.where(col(ReleaseRow.normalized_title) == candidate.title)
        if release.id:
            statement = statement.where(col(ReleaseRow.id) != release.id)

        with self._session(ctx) as session:
            rows = session.exec(statement.order_by(col(ReleaseRow.id))).all()

        duplicate_id = find_duplicate(
            profile,
            candidate,
            ((int(row.id or 0), _row_to_release(row).normalized()) for row in rows),
        )
        logger.debug(
            "Duplicate check (name=%s profile=%s candidates=%s duplicate_of=%s).",
            release.torrent_name,
            profile.name or profile.id,
            len(rows),
            duplicate_id if duplicate_id is not None else "-",
        )
        return duplicate_id is not None

    def check_smart_episode_can_download(
        self,
        params: SmartEpisodeParams,
        *,
        ctx: OperationContext | None = None,
    ) -> bool:
        """Whether the episode/date unit may be downloaded given prior deliveries."""

        title = normalize_text(strip_edition_markers(params.title) or params.title)
        if not title:
            raise InvalidArgumentError("Smart episode lookup requires a title.")

        statement = (
            select(func.count())
            .select_from(ReleaseRow)
            .where(
                col(ReleaseRow.normalized_title) == title,
                _has_action_status([ReleasePushStatus.APPROVED.value]),
            )
        )
        if params.is_episode:
            statement = statement.where(
                col(ReleaseRow.season) == params.season,
                col(ReleaseRow.episode) == params.episode,
            )
        elif params.is_season_pack:
            statement = statement.where(
                col(ReleaseRow.season) == params.season,
                col(ReleaseRow.episode) == 0,
            )
        elif params.is_daily:
            statement = statement.where(
                col(ReleaseRow.year) == params.year,
                col(ReleaseRow.month) == params.month,
                col(ReleaseRow.day) == params.day,
            )
        else:
            logger.debug(
                "Smart episode lookup has no season, episode or date (title=%s).",
                params.title,
            )
            return False

        with self._session(ctx) as session:
            delivered = int(session.exec(statement).one())

        if delivered == 0:
            return True
        return params.allow_reacquire

    # Duplicate profiles

    def store_duplicate_profile(
        self,
        profile: DuplicateReleaseProfile,
        *,
        ctx: OperationContext | None = None,
    ) -> int:
        """Insert a new profile, or update the stored one when ``profile.id`` is set."""

        with self._session(ctx) as session:
            row = session.get(DuplicateProfileRow, profile.id) if profile.id else None
            if profile.id and row is None:
                raise NotFoundError(f"Duplicate profile not found: {profile.id}")
            if row is None:
                row = DuplicateProfileRow(name=profile.name)
            _apply_profile(row, profile)
            session.add(row)
            session.flush()
            profile_id = int(row.id or 0)
            self._commit(session, ctx)

        profile.id = profile_id
        return profile_id

    def get_duplicate_profile(
        self,
        profile_id: int,
        *,
        ctx: OperationContext | None = None,
    ) -> DuplicateReleaseProfile:
        with self._session(ctx) as session:
            row = session.get(DuplicateProfileRow, profile_id)
            if row is None:
                raise NotFoundError(f"Duplicate profile not found: {profile_id}")
            return _row_to_profile(row)

    def list_duplicate_profiles(
        self,
        *,
        ctx: OperationContext | None = None,
    ) -> list[DuplicateReleaseProfile]:
        with self._session(ctx) as session:
            rows = session.exec(
                select(DuplicateProfileRow).order_by(col(DuplicateProfileRow.name)),
            ).all()
            return [_row_to_profile(row) for row in rows]

    def delete_duplicate_profile(
        self,
        profile_id: int,
        *,
        ctx: OperationContext | None = None,
    ) -> bool:
        with self._session(ctx) as session:
            row = session.get(DuplicateProfileRow, profile_id)
            if row is None:
                return False
            session.delete(row)
            self._commit(session, ctx)
        return True

    # Internals

    @contextmanager
    def _session(self, ctx: OperationContext | None) -> Iterator[Session]:
        check_context(ctx)
        try:
            with Session(self.engine) as session:
                yield session
        except IntegrityError as error:
            raise ConflictError(f"Release store constraint violation: {error.orig}") from error
        except OperationalError as error:
            raise StoreUnavailableError(f"Release store unavailable: {error.orig}") from error

    def _commit(self, session: Session, ctx: OperationContext | None) -> None:
        check_context(ctx)
        session.commit()

    def _statuses_by_release(
        self,
        session: Session,
        release_ids: list[int],
    ) -> dict[int, list[ReleaseActionStatus]]:
        if not release_ids:
            return {}
        rows = session.exec(
            select(ReleaseActionStatusRow)
            .where(col(ReleaseActionStatusRow.release_id).in_(release_ids))
            .order_by(col(ReleaseActionStatusRow.id)),
        ).all()
        grouped: dict[int, list[ReleaseActionStatus]] = defaultdict(list)
        for row in rows:
            grouped[row.release_id].append(_row_to_status(row))
        return grouped


def _has_action_status(statuses: list[str]) -> Any:
    return (
        select(ReleaseActionStatusRow.id)
        .where(
            col(ReleaseActionStatusRow.release_id) == col(ReleaseRow.id),
            col(ReleaseActionStatusRow.status).in_(statuses),
        )
        .exists()
    )


def _release_to_row(release: Release) -> ReleaseRow:
    row = ReleaseRow(
        filter_status=release.filter_status.value,
        rejections_json=json.dumps(release.rejections, ensure_ascii=False),
        indexer_id=release.indexer.id,
        indexer_name=release.indexer.name,
        indexer_identifier=release.indexer.identifier,
        indexer_identifier_external=release.indexer.identifier_external,
        filter_id=release.filter_id,
        filter_name=release.filter_name,
        protocol=release.protocol.value,
        implementation=release.implementation.value,
        timestamp=to_db_datetime(release.timestamp or utc_now()),
        info_url=release.info_url,
        download_url=release.download_url,
        group_id=release.group_id,
        torrent_id=release.torrent_id,
        torrent_name=release.torrent_name,
        normalized_title=release.normalized().title,
        size=release.size,
        title=release.title,
        sub_title=release.sub_title,
        category=release.category,
        season=release.season,
        episode=release.episode,
        year=release.year,
        month=release.month,
        day=release.day,
        resolution=release.resolution,
        source=release.source,
        codec_json=json.dumps(release.codec, ensure_ascii=False),
        container=release.container,
        hdr_json=json.dumps(release.hdr, ensure_ascii=False),
        audio_json=json.dumps(release.audio, ensure_ascii=False),
        audio_channels=release.audio_channels,
        release_group=release.group,
        proper=release.proper,
        repack=release.repack,
        website=release.website,
        type=release.type,
        origin=release.origin,
        tags_json=json.dumps(release.tags, ensure_ascii=False),
        uploader=release.uploader,
        pre_time=release.pre_time,
    )
    if release.id:
        row.id = release.id
    return row


def _row_to_release(row: ReleaseRow) -> Release:
    return Release(
        id=int(row.id or 0),
        filter_status=ReleaseFilterStatus(row.filter_status),
        rejections=_load_list(row.rejections_json),
        indexer=IndexerMinimal(
            id=row.indexer_id,
            name=row.indexer_name,
            identifier=row.indexer_identifier,
            identifier_external=row.indexer_identifier_external,
        ),
        filter_id=row.filter_id,
        filter_name=row.filter_name,
        protocol=ReleaseProtocol(row.protocol),
        implementation=ReleaseImplementation(row.implementation),
        timestamp=to_utc_aware_datetime(row.timestamp),
        info_url=row.info_url,
        download_url=row.download_url,
        group_id=row.group_id,
        torrent_id=row.torrent_id,
        torrent_name=row.torrent_name,
        normalized_title=row.normalized_title,
        size=row.size,
        title=row.title,
        sub_title=row.sub_title,
        category=row.category,
        season=row.season,
        episode=row.episode,
        year=row.year,
        month=row.month,
        day=row.day,
        resolution=row.resolution,
        source=row.source,
        codec=_load_list(row.codec_json),
        container=row.container,
        hdr=_load_list(row.hdr_json),
        audio=_load_list(row.audio_json),
        audio_channels=row.audio_channels,
        group=row.release_group,
        proper=row.proper,
        repack=row.repack,
        website=row.website,
        type=row.type,
        origin=row.origin,
        tags=_load_list(row.tags_json),
        uploader=row.uploader,
        pre_time=row.pre_time,
    )


def _row_to_status(row: ReleaseActionStatusRow) -> ReleaseActionStatus:
    return ReleaseActionStatus(
        id=int(row.id or 0),
        release_id=row.release_id,
        status=ReleasePushStatus(row.status),
        action=row.action,
        action_id=row.action_id,
        type=ActionType(row.type),
        client=row.client,
        filter=row.filter,
        filter_id=row.filter_id,
        rejections=_load_list(row.rejections_json),
        timestamp=to_utc_aware_datetime(row.timestamp),
    )


def _apply_profile(row: DuplicateProfileRow, profile: DuplicateReleaseProfile) -> None:
    row.name = profile.name
    for switch in _PROFILE_SWITCHES:
        setattr(row, switch, getattr(profile, switch))
    row.release_group = profile.group


def _row_to_profile(row: DuplicateProfileRow) -> DuplicateReleaseProfile:
    profile = DuplicateReleaseProfile(id=int(row.id or 0), name=row.name, group=row.release_group)
    for switch in _PROFILE_SWITCHES:
        setattr(profile, switch, getattr(row, switch))
    return profile


def _load_list(raw: str | None) -> list[str]:
    if not raw:
        return []
    loaded = json.loads(raw)
    if not isinstance(loaded, list):
        return []
    return [str(value) for value in loaded]
