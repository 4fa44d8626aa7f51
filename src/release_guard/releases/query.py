"""Sort validation, search terms and paging for release queries."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlmodel import col

from release_guard.config import QuerySettings
from release_guard.errors import InvalidArgumentError
from release_guard.releases.models import ReleaseQueryParams
from release_guard.releases.storage.sqlmodel_models import ReleaseActionStatusRow, ReleaseRow

SORT_COLUMNS: dict[str, Any] = {
    "id": ReleaseRow.id,
    "timestamp": ReleaseRow.timestamp,
    "title": ReleaseRow.title,
    "torrent_name": ReleaseRow.torrent_name,
    "name": ReleaseRow.torrent_name,
    "indexer": ReleaseRow.indexer_identifier,
    "filter": ReleaseRow.filter_name,
    "season": ReleaseRow.season,
    "episode": ReleaseRow.episode,
    "year": ReleaseRow.year,
    "size": ReleaseRow.size,
    "resolution": ReleaseRow.resolution,
    "source": ReleaseRow.source,
    "group": ReleaseRow.release_group,
    "protocol": ReleaseRow.protocol,
}
_DIRECTIONS = {"asc", "desc"}


def resolve_sort(sort: dict[str, str]) -> list[Any]:
    """Translate a field -> direction mapping into ORDER BY clauses.

    Unknown fields or directions raise ``InvalidArgumentError``. The ID is
    always appended as a tie-breaker so paging is stable for a fixed table.
    """

    clauses: list[Any] = []
    for field_name, direction in sort.items():
        key = field_name.strip().lower()
        column = SORT_COLUMNS.get(key)
        if column is None:
            raise InvalidArgumentError(
                f"Unsupported sort field: {field_name!r}. "
                f"Allowed: {', '.join(sorted(SORT_COLUMNS))}.",
            )
        normalized_direction = (direction or "asc").strip().lower()
        if normalized_direction not in _DIRECTIONS:
            raise InvalidArgumentError(
                f"Unsupported sort direction for {field_name!r}: {direction!r}.",
            )
        clauses.append(
            col(column).desc() if normalized_direction == "desc" else col(column).asc(),
        )

    if not clauses:
        clauses.append(col(ReleaseRow.timestamp).desc())
    clauses.append(col(ReleaseRow.id).desc())
    return clauses


def resolve_page(params: ReleaseQueryParams, settings: QuerySettings) -> tuple[int, int]:
    """Return ``(limit, offset)`` clamped to configured bounds."""

    if params.offset < 0:
        raise InvalidArgumentError(f"Offset must be >= 0: {params.offset}")
    limit = params.limit if params.limit > 0 else settings.default_page_size
    return min(limit, settings.max_page_size), params.offset


def search_terms(search: str) -> list[str]:
    return [term for term in search.split() if term]


def build_filters(params: ReleaseQueryParams) -> list[Any]:
    """WHERE clauses shared by the page query and its total count."""

    conditions: list[Any] = []
    for term in search_terms(params.search):
        conditions.append(
            col(ReleaseRow.torrent_name).ilike(f"%{_escape_like(term)}%", escape="\\"),
        )
    if params.indexers:
        conditions.append(col(ReleaseRow.indexer_identifier).in_(params.indexers))
    if params.filter_status is not None:
        conditions.append(col(ReleaseRow.filter_status) == params.filter_status.value)
    if params.push_status is not None:
        conditions.append(
            select(ReleaseActionStatusRow.id)
            .where(
                col(ReleaseActionStatusRow.release_id) == col(ReleaseRow.id),
                col(ReleaseActionStatusRow.status) == params.push_status.value,
            )
            .exists(),
        )
    return conditions


def next_cursor(offset: int, page_size: int) -> int:
    return offset + page_size


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
