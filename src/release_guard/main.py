"""CLI entrypoint for release-guard."""

import logging
from collections.abc import Callable
from pathlib import Path

import rich_click as click

from release_guard import __version__
from release_guard.config import Settings
from release_guard.errors import ReleaseGuardError
from release_guard.releases.controllers import (
    ReleasesCheckDupeCommand,
    ReleasesCliController,
    ReleasesListCommand,
    ReleasesPruneCommand,
    ReleasesShowCommand,
)
from release_guard.releases.models import ReleaseFilterStatus, ReleasePushStatus

click.rich_click.USE_MARKDOWN = True
RELEASES_CONTROLLER = ReleasesCliController()

_PUSH_STATUSES = [status.value for status in ReleasePushStatus]
_FILTER_STATUSES = [status.value for status in ReleaseFilterStatus]


@click.group()
@click.version_option(version=__version__, prog_name="release-guard")
def release_guard() -> None:
    """Release history and duplicate guard CLI."""

    log_level = Settings.from_env().log_level
    logging.basicConfig(
        level=getattr(logging, log_level, logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@release_guard.group()
def releases() -> None:
    """Release store commands."""


@releases.command("list")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option(
    "--limit",
    type=click.IntRange(min=0),
    default=0,
    help="Page size. 0 uses RELEASE_GUARD_DEFAULT_PAGE_SIZE.",
)
@click.option("--offset", type=click.IntRange(min=0), default=0, show_default=True)
@click.option("--search", default="", help="Terms that must all appear in the release name.")
@click.option(
    "--sort",
    multiple=True,
    help="Sort key as field[:asc|desc], for example timestamp:desc. Can be repeated.",
)
@click.option(
    "--indexer",
    "indexers",
    multiple=True,
    help="Indexer identifier filter. Can be repeated.",
)
@click.option("--push-status", type=click.Choice(_PUSH_STATUSES), default=None)
@click.option("--filter-status", type=click.Choice(_FILTER_STATUSES), default=None)
def releases_list(  # noqa: PLR0913
    db_path: Path | None,
    limit: int,
    offset: int,
    search: str,
    sort: tuple[str, ...],
    indexers: tuple[str, ...],
    push_status: str | None,
    filter_status: str | None,
) -> None:
    """List stored releases, newest first by default."""

    _emit_guarded(
        lambda: RELEASES_CONTROLLER.list_releases(
            ReleasesListCommand(
                db_path=db_path,
                limit=limit,
                offset=offset,
                search=search,
                sort=sort,
                indexers=indexers,
                push_status=push_status,
                filter_status=filter_status,
            ),
        ),
    )


@releases.command("show")
@click.argument("release_id", type=int)
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
def releases_show(release_id: int, db_path: Path | None) -> None:
    """Show one release with its action outcomes."""

    _emit_guarded(
        lambda: RELEASES_CONTROLLER.show(
            ReleasesShowCommand(db_path=db_path, release_id=release_id),
        ),
    )


@releases.command("stats")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
def releases_stats(db_path: Path | None) -> None:
    """Show release and action outcome counters."""

    _emit_guarded(lambda: RELEASES_CONTROLLER.stats(db_path))


@releases.command("indexers")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
def releases_indexers(db_path: Path | None) -> None:
    """List indexer identifiers seen in stored releases."""

    _emit_guarded(lambda: RELEASES_CONTROLLER.indexers(db_path))


@releases.command("prune")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option(
    "--older-than-hours",
    type=click.IntRange(min=0),
    default=None,
    help=(
        "Delete releases older than this many hours. 0 deletes every match. "
        "Defaults to RELEASE_GUARD_RETENTION_HOURS."
    ),
)
@click.option(
    "--indexer",
    "indexers",
    multiple=True,
    help="Only delete releases from this indexer. Can be repeated.",
)
@click.option(
    "--status",
    "statuses",
    type=click.Choice(_PUSH_STATUSES),
    multiple=True,
    help="Only delete releases with an action in this status. Can be repeated.",
)
def releases_prune(
    db_path: Path | None,
    older_than_hours: int | None,
    indexers: tuple[str, ...],
    statuses: tuple[str, ...],
) -> None:
    """Delete stored releases together with their action outcomes."""

    _emit_guarded(
        lambda: RELEASES_CONTROLLER.prune(
            ReleasesPruneCommand(
                db_path=db_path,
                older_than_hours=older_than_hours,
                indexers=indexers,
                statuses=statuses,
            ),
        ),
    )


@releases.command("check-dupe")
@click.argument("name")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option("--filter-id", type=int, default=0, show_default=True)
@click.option("--profile-id", type=int, default=None, help="Duplicate profile to apply.")
@click.option("--indexer", default="", help="Indexer identifier of the announce.")
@click.option(
    "--smart-episode/--no-smart-episode",
    default=False,
    show_default=True,
    help="Reject episodes that were already delivered.",
)
@click.option(
    "--allow-reacquire/--no-allow-reacquire",
    default=False,
    show_default=True,
    help="Let the smart episode check accept already delivered episodes.",
)
def releases_check_dupe(  # noqa: PLR0913
    name: str,
    db_path: Path | None,
    filter_id: int,
    profile_id: int | None,
    indexer: str,
    smart_episode: bool,
    allow_reacquire: bool,
) -> None:
    """Parse a release name and run the duplicate checks against stored history."""

    _emit_guarded(
        lambda: RELEASES_CONTROLLER.check_dupe(
            ReleasesCheckDupeCommand(
                db_path=db_path,
                name=name,
                filter_id=filter_id,
                profile_id=profile_id,
                indexer=indexer,
                smart_episode=smart_episode,
                allow_reacquire=allow_reacquire,
            ),
        ),
    )


def _emit_guarded(run: Callable[[], list[str]]) -> None:
    try:
        lines = run()
    except (ReleaseGuardError, ValueError) as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    release_guard()
