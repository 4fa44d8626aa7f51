"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from release_guard.releases.repository import ReleaseRepository


@pytest.fixture()
def repository(tmp_path: Path) -> Iterator[ReleaseRepository]:
    """Migrated release store in a throwaway SQLite file."""
    repo = ReleaseRepository(tmp_path / "releases.db")
    repo.init_schema()
    yield repo
    repo.close()
