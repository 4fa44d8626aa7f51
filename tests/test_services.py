from __future__ import annotations

import logging

import allure
import pytest

from release_guard.errors import StoreUnavailableError
from release_guard.releases.models import (
    ActionType,
    DuplicateReleaseProfile,
    Release,
    ReleaseActionStatus,
    ReleaseFilterStatus,
    ReleasePushStatus,
)
from release_guard.releases.repository import ReleaseRepository
from release_guard.releases.services import (
    REJECTION_DUPLICATE,
    REJECTION_EPISODE_DELIVERED,
    ReleaseEvaluationService,
)

pytestmark = [
    allure.epic("Release History"),
    allure.feature("Release Evaluation"),
]


def _episode(torrent_name: str, **overrides) -> Release:
    values = {
        "torrent_name": torrent_name,
        "title": "The Best Show",
        "season": 4,
        "episode": 10,
        "resolution": "1080p",
        "group": "GROUP",
        "filter_id": 7,
        "filter_name": "tv",
    }
    values.update(overrides)
    return Release(**values)


def _approved(action: str = "sonarr") -> ReleaseActionStatus:
    return ReleaseActionStatus(
        status=ReleasePushStatus.APPROVED,
        action=action,
        type=ActionType.SONARR,
    )


def test_first_release_is_accepted_and_recorded(repository: ReleaseRepository) -> None:
    service = ReleaseEvaluationService(repository=repository)
    release = _episode("The.Best.Show.S04E10.1080p-GROUP")

    result = service.evaluate(release, profile=DuplicateReleaseProfile(title=True, episode=True))
    release_id = service.record_outcome(release, [_approved()])

    assert result.accepted is True
    assert result.rejections == []
    stored = repository.get(release_id)
    assert stored.filter_status is ReleaseFilterStatus.APPROVED
    assert [status.filter_id for status in stored.action_status] == [7]
    assert stored.action_status[0].filter == "tv"
    assert repository.stats().push_approved_count == 1


def test_duplicate_and_delivered_episode_are_rejected(repository: ReleaseRepository) -> None:
    service = ReleaseEvaluationService(repository=repository)
    first = _episode("The.Best.Show.S04E10.1080p-GROUP")
    service.evaluate(first)
    service.record_outcome(first, [_approved()])

    second = _episode("The.Best.Show.S04E10.1080p.WEB-DL-GROUP")
    result = service.evaluate(
        second,
        profile=DuplicateReleaseProfile(title=True, season=True, episode=True),
        smart_episode=True,
    )

    assert result.accepted is False
    assert result.rejections == [REJECTION_DUPLICATE, REJECTION_EPISODE_DELIVERED]
    assert second.filter_status is ReleaseFilterStatus.REJECTED
    assert second.rejections == result.rejections


def test_upgrade_passes_when_profile_tracks_resolution(repository: ReleaseRepository) -> None:
    service = ReleaseEvaluationService(repository=repository)
    first = _episode("The.Best.Show.S04E10.1080p-GROUP")
    service.record_outcome(first, [_approved()])

    upgrade = _episode("The.Best.Show.S04E10.2160p-GROUP", resolution="2160p")
    result = service.evaluate(
        upgrade,
        profile=DuplicateReleaseProfile(title=True, season=True, episode=True, resolution=True),
        smart_episode=True,
        allow_reacquire=True,
    )

    assert result.accepted is True


def test_store_failure_rejects_conservatively(
    repository: ReleaseRepository,
    monkeypatch,
    caplog,
) -> None:
    def _unavailable(*_args, **_kwargs) -> bool:
        raise StoreUnavailableError("Release store unavailable: database is locked")

    monkeypatch.setattr(repository, "check_is_duplicate_release", _unavailable)
    service = ReleaseEvaluationService(repository=repository)

    with caplog.at_level(logging.WARNING, logger="release_guard.releases.services"):
        result = service.evaluate(
            _episode("The.Best.Show.S04E10.1080p-GROUP"),
            profile=DuplicateReleaseProfile(title=True),
        )

    assert result.accepted is False
    assert result.rejections == ["duplicate check failed: unavailable"]
    assert "database is locked" in caplog.text


def test_invalid_profile_is_a_rejection_not_a_crash(repository: ReleaseRepository) -> None:
    service = ReleaseEvaluationService(repository=repository)

    result = service.evaluate(
        _episode("The.Best.Show.S04E10.1080p-GROUP"),
        profile=DuplicateReleaseProfile(group=True),
    )

    assert result.accepted is False
    assert result.rejections == ["duplicate check failed: invalid_argument"]


@pytest.mark.parametrize("status", [ReleasePushStatus.REJECTED, ReleasePushStatus.ERROR])
def test_failed_push_does_not_block_next_release(
    repository: ReleaseRepository,
    status: ReleasePushStatus,
) -> None:
    service = ReleaseEvaluationService(repository=repository)
    first = _episode("The.Best.Show.S04E10.1080p-GROUP")
    service.record_outcome(
        first,
        [ReleaseActionStatus(status=status, action="sonarr", type=ActionType.SONARR)],
    )

    result = service.evaluate(
        _episode("The.Best.Show.S04E10.1080p-GROUP"),
        profile=DuplicateReleaseProfile(title=True),
        smart_episode=True,
    )

    assert result.accepted is True
