"""Release evaluation stage: duplicate and smart episode checks before actions run."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from release_guard.errors import ReleaseGuardError
from release_guard.releases.models import (
    DuplicateReleaseProfile,
    Release,
    ReleaseActionStatus,
    ReleaseFilterStatus,
    SmartEpisodeParams,
)
from release_guard.releases.repository import ReleaseRepository

logger = logging.getLogger(__name__)

REJECTION_DUPLICATE = "duplicate release"
REJECTION_EPISODE_DELIVERED = "episode already delivered"
REJECTION_CHECK_FAILED = "duplicate check failed"


@dataclass(slots=True)
class EvaluationResult:
    """Outcome of the pre-action checks for one release."""

    accepted: bool
    rejections: list[str] = field(default_factory=list)


class ReleaseEvaluationService:
    """Runs the checks a filter applies to a matched release before any action."""

    def __init__(self, *, repository: ReleaseRepository) -> None:
        self.repository = repository

    def evaluate(
        self,
        release: Release,
        *,
        profile: DuplicateReleaseProfile | None = None,
        smart_episode: bool = False,
        allow_reacquire: bool = False,
    ) -> EvaluationResult:
        """Reject the release when a check fails or cannot be completed.

        A store error while checking is treated as a rejection so a release is
        never pushed twice because the history could not be read.
        """

        release.normalize()
        rejections: list[str] = []
        try:
            if profile is not None and self.repository.check_is_duplicate_release(
                profile,
                release,
            ):
                rejections.append(REJECTION_DUPLICATE)
            if smart_episode and not self.repository.check_smart_episode_can_download(
                SmartEpisodeParams(
                    title=release.title,
                    season=release.season,
                    episode=release.episode,
                    year=release.year,
                    month=release.month,
                    day=release.day,
                    allow_reacquire=allow_reacquire,
                ),
            ):
                rejections.append(REJECTION_EPISODE_DELIVERED)
        except ReleaseGuardError as error:
            logger.warning(
                "Release check failed, rejecting (name=%s code=%s): %s",
                release.torrent_name,
                error.code,
                error,
            )
            rejections.append(f"{REJECTION_CHECK_FAILED}: {error.code}")

        if rejections:
            release.filter_status = ReleaseFilterStatus.REJECTED
            release.rejections.extend(rejections)
        else:
            release.filter_status = ReleaseFilterStatus.APPROVED
        return EvaluationResult(accepted=not rejections, rejections=rejections)

    def record_outcome(
        self,
        release: Release,
        statuses: list[ReleaseActionStatus],
    ) -> int:
        """Persist the release (if new) and its action outcomes; returns the release ID."""

        if not release.id:
            self.repository.store(release)
        for status in statuses:
            status.release_id = release.id
            if not status.filter_id:
                status.filter_id = release.filter_id
            if not status.filter:
                status.filter = release.filter_name
            self.repository.store_release_action_status(status)
        release.action_status.extend(statuses)
        return release.id
