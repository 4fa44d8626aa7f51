"""End-to-end duplicate checks from raw announce names through the store."""

from __future__ import annotations

import allure
import pytest

from release_guard.releases.models import (
    ActionType,
    DuplicateReleaseProfile,
    IndexerMinimal,
    ReleaseActionStatus,
    ReleasePushStatus,
    ReleaseQueryParams,
)
from release_guard.releases.parsing import parse_release_name
from release_guard.releases.repository import ReleaseRepository

pytestmark = [
    allure.epic("Release History"),
    allure.feature("Duplicate Detection"),
]

FILTER_ID = 1
MOCK_INDEXER = IndexerMinimal(name="Mock", identifier="mock", identifier_external="Mock")

_MOVIES = [
    "That.Movie.2023.BluRay.2160p.x265.DTS-HD-GROUP",
    "That.Movie.2023.BluRay.720p.x265.DTS-HD-GROUP",
    "That.Movie.2023.WEB.2160p.x265.DTS-HD-GROUP",
]
_SDR_AND_DV = [
    "The Best Show 2020 S04E10 1080p HULU WEB-DL DDP 5.1 SDR H.264-GROUP",
    "The.Best.Show.2020.S04E10.1080p.AMZN.WEB-DL.DDP.5.1.SDR.H.264-GROUP",
    "The.Best.Show.2020.S04E10.1080p.AMZN.WEB-DL.DDP.5.1.HDR.DV.H.264-GROUP",
]
_WITH_EPISODE_TITLE = [
    "The Best Show 2020 S04E10 1080p HULU WEB-DL DDP 5.1 SDR H.264-GROUP",
    "The.Best.Show.2020.S04E10.1080p.AMZN.WEB-DL.DDP.5.1.SDR.H.264-GROUP",
    "The.Best.Show.2020.S04E10.Episode.Title.1080p.AMZN.WEB-DL.DDP.5.1.HDR.DV.H.264-GROUP",
]
_DAILY = [
    "The Daily Show 2024-09-21 1080p HULU WEB-DL DDP 5.1 SDR H.264-GROUP",
    "The Daily Show 2024-09-21.1080p.AMZN.WEB-DL.DDP.5.1.SDR.H.264-GROUP",
    "The Daily Show 2024-09-21.Guest.1080p.AMZN.WEB-DL.DDP.5.1.H.264-GROUP1",
]
_EPISODE_UPGRADE = {
    "title": True,
    "year": True,
    "season": True,
    "episode": True,
    "source": True,
    "codec": True,
    "resolution": True,
    "website": True,
}
_DAILY_UNIT = {"title": True, "season": True, "episode": True, "year": True, "month": True, "day": True}

CASES = [
    pytest.param(
        ["Inkheart 2008 BluRay 1080p DD5.1 x264-BADGROUP"],
        "Inkheart 2008 BluRay 1080p DD5.1 x264-GROUP",
        DuplicateReleaseProfile(title=True, group=True),
        False,
        id="movie-other-group",
    ),
    pytest.param(
        _MOVIES,
        "That.Movie.2023.BluRay.2160p.x265.DTS-HD-GROUP1",
        DuplicateReleaseProfile(title=True, source=True, resolution=True),
        True,
        id="movie-same-source-resolution",
    ),
    pytest.param(
        _MOVIES,
        "That.Movie.2023.BluRay.2160p.x265.DTS-HD-GROUP1",
        DuplicateReleaseProfile(title=True, year=True, source=True, codec=True, resolution=True),
        True,
        id="movie-same-quality",
    ),
    pytest.param(
        _MOVIES,
        "That.Movie.2023.BluRay.2160p.x265.DTS-HD-GROUP1",
        DuplicateReleaseProfile(
            title=True, year=True, source=True, codec=True, resolution=True, group=True
        ),
        False,
        id="movie-same-quality-other-group",
    ),
    pytest.param(
        ["That.Tv.Show.2023.S01E01.BluRay.2160p.x265.DTS-HD-GROUP"],
        "That.Tv.Show.2023.S01E01.BluRay.2160p.x265.DTS-HD-GROUP",
        DuplicateReleaseProfile(
            title=True, year=True, season=True, episode=True, source=True, codec=True,
            resolution=True, group=True,
        ),
        True,
        id="episode-identical",
    ),
    pytest.param(
        ["That.Tv.Show.2023.S01E01.BluRay.2160p.x265.DTS-HD-GROUP"],
        "That.Tv.Show.2023.S01E02.BluRay.2160p.x265.DTS-HD-GROUP",
        DuplicateReleaseProfile(
            title=True, year=True, season=True, episode=True, source=True, codec=True,
            resolution=True, group=True,
        ),
        False,
        id="episode-next-number",
    ),
    pytest.param(
        ["That.Tv.Show.2023.S01.BluRay.2160p.x265.DTS-HD-GROUP"],
        "That.Tv.Show.2023.S01.BluRay.2160p.x265.DTS-HD-GROUP",
        DuplicateReleaseProfile(
            title=True, year=True, season=True, episode=True, source=True, codec=True,
            resolution=True, group=True,
        ),
        True,
        id="season-pack-identical",
    ),
    pytest.param(
        ["The Best Show 2020 S04E10 1080p AMZN WEB-DL DDP 5.1 SDR H.264-GROUP"],
        "The Best Show 2020 S04E10 1080p AMZN WEB-DL DDP 5.1 SDR H.264-GROUP",
        DuplicateReleaseProfile(**_EPISODE_UPGRADE, group=True),
        True,
        id="episode-same-website",
    ),
    pytest.param(
        [
            "The Best Show 2020 S04E10 1080p HULU WEB-DL DDP 5.1 SDR H.264-GROUP",
            "The.Best.Show.2020.S04E10.1080p.HULU.WEB-DL.DDP.5.1.SDR.H.264-GROUP",
        ],
        "The Best Show 2020 S04E10 1080p AMZN WEB-DL DDP 5.1 SDR H.264-GROUP",
        DuplicateReleaseProfile(**_EPISODE_UPGRADE, group=True),
        False,
        id="episode-other-website",
    ),
    # The AMZN prior without HDR tags equals the candidate on every enabled
    # dimension; empty HDR sets on both sides compare equal.
    pytest.param(
        [
            "The Best Show 2020 S04E10 1080p HULU WEB-DL DDP 5.1 H.264-GROUP",
            "The.Best.Show.2020.S04E10.1080p.AMZN.WEB-DL.DDP.5.1.H.264-GROUP",
            "The.Best.Show.2020.S04E10.1080p.AMZN.WEB-DL.DDP.5.1.HDR.DV.H.264-GROUP",
        ],
        "The Best Show 2020 S04E10 1080p AMZN WEB-DL DDP 5.1 H.264-GROUP",
        DuplicateReleaseProfile(**_EPISODE_UPGRADE, hdr=True, group=True),
        True,
        id="episode-no-hdr-matches-no-hdr",
    ),
    pytest.param(
        [*_SDR_AND_DV, "The Best Show 2020 S04E10 1080p amzn web-dl ddp 5.1 hdr dv h.264-group"],
        "The Best Show 2020 S04E10 1080p AMZN WEB-DL DDP 5.1 HDR DV H.264-GROUP",
        DuplicateReleaseProfile(**_EPISODE_UPGRADE, hdr=True),
        True,
        id="episode-same-hdr-set",
    ),
    pytest.param(
        _SDR_AND_DV,
        "The Best Show 2020 S04E10 1080p AMZN WEB-DL DDP 5.1 DV H.264-GROUP",
        DuplicateReleaseProfile(**_EPISODE_UPGRADE, hdr=True, group=True),
        False,
        id="episode-dv-only-is-new-hdr-set",
    ),
    pytest.param(
        _SDR_AND_DV,
        "The Best Show 2020 S04E10 Episode Title 1080p AMZN WEB-DL DDP 5.1 HDR DV H.264-GROUP",
        DuplicateReleaseProfile(**_EPISODE_UPGRADE, sub_title=True, hdr=True, group=True),
        False,
        id="episode-title-missing-on-priors",
    ),
    pytest.param(
        _WITH_EPISODE_TITLE,
        "The Best Show 2020 S04E10 Episode Title 1080p AMZN WEB-DL DDP 5.1 HDR DV H.264-GROUP",
        DuplicateReleaseProfile(**_EPISODE_UPGRADE, sub_title=True, hdr=True, group=True),
        True,
        id="episode-title-and-hdr-match",
    ),
    pytest.param(
        _WITH_EPISODE_TITLE,
        "The Best Show 2020 S04E10 Episode Title 1080p AMZN WEB-DL DDP 5.1 HDR DV H.264-GROUP",
        DuplicateReleaseProfile(title=True, sub_title=True, season=True, episode=True, hdr=True),
        True,
        id="episode-title-narrow-profile",
    ),
    pytest.param(
        _WITH_EPISODE_TITLE,
        "The Best Show 2020 S04E11 Episode Title 1080p AMZN WEB-DL DDP 5.1 HDR DV H.264-GROUP",
        DuplicateReleaseProfile(title=True, sub_title=True, season=True, episode=True, hdr=True),
        False,
        id="episode-title-next-number",
    ),
    pytest.param(
        _WITH_EPISODE_TITLE,
        "The Best Show 2020 S04E10 Episode Title REPACK 1080p AMZN WEB-DL DDP 5.1 HDR DV H.264-GROUP",
        DuplicateReleaseProfile(title=True, sub_title=True, season=True, episode=True, hdr=True),
        True,
        id="repack-ignored-without-repack-switch",
    ),
    # Group is not enabled, so the REPACK prior from GROUP1 matches on title,
    # episode and the repack flag.
    pytest.param(
        [
            "The Best Show 2020 S04E10 1080p HULU WEB-DL DDP 5.1 SDR H.264-GROUP",
            "The.Best.Show.2020.S04E10.1080p.AMZN.WEB-DL.DDP.5.1.SDR.H.264-GROUP",
            "The.Best.Show.2020.S04E10.Episode.Title.REPACK.1080p.AMZN.WEB-DL.DDP.5.1.HDR.DV.H.264-GROUP1",
        ],
        "The Best Show 2020 S04E10 Episode Title REPACK 1080p AMZN WEB-DL DDP 5.1 DV H.264-GROUP",
        DuplicateReleaseProfile(title=True, season=True, episode=True, repack=True),
        True,
        id="repack-matches-repack-from-any-group",
    ),
    pytest.param(
        _DAILY,
        "The Daily Show 2024-09-21.Other.Guest.1080p.AMZN.WEB-DL.DDP.5.1.H.264-GROUP1",
        DuplicateReleaseProfile(**_DAILY_UNIT),
        True,
        id="daily-same-date",
    ),
    pytest.param(
        _DAILY,
        "The Daily Show 2024-09-21 Other Guest 1080p AMZN WEB-DL DDP 5.1 H.264-GROUP1",
        DuplicateReleaseProfile(**_DAILY_UNIT, sub_title=True),
        False,
        id="daily-other-guest",
    ),
    pytest.param(
        _DAILY,
        "The Daily Show 2024-09-22 Other Guest 1080p AMZN WEB-DL DDP 5.1 H.264-GROUP1",
        DuplicateReleaseProfile(**_DAILY_UNIT, sub_title=True),
        False,
        id="daily-next-date",
    ),
]


def _store_delivered(repo: ReleaseRepository, name: str) -> None:
    release = parse_release_name(name, indexer=MOCK_INDEXER)
    release.filter_id = FILTER_ID
    release_id = repo.store(release)
    repo.store_release_action_status(
        ReleaseActionStatus(
            release_id=release_id,
            status=ReleasePushStatus.APPROVED,
            action="test",
            type=ActionType.TEST,
            filter="Test filter",
            filter_id=FILTER_ID,
        ),
    )


@pytest.mark.parametrize(("priors", "candidate_name", "profile", "expected"), CASES)
def test_duplicate_check_from_announce_names(
    repository: ReleaseRepository,
    priors: list[str],
    candidate_name: str,
    profile: DuplicateReleaseProfile,
    expected: bool,
) -> None:
    for name in priors:
        _store_delivered(repository, name)
    assert repository.find(ReleaseQueryParams()).total_count == len(priors)

    candidate = parse_release_name(candidate_name, indexer=MOCK_INDEXER)
    candidate.filter_id = FILTER_ID

    assert repository.check_is_duplicate_release(profile, candidate) is expected
