"""SQLModel ORM tables for the release store."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Text
from sqlmodel import Field, SQLModel


class ReleaseRow(SQLModel, table=True):
    __tablename__ = "releases"  # type: ignore[bad-override]
    __table_args__ = (
        Index("idx_releases_filter_title", "filter_id", "normalized_title"),
        Index("idx_releases_title_unit", "normalized_title", "season", "episode"),
    )

    id: int | None = Field(default=None, primary_key=True)
    filter_status: str = Field(index=True)
    rejections_json: str = Field(default="[]", sa_column=Column(Text, nullable=False))
    indexer_id: int = 0
    indexer_name: str = ""
    indexer_identifier: str = Field(default="", index=True)
    indexer_identifier_external: str = ""
    filter_id: int = Field(default=0, index=True)
    filter_name: str = ""
    protocol: str
    implementation: str
    timestamp: datetime = Field(
        sa_column=Column(DateTime(timezone=True), index=True, nullable=False),
    )
    info_url: str = ""
    download_url: str = ""
    group_id: str = ""
    torrent_id: str = ""
    torrent_name: str = Field(sa_column=Column(Text, nullable=False))
    normalized_title: str = Field(default="", index=True)
    size: int = 0
    title: str = ""
    sub_title: str = ""
    category: str = ""
    season: int = 0
    episode: int = 0
    year: int = 0
    month: int = 0
    day: int = 0
    resolution: str = ""
    source: str = ""
    codec_json: str = Field(default="[]", sa_column=Column(Text, nullable=False))
    container: str = ""
    hdr_json: str = Field(default="[]", sa_column=Column(Text, nullable=False))
    audio_json: str = Field(default="[]", sa_column=Column(Text, nullable=False))
    audio_channels: str = ""
    release_group: str = ""
    proper: bool = False
    repack: bool = False
    website: str = ""
    type: str = ""
    origin: str = ""
    tags_json: str = Field(default="[]", sa_column=Column(Text, nullable=False))
    uploader: str = ""
    pre_time: str = ""


class ReleaseActionStatusRow(SQLModel, table=True):
    __tablename__ = "release_action_status"  # type: ignore[bad-override]
    __table_args__ = (Index("idx_release_action_status_release_status", "release_id", "status"),)

    id: int | None = Field(default=None, primary_key=True)
    release_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("releases.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
    )
    status: str = Field(index=True)
    action: str
    action_id: int = 0
    type: str
    client: str = ""
    filter: str = ""
    filter_id: int = Field(default=0, index=True)
    rejections_json: str = Field(default="[]", sa_column=Column(Text, nullable=False))
    timestamp: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))


class DuplicateProfileRow(SQLModel, table=True):
    __tablename__ = "release_profile_duplicate"  # type: ignore[bad-override]

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True)
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
    release_group: bool = False
    season: bool = False
    episode: bool = False
    website: bool = False
    proper: bool = False
    repack: bool = False
