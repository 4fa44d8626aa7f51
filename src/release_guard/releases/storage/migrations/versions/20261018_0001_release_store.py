"""Release store baseline: releases, action outcomes and duplicate profiles."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "releases",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("filter_status", sa.String(), nullable=False),
        sa.Column("rejections_json", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("indexer_id", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("indexer_name", sa.String(), nullable=False, server_default=""),
        sa.Column("indexer_identifier", sa.String(), nullable=False, server_default=""),
        sa.Column("indexer_identifier_external", sa.String(), nullable=False, server_default=""),
        sa.Column("filter_id", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("filter_name", sa.String(), nullable=False, server_default=""),
        sa.Column("protocol", sa.String(), nullable=False),
        sa.Column("implementation", sa.String(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("info_url", sa.String(), nullable=False, server_default=""),
        sa.Column("download_url", sa.String(), nullable=False, server_default=""),
        sa.Column("group_id", sa.String(), nullable=False, server_default=""),
        sa.Column("torrent_id", sa.String(), nullable=False, server_default=""),
        sa.Column("torrent_name", sa.Text(), nullable=False),
        sa.Column("normalized_title", sa.String(), nullable=False, server_default=""),
        sa.Column("size", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("title", sa.String(), nullable=False, server_default=""),
        sa.Column("sub_title", sa.String(), nullable=False, server_default=""),
        sa.Column("category", sa.String(), nullable=False, server_default=""),
        sa.Column("season", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("episode", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("year", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("month", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("day", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("resolution", sa.String(), nullable=False, server_default=""),
        sa.Column("source", sa.String(), nullable=False, server_default=""),
        sa.Column("codec_json", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("container", sa.String(), nullable=False, server_default=""),
        sa.Column("hdr_json", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("audio_json", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("audio_channels", sa.String(), nullable=False, server_default=""),
        sa.Column("release_group", sa.String(), nullable=False, server_default=""),
        sa.Column("proper", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("repack", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("website", sa.String(), nullable=False, server_default=""),
        sa.Column("type", sa.String(), nullable=False, server_default=""),
        sa.Column("origin", sa.String(), nullable=False, server_default=""),
        sa.Column("tags_json", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("uploader", sa.String(), nullable=False, server_default=""),
        sa.Column("pre_time", sa.String(), nullable=False, server_default=""),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_releases_filter_status", "releases", ["filter_status"])
    op.create_index("ix_releases_indexer_identifier", "releases", ["indexer_identifier"])
    op.create_index("ix_releases_filter_id", "releases", ["filter_id"])
    op.create_index("ix_releases_timestamp", "releases", ["timestamp"])
    op.create_index("ix_releases_normalized_title", "releases", ["normalized_title"])
    op.create_index("idx_releases_filter_title", "releases", ["filter_id", "normalized_title"])
    op.create_index(
        "idx_releases_title_unit",
        "releases",
        ["normalized_title", "season", "episode"],
    )

    op.create_table(
        "release_action_status",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("release_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("action_id", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("client", sa.String(), nullable=False, server_default=""),
        sa.Column("filter", sa.String(), nullable=False, server_default=""),
        sa.Column("filter_id", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rejections_json", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["release_id"], ["releases.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_release_action_status_release_id",
        "release_action_status",
        ["release_id"],
    )
    op.create_index("ix_release_action_status_status", "release_action_status", ["status"])
    op.create_index(
        "ix_release_action_status_filter_id",
        "release_action_status",
        ["filter_id"],
    )
    op.create_index(
        "idx_release_action_status_release_status",
        "release_action_status",
        ["release_id", "status"],
    )

    op.create_table(
        "release_profile_duplicate",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        *[
            sa.Column(switch, sa.Boolean(), nullable=False, server_default=sa.text("0"))
            for switch in (
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
                "release_group",
                "season",
                "episode",
                "website",
                "proper",
                "repack",
            )
        ],
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_release_profile_duplicate_name",
        "release_profile_duplicate",
        ["name"],
        unique=True,
    )


def downgrade() -> None:
    op.drop_index("ix_release_profile_duplicate_name", table_name="release_profile_duplicate")
    op.drop_table("release_profile_duplicate")
    op.drop_table("release_action_status")
    op.drop_table("releases")
