"""Create versions, i18n and workflow tables

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-18

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a1b2c3d4e5f6"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # Create versions table
    op.create_table(
        "versions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("created_by", sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_versions_status", "versions", ["status"], unique=False)

    # Create languages table
    op.create_table(
        "languages",
        sa.Column("locale", sa.String(length=35), nullable=False),
        sa.Column("default", sa.Boolean(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("locale"),
    )

    # Create translation_keys table
    op.create_table(
        "translation_keys",
        sa.Column("key", sa.String(length=255), nullable=False),
        sa.Column("section", sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint("key"),
    )

    # Create translations table
    op.create_table(
        "translations",
        sa.Column("language", sa.String(length=35), nullable=False),
        sa.Column("key", sa.String(length=255), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(["language"], ["languages.locale"], ondelete="CASCADE", onupdate="CASCADE"),
        sa.ForeignKeyConstraint(["key"], ["translation_keys.key"], ondelete="CASCADE", onupdate="CASCADE"),
        sa.PrimaryKeyConstraint("language", "key"),
    )
    op.create_index("idx_translations_key", "translations", ["key"], unique=False)

    # Create workflow_instances table
    op.create_table(
        "workflow_instances",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("workflow", sa.String(length=50), nullable=False),
        sa.Column("params", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("error_type", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_workflow_instances_workflow", "workflow_instances", ["workflow"], unique=False)
    op.create_index("ix_workflow_instances_status", "workflow_instances", ["status"], unique=False)

    # Create workflow_steps table
    op.create_table(
        "workflow_steps",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("instance_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("result", sa.Text(), nullable=True),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["instance_id"], ["workflow_instances.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("instance_id", "name", name="uq_workflow_step_name"),
    )


def downgrade() -> None:
    op.drop_table("workflow_steps")
    op.drop_index("ix_workflow_instances_status", table_name="workflow_instances")
    op.drop_index("ix_workflow_instances_workflow", table_name="workflow_instances")
    op.drop_table("workflow_instances")
    op.drop_index("idx_translations_key", table_name="translations")
    op.drop_table("translations")
    op.drop_table("translation_keys")
    op.drop_table("languages")
    op.drop_index("ix_versions_status", table_name="versions")
    op.drop_table("versions")
