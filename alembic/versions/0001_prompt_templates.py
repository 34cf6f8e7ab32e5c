"""Create prompt_templates with lifecycle state and per-name version counters."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_prompt_templates"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "prompt_templates",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("state", sa.Text(), nullable=False, server_default=sa.text("'draft'")),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("config", sa.JSON(), nullable=False),
        sa.Column("commit_message", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.UniqueConstraint("name", "version", name="uq_prompt_templates_name_version"),
        sa.CheckConstraint("version > 0", name="ck_prompt_templates_version_positive"),
        sa.CheckConstraint(
            "state IN ('draft', 'production', 'archived')",
            name="ck_prompt_templates_state",
        ),
    )

    op.create_index(
        "ix_prompt_templates_name_state",
        "prompt_templates",
        ["name", "state"],
        unique=False,
    )
    op.create_index(
        "ux_prompt_templates_name_production",
        "prompt_templates",
        ["name"],
        unique=True,
        sqlite_where=sa.text("state = 'production'"),
        postgresql_where=sa.text("state = 'production'"),
    )

    op.create_table(
        "prompt_template_version_counters",
        sa.Column("name", sa.Text(), primary_key=True, nullable=False),
        sa.Column("last_version", sa.Integer(), nullable=False),
        sa.CheckConstraint(
            "last_version > 0",
            name="ck_prompt_template_version_counters_positive",
        ),
    )


def downgrade() -> None:
    op.drop_table("prompt_template_version_counters")
    op.drop_index("ux_prompt_templates_name_production", table_name="prompt_templates")
    op.drop_index("ix_prompt_templates_name_state", table_name="prompt_templates")
    op.drop_table("prompt_templates")
