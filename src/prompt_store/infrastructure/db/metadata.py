"""SQLAlchemy metadata definitions for prompt store tables."""

from __future__ import annotations

import sqlalchemy as sa

metadata = sa.MetaData()

prompt_templates = sa.Table(
    "prompt_templates",
    metadata,
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

sa.Index("ix_prompt_templates_name_state", prompt_templates.c.name, prompt_templates.c.state)
sa.Index(
    "ux_prompt_templates_name_production",
    prompt_templates.c.name,
    unique=True,
    sqlite_where=sa.text("state = 'production'"),
    postgresql_where=sa.text("state = 'production'"),
)

prompt_template_version_counters = sa.Table(
    "prompt_template_version_counters",
    metadata,
    sa.Column("name", sa.Text(), primary_key=True, nullable=False),
    sa.Column("last_version", sa.Integer(), nullable=False),
    sa.CheckConstraint(
        "last_version > 0",
        name="ck_prompt_template_version_counters_positive",
    ),
)
