"""initial cms schema: programs, terms, lessons

Revision ID: 001
Revises:
Create Date: 2026-01-09 12:28:40.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    program_status = postgresql.ENUM(
        "draft", "published", "archived", name="program_status", create_type=False,
    )
    lesson_status = postgresql.ENUM(
        "draft", "scheduled", "published", name="lesson_status", create_type=False,
    )
    content_type = postgresql.ENUM(
        "video", "article", name="content_type", create_type=False,
    )
    op.execute("CREATE TYPE program_status AS ENUM ('draft', 'published', 'archived')")
    op.execute("CREATE TYPE lesson_status AS ENUM ('draft', 'scheduled', 'published')")
    op.execute("CREATE TYPE content_type AS ENUM ('video', 'article')")

    # ── programs ─────────────────────────────────────────────────────────
    op.create_table(
        "programs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("language_primary", sa.String(length=16), nullable=False),
        sa.Column(
            "languages_available", postgresql.JSONB(astext_type=sa.Text()),
            nullable=False, server_default="[]",
        ),
        sa.Column("status", program_status, nullable=False, server_default="draft"),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "ix_programs_status_language_published", "programs",
        ["status", "language_primary", "published_at"],
    )

    # ── terms ────────────────────────────────────────────────────────────
    op.create_table(
        "terms",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "program_id", sa.Uuid(),
            sa.ForeignKey("programs.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("term_number", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("program_id", "term_number", name="uq_terms_program_term_number"),
    )
    op.create_index("ix_terms_program_id", "terms", ["program_id"])

    # ── lessons ──────────────────────────────────────────────────────────
    op.create_table(
        "lessons",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "term_id", sa.Uuid(),
            sa.ForeignKey("terms.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("lesson_number", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("content_type", content_type, nullable=False, server_default="video"),
        sa.Column("duration_ms", sa.Integer(), nullable=True),
        sa.Column("is_paid", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("status", lesson_status, nullable=False, server_default="draft"),
        sa.Column("publish_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "content_urls_by_language", postgresql.JSONB(astext_type=sa.Text()),
            nullable=False, server_default="{}",
        ),
        sa.Column(
            "subtitle_urls_by_language", postgresql.JSONB(astext_type=sa.Text()),
            nullable=False, server_default="{}",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("term_id", "lesson_number", name="uq_lessons_term_lesson_number"),
    )
    # Publisher selection: status = 'scheduled' AND publish_at <= now()
    op.create_index("ix_lessons_status_publish_at", "lessons", ["status", "publish_at"])
    op.create_index("ix_lessons_term_id", "lessons", ["term_id"])


def downgrade() -> None:
    op.drop_index("ix_lessons_term_id", table_name="lessons")
    op.drop_index("ix_lessons_status_publish_at", table_name="lessons")
    op.drop_table("lessons")
    op.drop_index("ix_terms_program_id", table_name="terms")
    op.drop_table("terms")
    op.drop_index("ix_programs_status_language_published", table_name="programs")
    op.drop_table("programs")
    op.execute("DROP TYPE IF EXISTS content_type")
    op.execute("DROP TYPE IF EXISTS lesson_status")
    op.execute("DROP TYPE IF EXISTS program_status")
