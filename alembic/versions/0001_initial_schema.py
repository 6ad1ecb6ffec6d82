"""initial schema: articles, headings, article_files

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "articles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(300), nullable=False, unique=True),
        sa.Column("slug", sa.String(350), nullable=False, unique=True),
        sa.Column("cover_image_url", sa.String(500), nullable=True),
        sa.Column("author_username", sa.String(150), nullable=False),
        sa.Column("content_markdown", sa.Text(), nullable=False),
        sa.Column("event_start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("event_end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_published", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_articles_slug", "articles", ["slug"])
    op.create_index("ix_articles_event_start_date", "articles", ["event_start_date"])
    op.create_index("ix_articles_event_end_date", "articles", ["event_end_date"])

    op.create_table(
        "headings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column(
            "article_id",
            sa.Integer(),
            sa.ForeignKey("articles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.UniqueConstraint("title", "article_id", name="uq_heading_title_per_article"),
    )
    op.create_index("ix_headings_article_id", "headings", ["article_id"])

    op.create_table(
        "article_files",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "article_id",
            sa.Integer(),
            sa.ForeignKey("articles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("path", sa.String(500), nullable=False),
        sa.Column("original_name", sa.String(255), nullable=False, unique=True),
    )
    op.create_index("ix_article_files_article_id", "article_files", ["article_id"])


def downgrade() -> None:
    op.drop_index("ix_article_files_article_id", table_name="article_files")
    op.drop_table("article_files")
    op.drop_index("ix_headings_article_id", table_name="headings")
    op.drop_table("headings")
    op.drop_index("ix_articles_event_end_date", table_name="articles")
    op.drop_index("ix_articles_event_start_date", table_name="articles")
    op.drop_index("ix_articles_slug", table_name="articles")
    op.drop_table("articles")
