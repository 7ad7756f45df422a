"""Create portfolio, project, section and media tables."""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

revision: str = "20261018_0002"
down_revision: str | None = "20261018_0001"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=False)


def _order() -> sa.Column:
    return sa.Column("order", sa.Integer(), server_default=sa.text("0"), nullable=False)


def _portfolio_fk() -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(["portfolio_id"], ["portfolios.id"], ondelete="CASCADE")


def upgrade() -> None:
    op.create_table(
        "portfolios",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("owner_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("theme", sa.String(length=100), nullable=False),
        sa.Column("layout", sa.String(length=100), nullable=False),
        sa.Column(
            "type",
            sa.String(length=16),
            server_default=sa.text("'portfolio'"),
            nullable=False,
        ),
        sa.Column("subdomain", sa.String(length=63), nullable=False),
        sa.Column("custom_domain", sa.String(length=255), nullable=True),
        sa.Column(
            "is_published",
            sa.Boolean(),
            server_default=sa.text("false"),
            nullable=False,
        ),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_portfolios_owner_id", "portfolios", ["owner_id"], unique=False)
    # Final authority for subdomain uniqueness under concurrent writers.
    op.create_index("ix_portfolios_subdomain", "portfolios", ["subdomain"], unique=True)

    op.create_table(
        "portfolio_projects",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("portfolio_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        _order(),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _portfolio_fk(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_portfolio_projects_portfolio_created",
        "portfolio_projects",
        ["portfolio_id", "created_at"],
        unique=False,
    )

    op.create_table(
        "portfolio_sections",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("portfolio_id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _order(),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _portfolio_fk(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_portfolio_sections_portfolio_created",
        "portfolio_sections",
        ["portfolio_id", "created_at"],
        unique=False,
    )

    op.create_table(
        "project_media",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("portfolio_id", sa.String(length=36), nullable=False),
        sa.Column("project_id", sa.String(length=36), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("url", sa.String(length=512), nullable=False),
        sa.Column("caption", sa.Text(), server_default=sa.text("''"), nullable=False),
        _order(),
        _timestamp("created_at"),
        _portfolio_fk(),
        sa.ForeignKeyConstraint(
            ["project_id"],
            ["portfolio_projects.id"],
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_project_media_project_created",
        "project_media",
        ["project_id", "created_at"],
        unique=False,
    )
    op.create_index("ix_project_media_portfolio_id", "project_media", ["portfolio_id"], unique=False)
    op.create_index("ix_project_media_url", "project_media", ["url"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_project_media_url", table_name="project_media")
    op.drop_index("ix_project_media_portfolio_id", table_name="project_media")
    op.drop_index("ix_project_media_project_created", table_name="project_media")
    op.drop_table("project_media")
    op.drop_index("ix_portfolio_sections_portfolio_created", table_name="portfolio_sections")
    op.drop_table("portfolio_sections")
    op.drop_index("ix_portfolio_projects_portfolio_created", table_name="portfolio_projects")
    op.drop_table("portfolio_projects")
    op.drop_index("ix_portfolios_subdomain", table_name="portfolios")
    op.drop_index("ix_portfolios_owner_id", table_name="portfolios")
    op.drop_table("portfolios")
