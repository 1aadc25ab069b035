"""initial site builder schema

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "3f1c2a9d7b10"
down_revision = None
branch_labels = None
depends_on = None

# byte-order comparison on Postgres so ORDER BY matches Python str ordering
ORDER_KEY = sa.String().with_variant(sa.String(collation="C"), "postgresql")


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "tenants",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("owner_user_id", sa.Uuid(), nullable=False),
        sa.Column("plan", sa.String(length=30), nullable=False, server_default="starter"),
        sa.Column("subscription_status", sa.String(length=30), nullable=True),
        sa.Column("subscription_plan", sa.String(length=30), nullable=True),
        sa.Column("trial_ends_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["owner_user_id"], ["users.id"], name="fk_tenants_owner_user_id_users", ondelete="RESTRICT"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_tenants"),
    )

    op.create_table(
        "tenant_memberships",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="viewer"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["tenant_id"], ["tenants.id"], name="fk_tenant_memberships_tenant_id_tenants", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name="fk_tenant_memberships_user_id_users", ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_tenant_memberships"),
        sa.UniqueConstraint("tenant_id", "user_id", name="uq_tenant_memberships_tenant_user"),
    )

    op.create_table(
        "websites",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("subdomain", sa.String(length=40), nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_published_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["tenant_id"], ["tenants.id"], name="fk_websites_tenant_id_tenants", ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_websites"),
        sa.UniqueConstraint("subdomain", name="uq_websites_subdomain"),
    )
    op.create_index("ix_websites_tenant_id", "websites", ["tenant_id"])

    op.create_table(
        "pages",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("website_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("slug", sa.String(length=200), nullable=False),
        sa.Column("is_home", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("seo_title", sa.String(length=200), nullable=True),
        sa.Column("seo_description", sa.Text(), nullable=True),
        sa.Column("order_key", ORDER_KEY, nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["website_id"], ["websites.id"], name="fk_pages_website_id_websites", ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_pages"),
        sa.UniqueConstraint("website_id", "order_key", name="uq_pages_website_order_key"),
        sa.UniqueConstraint("website_id", "slug", name="uq_pages_website_slug"),
    )
    op.create_index("ix_pages_website_id", "pages", ["website_id"])
    op.create_index(
        "uq_pages_website_home",
        "pages",
        ["website_id"],
        unique=True,
        postgresql_where=sa.text("is_home IS true"),
        sqlite_where=sa.text("is_home IS 1"),
    )

    op.create_table(
        "site_components",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("page_id", sa.Uuid(), nullable=False),
        sa.Column("component_type", sa.String(length=40), nullable=False),
        sa.Column("props", sa.JSON(), nullable=False),
        sa.Column("is_visible", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("order_key", ORDER_KEY, nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["page_id"], ["pages.id"], name="fk_site_components_page_id_pages", ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id", name="pk_site_components"),
        sa.UniqueConstraint("page_id", "order_key", name="uq_site_components_page_order_key"),
    )
    op.create_index("ix_site_components_page_id", "site_components", ["page_id"])


def downgrade() -> None:
    op.drop_index("ix_site_components_page_id", table_name="site_components")
    op.drop_table("site_components")
    op.drop_index("uq_pages_website_home", table_name="pages")
    op.drop_index("ix_pages_website_id", table_name="pages")
    op.drop_table("pages")
    op.drop_index("ix_websites_tenant_id", table_name="websites")
    op.drop_table("websites")
    op.drop_table("tenant_memberships")
    op.drop_table("tenants")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
