"""Create quote approval tables (customers, staff users, quotes, artwork, audit, analytics)

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def table_exists(table_name):
    from sqlalchemy import inspect
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def upgrade():
    if not table_exists("customers"):
        op.create_table(
            "customers",
            sa.Column("id", sa.Integer(), primary_key=True, index=True),
            sa.Column("contact_name", sa.String(150), nullable=False),
            sa.Column("company_name", sa.String(200)),
            sa.Column("email", sa.String(255), index=True),
            sa.Column("phone", sa.String(30)),
            sa.Column("notes", sa.Text()),
            sa.Column("is_active", sa.Boolean(), default=True),
            sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime()),
        )

    if not table_exists("api_users"):
        op.create_table(
            "api_users",
            sa.Column("id", sa.Integer(), primary_key=True, index=True),
            sa.Column("email", sa.String(255), nullable=False, unique=True, index=True),
            sa.Column("hashed_password", sa.String(255), nullable=False),
            sa.Column("first_name", sa.String(100)),
            sa.Column("last_name", sa.String(100)),
            sa.Column("role", sa.String(20), nullable=False, server_default="ADMIN"),
            sa.Column("is_active", sa.Boolean(), default=True),
            sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime()),
        )

    if not table_exists("quotes"):
        op.create_table(
            "quotes",
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column("quote_number", sa.String(50), nullable=False, unique=True, index=True),
            sa.Column("access_token", sa.String(128), unique=True, index=True),
            sa.Column("artwork_token", sa.String(128), unique=True, index=True),
            sa.Column("status", sa.String(30), nullable=False, server_default="DRAFT", index=True),
            sa.Column("title", sa.String(255)),
            sa.Column("notes", sa.Text()),
            sa.Column("internal_notes", sa.Text()),
            sa.Column(
                "customer_id", sa.Integer(),
                sa.ForeignKey("customers.id", ondelete="SET NULL"), index=True,
            ),
            sa.Column("customer_name", sa.String(150)),
            sa.Column("customer_company", sa.String(200)),
            sa.Column("customer_email", sa.String(255)),
            sa.Column(
                "owner_id", sa.Integer(),
                sa.ForeignKey("api_users.id", ondelete="SET NULL"), index=True,
            ),
            sa.Column("line_items", sa.JSON(), nullable=False),
            sa.Column("subtotal", sa.Numeric(10, 2), nullable=False, server_default="0"),
            sa.Column("discount", sa.Numeric(10, 2), nullable=False, server_default="0"),
            sa.Column("tax", sa.Numeric(10, 2), nullable=False, server_default="0"),
            sa.Column("shipping", sa.Numeric(10, 2), nullable=False, server_default="0"),
            sa.Column("total", sa.Numeric(10, 2), nullable=False, server_default="0"),
            sa.Column("valid_until", sa.DateTime()),
            sa.Column("requested_delivery", sa.DateTime()),
            sa.Column("sent_at", sa.DateTime()),
            sa.Column("approved_at", sa.DateTime()),
            sa.Column("declined_at", sa.DateTime()),
            # Artwork proof
            sa.Column("artwork_required", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("artwork_url", sa.String(1000)),
            sa.Column("artwork_file_name", sa.String(255)),
            sa.Column("artwork_version", sa.Integer(), nullable=False, server_default="1"),
            sa.Column("artwork_sent_at", sa.DateTime()),
            sa.Column("artwork_approved_at", sa.DateTime()),
            sa.Column("artwork_declined_at", sa.DateTime()),
            sa.Column("artwork_notes", sa.Text()),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
            sa.Column("last_modified_at", sa.DateTime()),
        )
        op.create_index("idx_quotes_customer_status", "quotes", ["customer_id", "status"])
        op.create_index("idx_quotes_created_at", "quotes", ["created_at"])

    if not table_exists("artwork_versions"):
        op.create_table(
            "artwork_versions",
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column(
                "quote_id", sa.String(36),
                sa.ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, index=True,
            ),
            sa.Column("version", sa.Integer(), nullable=False),
            sa.Column("url", sa.String(1000), nullable=False),
            sa.Column("file_name", sa.String(255), nullable=False),
            sa.Column("status", sa.String(20), nullable=False),
            sa.Column("sent_at", sa.DateTime()),
            sa.Column("approved_at", sa.DateTime()),
            sa.Column("declined_at", sa.DateTime()),
            sa.Column("customer_notes", sa.Text()),
            sa.Column("uploaded_by_id", sa.Integer()),
            sa.Column("uploaded_by_name", sa.String(200)),
            sa.Column("uploaded_by_email", sa.String(255)),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )

    # No FK to quotes: the trail outlives a deleted quote
    if not table_exists("quote_audit_log"):
        op.create_table(
            "quote_audit_log",
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column("quote_id", sa.String(36), nullable=False, index=True),
            sa.Column("action", sa.String(40), nullable=False, index=True),
            sa.Column("description", sa.Text()),
            sa.Column("actor_type", sa.String(20), nullable=False, server_default="SYSTEM"),
            sa.Column("actor_id", sa.String(50)),
            sa.Column("actor_name", sa.String(200)),
            sa.Column("actor_email", sa.String(255)),
            sa.Column("previous_value", sa.JSON()),
            sa.Column("new_value", sa.JSON()),
            sa.Column("metadata", sa.JSON()),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        )
        op.create_index("ix_quote_audit_quote_created", "quote_audit_log", ["quote_id", "created_at"])

    if not table_exists("entity_activity"):
        op.create_table(
            "entity_activity",
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column("entity_type", sa.String(30), nullable=False, index=True),
            sa.Column("entity_id", sa.String(50), nullable=False, index=True),
            sa.Column("activity_type", sa.String(30), nullable=False),
            sa.Column("user_id", sa.Integer()),
            sa.Column("session_id", sa.String(50)),
            sa.Column("ip_address", sa.String(45)),
            sa.Column("old_value", sa.JSON()),
            sa.Column("new_value", sa.JSON()),
            sa.Column("metadata", sa.JSON()),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now(), index=True),
        )
        op.create_index("ix_entity_activity_entity", "entity_activity", ["entity_type", "entity_id"])

    if not table_exists("quote_funnel_events"):
        op.create_table(
            "quote_funnel_events",
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column("stage", sa.String(30), nullable=False, index=True),
            sa.Column("session_id", sa.String(50)),
            sa.Column("quote_id", sa.String(36), index=True),
            sa.Column("customer_id", sa.Integer()),
            sa.Column("product_ids", sa.JSON()),
            sa.Column("metadata", sa.JSON()),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now(), index=True),
        )
        op.create_index("ix_quote_funnel_stage_created", "quote_funnel_events", ["stage", "created_at"])

    if not table_exists("notification_log"):
        op.create_table(
            "notification_log",
            sa.Column("id", sa.String(36), primary_key=True),
            sa.Column("type", sa.String(50), nullable=False, index=True),
            sa.Column("channel", sa.String(20), nullable=False, server_default="EMAIL"),
            sa.Column("recipient", sa.String(255), nullable=False),
            sa.Column("subject", sa.String(500)),
            sa.Column("status", sa.String(20), nullable=False),
            sa.Column("error", sa.Text()),
            sa.Column("context", sa.JSON()),
            sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now(), index=True),
        )


def downgrade():
    op.drop_table("notification_log")
    op.drop_table("quote_funnel_events")
    op.drop_table("entity_activity")
    op.drop_table("quote_audit_log")
    op.drop_table("artwork_versions")
    op.drop_table("quotes")
    op.drop_table("api_users")
    op.drop_table("customers")
