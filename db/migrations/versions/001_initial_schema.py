"""Initial schema: crm entities, duplicate suggestions, obs audit log.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _uuid(name: str, **kwargs) -> sa.Column:
    return sa.Column(name, postgresql.UUID(as_uuid=True), **kwargs)


def _timestamp(name: str) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))


def upgrade() -> None:
    op.execute("CREATE SCHEMA IF NOT EXISTS crm")
    op.execute("CREATE SCHEMA IF NOT EXISTS obs")

    # ─── CRM Schema ──────────────────────────────────────────────────────────

    op.create_table(
        "organizations",
        _uuid("id", primary_key=True),
        _uuid("tenant_id", nullable=False),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("website", sa.Text, nullable=True),
        sa.Column("street", sa.Text, nullable=True),
        sa.Column("city", sa.Text, nullable=True),
        sa.Column("zip", sa.Text, nullable=True),
        sa.Column("country", sa.Text, nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        schema="crm",
    )
    op.create_index("ix_org_tenant", "organizations", ["tenant_id"], schema="crm")

    op.create_table(
        "contacts",
        _uuid("id", primary_key=True),
        _uuid("tenant_id", nullable=False),
        sa.Column("first_name", sa.Text, nullable=False),
        sa.Column("last_name", sa.Text, nullable=False),
        sa.Column("job_title", sa.Text, nullable=True),
        _uuid("primary_organization_id", nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(
            ["primary_organization_id"], ["crm.organizations.id"], name="fk_contact_org"
        ),
        schema="crm",
    )
    op.create_index("ix_contact_tenant", "contacts", ["tenant_id"], schema="crm")

    op.create_table(
        "contact_emails",
        _uuid("id", primary_key=True),
        _uuid("contact_id", nullable=False),
        sa.Column("email", sa.Text, nullable=False),
        sa.Column("is_primary", sa.Boolean, nullable=False, server_default="false"),
        sa.ForeignKeyConstraint(
            ["contact_id"], ["crm.contacts.id"], name="fk_contact_email_contact", ondelete="CASCADE"
        ),
        schema="crm",
    )
    op.create_index(
        "ix_crm_contact_emails_contact_id", "contact_emails", ["contact_id"], schema="crm"
    )

    op.create_table(
        "deals",
        _uuid("id", primary_key=True),
        _uuid("tenant_id", nullable=False),
        sa.Column("title", sa.Text, nullable=False),
        _uuid("organization_id", nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("stage", sa.Text, nullable=True),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["organization_id"], ["crm.organizations.id"], name="fk_deal_org"),
        schema="crm",
    )
    op.create_index("ix_crm_deals_organization_id", "deals", ["organization_id"], schema="crm")

    op.create_table(
        "deal_contacts",
        _uuid("deal_id", primary_key=True),
        _uuid("contact_id", primary_key=True),
        sa.ForeignKeyConstraint(
            ["deal_id"], ["crm.deals.id"], name="fk_deal_contact_deal", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["contact_id"], ["crm.contacts.id"], name="fk_deal_contact_contact"),
        schema="crm",
    )

    op.create_table(
        "activities",
        _uuid("id", primary_key=True),
        _uuid("tenant_id", nullable=False),
        sa.Column("subject", sa.Text, nullable=False),
        _uuid("related_organization_id", nullable=True),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(
            ["related_organization_id"], ["crm.organizations.id"], name="fk_activity_org"
        ),
        schema="crm",
    )
    op.create_index(
        "ix_crm_activities_related_organization_id",
        "activities",
        ["related_organization_id"],
        schema="crm",
    )

    op.create_table(
        "activity_contacts",
        _uuid("activity_id", primary_key=True),
        _uuid("contact_id", primary_key=True),
        sa.ForeignKeyConstraint(
            ["activity_id"], ["crm.activities.id"], name="fk_activity_contact_activity", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["contact_id"], ["crm.contacts.id"], name="fk_activity_contact_contact"
        ),
        schema="crm",
    )

    op.create_table(
        "notes",
        _uuid("id", primary_key=True),
        _uuid("tenant_id", nullable=False),
        sa.Column("entity_type", sa.Text, nullable=False),
        _uuid("entity_id", nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        _timestamp("created_at"),
        sa.CheckConstraint(
            "entity_type IN ('ORGANIZATION', 'CONTACT')", name="ck_note_entity_type"
        ),
        schema="crm",
    )
    op.create_index("ix_note_entity", "notes", ["entity_type", "entity_id"], schema="crm")

    op.create_table(
        "duplicate_suggestions",
        _uuid("id", primary_key=True),
        _uuid("tenant_id", nullable=False),
        sa.Column("entity_type", sa.Text, nullable=False),
        _uuid("entity_id1", nullable=False),
        _uuid("entity_id2", nullable=False),
        sa.Column("similarity_score", sa.Float, nullable=False),
        sa.Column("status", sa.Text, nullable=False, server_default="PENDING"),
        _uuid("reviewed_by_user_id", nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        _timestamp("created_at"),
        sa.CheckConstraint(
            "entity_type IN ('ORGANIZATION', 'CONTACT')", name="ck_suggestion_entity_type"
        ),
        sa.CheckConstraint(
            "status IN ('PENDING', 'MERGED', 'DISMISSED')", name="ck_suggestion_status"
        ),
        sa.CheckConstraint("entity_id1 < entity_id2", name="ck_suggestion_pair_order"),
        sa.CheckConstraint(
            "similarity_score >= 0 AND similarity_score <= 1", name="ck_suggestion_score_range"
        ),
        schema="crm",
    )
    # At most one live suggestion per unordered pair
    op.create_index(
        "uq_suggestion_pending_pair",
        "duplicate_suggestions",
        ["tenant_id", "entity_type", "entity_id1", "entity_id2"],
        unique=True,
        schema="crm",
        postgresql_where=sa.text("status = 'PENDING'"),
    )
    op.create_index(
        "ix_suggestion_tenant_type_status",
        "duplicate_suggestions",
        ["tenant_id", "entity_type", "status"],
        schema="crm",
    )

    # ─── OBS Schema ──────────────────────────────────────────────────────────

    op.create_table(
        "audit_logs",
        _uuid("id", primary_key=True),
        _uuid("tenant_id", nullable=False),
        _uuid("user_id", nullable=True),
        sa.Column("entity_type", sa.Text, nullable=False),
        _uuid("entity_id", nullable=False),
        sa.Column("action", sa.Text, nullable=False),
        sa.Column("before_data", sa.JSON, nullable=True),
        sa.Column("after_data", sa.JSON, nullable=True),
        _timestamp("created_at"),
        schema="obs",
    )
    op.create_index("ix_obs_audit_logs_tenant_id", "audit_logs", ["tenant_id"], schema="obs")


def downgrade() -> None:
    op.drop_index("ix_obs_audit_logs_tenant_id", table_name="audit_logs", schema="obs")
    op.drop_table("audit_logs", schema="obs")
    # Drop in reverse dependency order
    op.drop_index("ix_suggestion_tenant_type_status", table_name="duplicate_suggestions", schema="crm")
    op.drop_index("uq_suggestion_pending_pair", table_name="duplicate_suggestions", schema="crm")
    op.drop_table("duplicate_suggestions", schema="crm")
    op.drop_table("notes", schema="crm")
    op.drop_table("activity_contacts", schema="crm")
    op.drop_table("activities", schema="crm")
    op.drop_table("deal_contacts", schema="crm")
    op.drop_table("deals", schema="crm")
    op.drop_table("contact_emails", schema="crm")
    op.drop_table("contacts", schema="crm")
    op.drop_table("organizations", schema="crm")
