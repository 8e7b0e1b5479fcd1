"""initial_policy_store

Revision ID: 5f3a9c2e7b10
Revises:
Create Date: 2026-10-17 09:12:44.318207

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5f3a9c2e7b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Upgrade schema - roles, permissions, grants, policies, executions, audit, settings."""

    # Create role table
    op.create_table(
        "role",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("role_type", sa.String(), nullable=False, server_default="custom"),
        sa.Column("parent_role_id", sa.String(), nullable=True),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default="false"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["parent_role_id"], ["role.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_role_organization_id", "role", ["organization_id"])
    op.create_index("ix_role_parent_role_id", "role", ["parent_role_id"])

    # Create permission table
    op.create_table(
        "permission",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("role_id", sa.String(), nullable=False),
        sa.Column("scope", sa.String(), nullable=False),
        sa.Column("resource", sa.String(), nullable=False),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("is_allow", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("conditions", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["role_id"], ["role.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_permission_role_id", "permission", ["role_id"])
    op.create_index("ix_permission_resource_action", "permission", ["resource", "action"])

    # Create user_role table
    op.create_table(
        "user_role",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("role_id", sa.String(), nullable=False),
        sa.Column("granted_by", sa.String(), nullable=False),
        sa.Column(
            "granted_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("is_temporary", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approval_status", sa.String(), nullable=False, server_default="approved"),
        sa.Column("approval_reason", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["role_id"], ["role.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "role_id", name="uq_user_role"),
    )
    op.create_index("ix_user_role_lookup", "user_role", ["user_id", "approval_status"])

    # Create group_role table
    op.create_table(
        "group_role",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("group_id", sa.String(), nullable=False),
        sa.Column("role_id", sa.String(), nullable=False),
        sa.Column("granted_by", sa.String(), nullable=False),
        sa.Column(
            "granted_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["role_id"], ["role.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("group_id", "role_id", name="uq_group_role"),
    )
    op.create_index("ix_group_role_group_id", "group_role", ["group_id"])

    # Create rbac_policy table (permission bundles and templates)
    op.create_table(
        "rbac_policy",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_template", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("permissions", sa.JSON(), nullable=True),
        sa.Column("conditions", sa.JSON(), nullable=True),
        sa.Column("created_by", sa.String(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_rbac_policy_organization_id", "rbac_policy", ["organization_id"])

    # Create query_risk_policy table
    op.create_table(
        "query_risk_policy",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("organization_id", sa.String(), nullable=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("policy_type", sa.String(), nullable=False),
        sa.Column("pattern", sa.Text(), nullable=True),
        sa.Column("blocked_keywords", sa.JSON(), nullable=True),
        sa.Column("restricted_tables", sa.JSON(), nullable=True),
        sa.Column("risk_score", sa.Integer(), nullable=False, server_default="50"),
        sa.Column("action", sa.String(), nullable=False, server_default="warn"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("connection_id", sa.String(), nullable=True),
        sa.Column("created_by", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_query_risk_policy_organization_id", "query_risk_policy", ["organization_id"]
    )
    op.create_index("ix_query_risk_policy_connection_id", "query_risk_policy", ["connection_id"])
    op.create_index(
        "ix_query_risk_policy_active", "query_risk_policy", ["is_active", "risk_score"]
    )

    # Create query_execution table
    op.create_table(
        "query_execution",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("raw_query", sa.Text(), nullable=False),
        sa.Column("executed_by", sa.String(), nullable=False),
        sa.Column("connection_id", sa.String(), nullable=False),
        sa.Column("connection_name", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("row_count", sa.Integer(), nullable=True),
        sa.Column("duration_ms", sa.Integer(), nullable=True),
        sa.Column("risk_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("blocked_reason", sa.Text(), nullable=True),
        sa.Column("blocked_by_policy_id", sa.String(), nullable=True),
        sa.Column(
            "executed_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_query_execution_executed_by", "query_execution", ["executed_by"])
    op.create_index("ix_query_execution_connection_id", "query_execution", ["connection_id"])
    op.create_index("ix_query_execution_status", "query_execution", ["status"])
    op.create_index("ix_query_execution_executed_at", "query_execution", ["executed_at"])

    # Create audit_log table
    op.create_table(
        "audit_log",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("category", sa.String(), nullable=False, server_default="query"),
        sa.Column("connection_id", sa.String(), nullable=True),
        sa.Column("connection_name", sa.String(), nullable=True),
        sa.Column("query", sa.Text(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("row_count", sa.Integer(), nullable=True),
        sa.Column("duration_ms", sa.Integer(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("executed_by", sa.String(), nullable=True),
        sa.Column("organization_id", sa.String(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column(
            "executed_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_log_connection_id", "audit_log", ["connection_id"])
    op.create_index("ix_audit_log_executed_by", "audit_log", ["executed_by"])
    op.create_index("ix_audit_log_organization_id", "audit_log", ["organization_id"])

    # Create db_connection table
    op.create_table(
        "db_connection",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("db_type", sa.String(), nullable=False, server_default="postgres"),
        sa.Column("host", sa.String(), nullable=False),
        sa.Column("port", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(), nullable=False),
        sa.Column("password", sa.String(), nullable=False, server_default=""),
        sa.Column("database", sa.String(), nullable=False),
        sa.Column("created_by", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    # Create security_settings table (one row per organization)
    op.create_table(
        "security_settings",
        sa.Column("organization_id", sa.String(), nullable=False),
        sa.Column(
            "enable_sql_injection_check", sa.Boolean(), nullable=False, server_default="true"
        ),
        sa.Column("enable_ddl_block", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("enable_dml_block", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("max_result_rows", sa.Integer(), nullable=True),
        sa.Column("blocked_keywords", sa.Text(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("organization_id"),
    )


def downgrade() -> None:
    """Downgrade schema - drop every policy-store table."""

    op.drop_table("security_settings")
    op.drop_table("db_connection")

    op.drop_index("ix_audit_log_organization_id", "audit_log")
    op.drop_index("ix_audit_log_executed_by", "audit_log")
    op.drop_index("ix_audit_log_connection_id", "audit_log")
    op.drop_table("audit_log")

    op.drop_index("ix_query_execution_executed_at", "query_execution")
    op.drop_index("ix_query_execution_status", "query_execution")
    op.drop_index("ix_query_execution_connection_id", "query_execution")
    op.drop_index("ix_query_execution_executed_by", "query_execution")
    op.drop_table("query_execution")

    op.drop_index("ix_query_risk_policy_active", "query_risk_policy")
    op.drop_index("ix_query_risk_policy_connection_id", "query_risk_policy")
    op.drop_index("ix_query_risk_policy_organization_id", "query_risk_policy")
    op.drop_table("query_risk_policy")

    op.drop_index("ix_rbac_policy_organization_id", "rbac_policy")
    op.drop_table("rbac_policy")

    op.drop_index("ix_group_role_group_id", "group_role")
    op.drop_table("group_role")

    op.drop_index("ix_user_role_lookup", "user_role")
    op.drop_table("user_role")

    op.drop_index("ix_permission_resource_action", "permission")
    op.drop_index("ix_permission_role_id", "permission")
    op.drop_table("permission")

    op.drop_index("ix_role_parent_role_id", "role")
    op.drop_index("ix_role_organization_id", "role")
    op.drop_table("role")
