"""initial_schema

Create the account linking schema:
- Handshake sessions (short-lived OAuth state, swept by expiry)
- External identities (one row per Discord user, optimistic version)
- Linked accounts (Google accounts per identity, in link order)

Revision ID: 3c1f9a2d7b40
Revises:
Create Date: 2026-10-19 09:12:44.512301

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "3c1f9a2d7b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "handshake_sessions",
        sa.Column("state", sa.String(128), primary_key=True),
        sa.Column("external_id", sa.String(64), nullable=False),
        sa.Column("external_display_name", sa.String(255), nullable=True),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column("expires_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index(
        "idx_handshake_sessions_expires_at", "handshake_sessions", ["expires_at"]
    )

    op.create_table(
        "external_identities",
        sa.Column("external_id", sa.String(64), primary_key=True),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("active_account_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
    )

    op.create_table(
        "linked_accounts",
        sa.Column("account_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "external_id",
            sa.String(64),
            sa.ForeignKey("external_identities.external_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("ordinal", sa.Integer, nullable=False),
        sa.Column("provider_email", sa.String(320), nullable=False),
        sa.Column("linked_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("refreshed_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "external_id", "provider_email", name="uq_linked_accounts_identity_email"
        ),
        sa.UniqueConstraint("external_id", "ordinal", name="uq_linked_accounts_ordinal"),
    )
    op.create_index(
        "idx_linked_accounts_external_id", "linked_accounts", ["external_id"]
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("idx_linked_accounts_external_id", table_name="linked_accounts")
    op.drop_table("linked_accounts")
    op.drop_table("external_identities")
    op.drop_index(
        "idx_handshake_sessions_expires_at", table_name="handshake_sessions"
    )
    op.drop_table("handshake_sessions")
