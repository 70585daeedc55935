"""SQLAlchemy table definitions for account linking.

These tables are used with SQLAlchemy Core; rows are mapped to the domain
models by hand in ``snapcal.persistence.mappers``. They match the schema
defined in the Alembic migrations.
"""

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

# Metadata object for all tables
metadata = MetaData()

# ============================================================================
# HANDSHAKE SESSIONS TABLE (In-flight OAuth handshakes)
# ============================================================================
handshake_sessions_table = Table(
    "handshake_sessions",
    metadata,
    Column("state", String(128), primary_key=True),  # Unguessable OAuth state
    Column("external_id", String(64), nullable=False),  # Discord user id
    Column("external_display_name", String(255), nullable=True),
    Column(
        "created_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    Column("expires_at", TIMESTAMP(timezone=True), nullable=False),
)

# Sweeps delete by expiry
Index("idx_handshake_sessions_expires_at", handshake_sessions_table.c.expires_at)

# ============================================================================
# EXTERNAL IDENTITIES TABLE (One row per chat identity)
# ============================================================================
external_identities_table = Table(
    "external_identities",
    metadata,
    Column("external_id", String(64), primary_key=True),
    Column("display_name", String(255), nullable=True),
    # Not a foreign key: the pointer and the accounts are rewritten together
    Column("active_account_id", UUID(as_uuid=True), nullable=True),
    Column("version", Integer, nullable=False, server_default="1"),
    Column(
        "created_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    Column(
        "updated_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
)

# ============================================================================
# LINKED ACCOUNTS TABLE (Provider accounts per identity, in link order)
# ============================================================================
linked_accounts_table = Table(
    "linked_accounts",
    metadata,
    Column("account_id", UUID(as_uuid=True), primary_key=True),
    Column(
        "external_id",
        String(64),
        ForeignKey("external_identities.external_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("ordinal", Integer, nullable=False),  # 0-based link order
    Column("provider_email", String(320), nullable=False),
    Column("linked_at", TIMESTAMP(timezone=True), nullable=False),
    Column("refreshed_at", TIMESTAMP(timezone=True), nullable=False),
    UniqueConstraint(
        "external_id", "provider_email", name="uq_linked_accounts_identity_email"
    ),
    UniqueConstraint("external_id", "ordinal", name="uq_linked_accounts_ordinal"),
)

Index("idx_linked_accounts_external_id", linked_accounts_table.c.external_id)
