"""Table definitions used to build queries against the migrated schema.

The DDL itself lives in ``migrations.py``; keep both in step.
"""
from __future__ import annotations

import sqlalchemy as sa

metadata = sa.MetaData()

tenants = sa.Table(
    "tenants",
    metadata,
    sa.Column("id", sa.String(), primary_key=True),
)

realms = sa.Table(
    "realms",
    metadata,
    sa.Column("id", sa.String(), primary_key=True),
    sa.Column("tenant_id", sa.String(), sa.ForeignKey("tenants.id"), nullable=False),
    sa.Column("application_id", sa.String(), nullable=False),
    sa.Column("client_id", sa.String(), nullable=False),
    sa.Column("client_secret", sa.String(), nullable=False),
    sa.Column("open_id_configuration_url", sa.String(), nullable=False),
    sa.Column("auth_base_url", sa.String(), nullable=False),
    sa.Column("api_base_url", sa.String(), nullable=False),
)

defaults = sa.Table(
    "defaults",
    metadata,
    sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
    sa.Column("tenant_id", sa.String(), nullable=False),
    sa.Column("realm_id", sa.String(), nullable=False),
)

tokens = sa.Table(
    "tokens",
    metadata,
    sa.Column("access_token", sa.String(), nullable=False),
    sa.Column("expires_at", sa.Integer(), nullable=False),
    sa.Column("tenant_id", sa.String(), primary_key=True),
    sa.Column("realm_id", sa.String(), primary_key=True),
    sa.Column("application_id", sa.String(), nullable=False),
)

settings = sa.Table(
    "settings",
    metadata,
    sa.Column("key", sa.String(), primary_key=True),
    sa.Column("value", sa.Text(), nullable=False),
)

# Bookkeeping for applied migrations; created outside the migration chain.
schema_migrations = sa.Table(
    "schema_migrations",
    sa.MetaData(),
    sa.Column("revision", sa.String(), primary_key=True),
    sa.Column("applied_at", sa.Integer(), nullable=False),
)
