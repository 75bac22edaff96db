"""Ordered schema migrations for the local store.

Each migration is a function receiving Alembic ``Operations`` bound to the
open connection. Applied revisions are recorded in ``schema_migrations`` so
``run_migrations`` can be called on every start-up.
"""
from __future__ import annotations
import logging
import time
from typing import Callable, List, Tuple

import sqlalchemy as sa
from alembic.operations import Operations
from alembic.runtime.migration import MigrationContext
from sqlalchemy.engine import Connection

from .schema import schema_migrations

logger = logging.getLogger(__name__)


def _0001_initial(op: Operations) -> None:
    op.create_table(
        "tenants",
        sa.Column("id", sa.String(), primary_key=True),
    )
    op.create_table(
        "realms",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("tenant_id", sa.String(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("application_id", sa.String(), nullable=False),
        sa.Column("client_id", sa.String(), nullable=False),
        sa.Column("client_secret", sa.String(), nullable=False),
        sa.Column("open_id_configuration_url", sa.String(), nullable=False),
        sa.Column("auth_base_url", sa.String(), nullable=False),
        sa.Column("api_base_url", sa.String(), nullable=False),
    )
    op.create_index("ix_realms_tenant_id", "realms", ["tenant_id"])
    op.create_table(
        "defaults",
        # Singleton row: id is always 1.
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("tenant_id", sa.String(), nullable=False),
        sa.Column("realm_id", sa.String(), nullable=False),
        sa.CheckConstraint("id = 1", name="ck_defaults_singleton"),
    )


def _0002_tokens(op: Operations) -> None:
    op.create_table(
        "tokens",
        sa.Column("access_token", sa.String(), nullable=False),
        sa.Column("expires_at", sa.Integer(), nullable=False),
        sa.Column("tenant_id", sa.String(), nullable=False),
        sa.Column("realm_id", sa.String(), nullable=False),
        sa.Column("application_id", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("tenant_id", "realm_id", name="pk_tokens"),
    )


def _0003_settings(op: Operations) -> None:
    op.create_table(
        "settings",
        sa.Column("key", sa.String(), primary_key=True),
        sa.Column("value", sa.Text(), nullable=False),
    )


MIGRATIONS: List[Tuple[str, Callable[[Operations], None]]] = [
    ("0001_initial", _0001_initial),
    ("0002_tokens", _0002_tokens),
    ("0003_settings", _0003_settings),
]


def run_migrations(conn: Connection) -> List[str]:
    """Apply every pending migration in order on ``conn``.

    Args:
        conn: Connection inside an open transaction

    Returns:
        Revisions applied by this call (empty when the schema is current)
    """
    schema_migrations.create(conn, checkfirst=True)
    done = set(conn.execute(sa.select(schema_migrations.c.revision)).scalars())

    op = Operations(MigrationContext.configure(connection=conn))
    applied: List[str] = []
    for revision, upgrade in MIGRATIONS:
        if revision in done:
            continue
        logger.debug("Applying migration %s", revision)
        upgrade(op)
        conn.execute(
            sa.insert(schema_migrations).values(revision=revision, applied_at=int(time.time()))
        )
        applied.append(revision)
    return applied
