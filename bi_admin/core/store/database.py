"""SQLite-backed local store for tenants, realms, defaults, tokens and settings."""
from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any, List, Optional, Tuple, Type, TypeVar

import sqlalchemy as sa
from sqlalchemy import event
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from bi_admin.config.settings import settings as app_settings
from bi_admin.core.api.exceptions import SerializationError, StorageError

from . import schema
from .migrations import run_migrations
from .models import (
    AiProvider,
    AnthropicConfig,
    OktaConfig,
    OneloginConfig,
    OpenaiConfig,
    Realm,
    Tenant,
    Token,
)

logger = logging.getLogger(__name__)

OKTA_CONFIG_KEY = "okta_config"
ONELOGIN_CONFIG_KEY = "onelogin_config"
OPENAI_CONFIG_KEY = "openai_config"
ANTHROPIC_CONFIG_KEY = "anthropic_config"
DEFAULT_AI_PROVIDER_KEY = "default_ai_provider"

ConfigT = TypeVar("ConfigT")

_REALM_COLUMNS = (
    "id",
    "tenant_id",
    "application_id",
    "client_id",
    "client_secret",
    "open_id_configuration_url",
    "auth_base_url",
    "api_base_url",
)


def _realm_from_row(row: Any) -> Realm:
    return Realm(**{name: row._mapping[name] for name in _REALM_COLUMNS})


def _token_from_row(row: Any) -> Token:
    m = row._mapping
    return Token(
        access_token=m["access_token"],
        expires_at=int(m["expires_at"]),
        tenant_id=m["tenant_id"],
        realm_id=m["realm_id"],
        application_id=m["application_id"],
    )


def _enable_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    # SQLite leaves foreign key enforcement off per connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Handle on the local store.

    Every public method runs in its own transaction and raises ``StorageError``
    on connection or query failure. Nothing is retried.

    Usage:
        db = Database.initialize()
        db.upsert_tenant_and_realm(Tenant("t1"), realm)
        db.set_default_tenant_and_realm("t1", realm.id)
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    @classmethod
    def initialize(cls, path: Optional[Path] = None) -> "Database":
        """Create the database if absent and apply pending migrations.

        Args:
            path: Database file (defaults to ``sqlite.db`` in the data directory)

        Raises:
            StorageError: If the file cannot be created or a migration fails
        """
        db_path = Path(path) if path else app_settings.database_path
        try:
            db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Failed to create data directory {db_path.parent}: {exc}") from exc

        if db_path.exists():
            logger.debug("Database already created at %s", db_path)
        else:
            logger.debug("Creating database at %s", db_path)

        try:
            engine = sa.create_engine(f"sqlite:///{db_path}", future=True)
            event.listen(engine, "connect", _enable_foreign_keys)
            with engine.begin() as conn:
                applied = run_migrations(conn)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to initialize database at {db_path}: {exc}") from exc

        for revision in applied:
            logger.debug("Applied migration %s", revision)
        logger.debug("Database and migrations initialized successfully.")
        return cls(engine)

    def close(self) -> None:
        self.engine.dispose()

    # ─────────────────────────────────────────────────────────────────────────
    # Tenants and realms
    # ─────────────────────────────────────────────────────────────────────────
    def get_all_tenants_with_realms(self) -> List[Tuple[Tenant, List[Realm]]]:
        """Return every tenant with its realms, ordered by id."""
        try:
            with self.engine.connect() as conn:
                tenant_ids = conn.execute(
                    sa.select(schema.tenants.c.id).order_by(schema.tenants.c.id)
                ).scalars().all()
                result = []
                for tenant_id in tenant_ids:
                    rows = conn.execute(
                        sa.select(schema.realms)
                        .where(schema.realms.c.tenant_id == tenant_id)
                        .order_by(schema.realms.c.id)
                    ).all()
                    result.append((Tenant(tenant_id), [_realm_from_row(row) for row in rows]))
                return result
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

    def get_tenant_and_realm(self, tenant_id: str, realm_id: str) -> Optional[Tuple[Tenant, Realm]]:
        """Return the stored pair, or None if the realm is not registered for the tenant."""
        try:
            with self.engine.connect() as conn:
                row = conn.execute(
                    sa.select(schema.realms).where(
                        schema.realms.c.tenant_id == tenant_id,
                        schema.realms.c.id == realm_id,
                    )
                ).first()
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc
        if row is None:
            return None
        return Tenant(tenant_id), _realm_from_row(row)

    def upsert_tenant_and_realm(self, tenant: Tenant, realm: Realm) -> None:
        """Add the tenant if it is new, then insert or replace the realm by id.

        Realm ids are unique across tenants. Re-registering a realm under a
        different tenant detaches it from the previous one, which is then
        treated like a deleted pair.
        """
        realm_values = {name: getattr(realm, name) for name in _REALM_COLUMNS}
        try:
            with self.engine.begin() as conn:
                previous_tenant_id = conn.execute(
                    sa.select(schema.realms.c.tenant_id).where(schema.realms.c.id == realm.id)
                ).scalar_one_or_none()
                conn.execute(
                    sqlite_insert(schema.tenants)
                    .values(id=tenant.id)
                    .on_conflict_do_nothing(index_elements=["id"])
                )
                stmt = sqlite_insert(schema.realms).values(**realm_values)
                conn.execute(
                    stmt.on_conflict_do_update(
                        index_elements=["id"],
                        set_={name: stmt.excluded[name] for name in _REALM_COLUMNS if name != "id"},
                    )
                )
                if previous_tenant_id is not None and previous_tenant_id != tenant.id:
                    logger.debug("Realm %s moved from tenant %s to %s", realm.id, previous_tenant_id, tenant.id)
                    self._release_pair(conn, previous_tenant_id, realm.id)
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

    def delete_tenant_realm_pair(self, tenant_id: str, realm_id: str) -> None:
        """Delete a tenant/realm pair.

        The tenant is removed once it has no realms left, and the default
        selection is cleared if it pointed at this pair. All of it happens in
        one transaction.
        """
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    sa.delete(schema.realms).where(
                        schema.realms.c.tenant_id == tenant_id,
                        schema.realms.c.id == realm_id,
                    )
                )
                self._release_pair(conn, tenant_id, realm_id)
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

    @staticmethod
    def _release_pair(conn: Connection, tenant_id: str, realm_id: str) -> None:
        """Drop the default and token of a pair whose realm row is gone, and the tenant if now empty."""
        conn.execute(
            sa.delete(schema.defaults).where(
                schema.defaults.c.tenant_id == tenant_id,
                schema.defaults.c.realm_id == realm_id,
            )
        )
        conn.execute(
            sa.delete(schema.tokens).where(
                schema.tokens.c.tenant_id == tenant_id,
                schema.tokens.c.realm_id == realm_id,
            )
        )
        remaining = conn.execute(
            sa.select(sa.func.count())
            .select_from(schema.realms)
            .where(schema.realms.c.tenant_id == tenant_id)
        ).scalar_one()
        if remaining == 0:
            conn.execute(sa.delete(schema.tenants).where(schema.tenants.c.id == tenant_id))

    # ─────────────────────────────────────────────────────────────────────────
    # Default selection
    # ─────────────────────────────────────────────────────────────────────────
    def get_default_tenant_and_realm(self) -> Optional[Tuple[Tenant, Realm]]:
        """Return the default pair, or None when no default is set."""
        try:
            with self.engine.connect() as conn:
                row = conn.execute(
                    sa.select(schema.realms)
                    .join(
                        schema.defaults,
                        sa.and_(
                            schema.defaults.c.tenant_id == schema.realms.c.tenant_id,
                            schema.defaults.c.realm_id == schema.realms.c.id,
                        ),
                    )
                    .where(schema.defaults.c.id == 1)
                ).first()
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc
        if row is None:
            return None
        realm = _realm_from_row(row)
        return Tenant(realm.tenant_id), realm

    def set_default_tenant_and_realm(self, tenant_id: str, realm_id: str) -> None:
        """Replace the default pair. There is at most one at a time."""
        stmt = sqlite_insert(schema.defaults).values(id=1, tenant_id=tenant_id, realm_id=realm_id)
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    stmt.on_conflict_do_update(
                        index_elements=["id"],
                        set_={"tenant_id": stmt.excluded.tenant_id, "realm_id": stmt.excluded.realm_id},
                    )
                )
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

    # ─────────────────────────────────────────────────────────────────────────
    # Tokens
    # ─────────────────────────────────────────────────────────────────────────
    def get_token(self, tenant_id: str, realm_id: str) -> Optional[Token]:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(
                    sa.select(schema.tokens).where(
                        schema.tokens.c.tenant_id == tenant_id,
                        schema.tokens.c.realm_id == realm_id,
                    )
                ).first()
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc
        return _token_from_row(row) if row is not None else None

    def set_token(self, token: Token) -> None:
        """Store a token, replacing any previous one for the same tenant/realm."""
        stmt = sqlite_insert(schema.tokens).values(
            access_token=token.access_token,
            expires_at=token.expires_at,
            tenant_id=token.tenant_id,
            realm_id=token.realm_id,
            application_id=token.application_id,
        )
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    stmt.on_conflict_do_update(
                        index_elements=["tenant_id", "realm_id"],
                        set_={
                            "access_token": stmt.excluded.access_token,
                            "expires_at": stmt.excluded.expires_at,
                            "application_id": stmt.excluded.application_id,
                        },
                    )
                )
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

    def delete_token(self, tenant_id: str, realm_id: str) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    sa.delete(schema.tokens).where(
                        schema.tokens.c.tenant_id == tenant_id,
                        schema.tokens.c.realm_id == realm_id,
                    )
                )
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

    # ─────────────────────────────────────────────────────────────────────────
    # Integration settings
    # ─────────────────────────────────────────────────────────────────────────
    def get_okta_config(self) -> Optional[OktaConfig]:
        return self.get_config(OKTA_CONFIG_KEY, OktaConfig)

    def set_okta_config(self, config: OktaConfig) -> None:
        self.set_config(OKTA_CONFIG_KEY, config)

    def get_onelogin_config(self) -> Optional[OneloginConfig]:
        return self.get_config(ONELOGIN_CONFIG_KEY, OneloginConfig)

    def set_onelogin_config(self, config: OneloginConfig) -> None:
        self.set_config(ONELOGIN_CONFIG_KEY, config)

    def get_openai_config(self) -> Optional[OpenaiConfig]:
        return self.get_config(OPENAI_CONFIG_KEY, OpenaiConfig)

    def set_openai_config(self, config: OpenaiConfig) -> None:
        self.set_config(OPENAI_CONFIG_KEY, config)

    def get_anthropic_config(self) -> Optional[AnthropicConfig]:
        return self.get_config(ANTHROPIC_CONFIG_KEY, AnthropicConfig)

    def set_anthropic_config(self, config: AnthropicConfig) -> None:
        self.set_config(ANTHROPIC_CONFIG_KEY, config)

    def get_default_ai_provider(self) -> Optional[AiProvider]:
        return self.get_config(DEFAULT_AI_PROVIDER_KEY, AiProvider)

    def set_default_ai_provider(self, provider: AiProvider) -> None:
        self.set_config(DEFAULT_AI_PROVIDER_KEY, provider)

    def get_config(self, key: str, config_type: Type[ConfigT]) -> Optional[ConfigT]:
        """Load and decode a settings blob.

        Args:
            key: Settings key
            config_type: Type exposing ``from_dict``

        Raises:
            SerializationError: If the stored value is not valid for ``config_type``
        """
        try:
            with self.engine.connect() as conn:
                value = conn.execute(
                    sa.select(schema.settings.c.value).where(schema.settings.c.key == key)
                ).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

        if value is None:
            return None
        try:
            return config_type.from_dict(json.loads(value))
        except (ValueError, TypeError, KeyError) as exc:
            raise SerializationError(f"Malformed {key} in settings: {exc}") from exc

    def set_config(self, key: str, config: Any) -> None:
        """Encode ``config`` as JSON and store it under ``key`` (last write wins)."""
        try:
            value = json.dumps(config.to_dict())
        except (TypeError, ValueError) as exc:
            raise SerializationError(f"Cannot encode {key}: {exc}") from exc

        stmt = sqlite_insert(schema.settings).values(key=key, value=value)
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    stmt.on_conflict_do_update(
                        index_elements=["key"],
                        set_={"value": stmt.excluded.value},
                    )
                )
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc
