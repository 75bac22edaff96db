"""Client-credentials token lifecycle per tenant/realm.

Precondition: one sequential caller per tenant/realm scope. Threads of the
same process are serialised by a per-scope lock; separate processes sharing
the store may still race, and the last writer's token wins. Every writer
stores a self-consistent token, so that race is tolerated.
"""
from __future__ import annotations
import logging
import time
from threading import Lock
from typing import TYPE_CHECKING, Dict, Optional, Tuple

import requests

from bi_admin.config.settings import settings
from bi_admin.core.store.models import Realm, Tenant, Token

from .exceptions import RequestError, SerializationError, TransportError
from .urls import UrlBuilder

if TYPE_CHECKING:
    from bi_admin.core.store.database import Database

logger = logging.getLogger(__name__)

_locks: Dict[Tuple[str, str], Lock] = {}
_locks_guard = Lock()


def _scope_lock(tenant_id: str, realm_id: str) -> Lock:
    with _locks_guard:
        return _locks.setdefault((tenant_id, realm_id), Lock())


def token_url(tenant: Tenant, realm: Realm) -> str:
    """Token endpoint of the realm's management application."""
    return (
        UrlBuilder(realm, tenant.id)
        .auth()
        .add_tenant()
        .add_realm()
        .add_path(["applications", realm.application_id, "token"])
        .to_string()
    )


class TokenManager:
    """Hands out bearer tokens, reusing the cached one until it nears expiry.

    Usage:
        manager = TokenManager(db)
        token = manager.get_or_refresh_token(tenant, realm)
        headers = {"Authorization": f"Bearer {token.access_token}"}
    """

    def __init__(
        self,
        db: "Database",
        session: Optional[requests.Session] = None,
        safety_margin: Optional[int] = None,
        timeout: Optional[int] = None,
    ):
        self.db = db
        self.session = session or requests.Session()
        self.safety_margin = settings.token_safety_margin if safety_margin is None else safety_margin
        self.timeout = timeout or settings.request_timeout

    def get_or_refresh_token(self, tenant: Tenant, realm: Realm) -> Token:
        """Return a valid token for the tenant/realm, exchanging credentials if needed.

        Raises:
            RequestError: Token endpoint answered with a non-2xx status
            TransportError: Token endpoint unreachable
            SerializationError: Token response is not usable JSON
            StorageError: Cache read or write failed
        """
        with _scope_lock(tenant.id, realm.id):
            cached = self.db.get_token(tenant.id, realm.id)
            if cached is not None and cached.is_valid(self.safety_margin):
                logger.debug("Token cache hit for tenant=%s realm=%s", tenant.id, realm.id)
                return cached

            logger.debug("Token cache miss for tenant=%s realm=%s", tenant.id, realm.id)
            token = self._exchange(tenant, realm)
            self.db.set_token(token)
            return token

    def invalidate(self, tenant_id: str, realm_id: str) -> None:
        """Drop the cached token for a scope (e.g. on logout)."""
        with _scope_lock(tenant_id, realm_id):
            self.db.delete_token(tenant_id, realm_id)

    def _exchange(self, tenant: Tenant, realm: Realm) -> Token:
        """Perform the client-credentials grant against the realm's token endpoint."""
        url = token_url(tenant, realm)
        data = {
            "grant_type": "client_credentials",
            "client_id": realm.client_id,
            "client_secret": realm.client_secret,
        }
        issued_at = int(time.time())
        try:
            resp = self.session.post(
                url,
                data=data,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"Token request to {url} failed: {exc}") from exc

        logger.debug("%s response status: %s", url, resp.status_code)
        if not 200 <= resp.status_code < 300:
            raise RequestError(resp.status_code, resp.text, url)

        try:
            payload = resp.json()
        except ValueError as exc:
            raise SerializationError(f"Invalid JSON from token endpoint {url}: {exc}") from exc
        if not isinstance(payload, dict) or not payload.get("access_token"):
            raise SerializationError(f"Token response from {url} has no access_token")

        expires_in = payload.get("expires_in")
        if expires_in is None:
            # No lifetime: usable for this call only.
            logger.debug("Token response without expires_in; treating as already expired")
            expires_at = issued_at
        else:
            try:
                expires_at = issued_at + int(expires_in)
            except (TypeError, ValueError) as exc:
                raise SerializationError(f"Invalid expires_in {expires_in!r} from {url}") from exc

        return Token(
            access_token=payload["access_token"],
            expires_at=expires_at,
            tenant_id=tenant.id,
            realm_id=realm.id,
            application_id=realm.application_id,
        )
