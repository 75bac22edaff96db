"""Resolution of the tenant/realm pair a command operates on."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from bi_admin.core.api.exceptions import BiError, ScopeNotSetError
from bi_admin.core.store.database import Database
from bi_admin.core.store.models import Realm, Tenant


@dataclass(frozen=True)
class Scope:
    """Tenant/realm pair passed explicitly to API clients and services."""
    tenant: Tenant
    realm: Realm

    @property
    def tenant_id(self) -> str:
        return self.tenant.id

    @property
    def realm_id(self) -> str:
        return self.realm.id


def resolve_scope(db: Database, tenant_id: Optional[str] = None, realm_id: Optional[str] = None) -> Scope:
    """Return the explicit pair if given, otherwise the stored default.

    Raises:
        BiError: If only one of tenant_id/realm_id is given, or the pair is unknown
        ScopeNotSetError: If nothing was given and no default is set
    """
    if tenant_id or realm_id:
        if not (tenant_id and realm_id):
            raise BiError("Both tenant id and realm id are required to select a tenant/realm")
        pair = db.get_tenant_and_realm(tenant_id, realm_id)
        if pair is None:
            raise BiError(f"Tenant/realm {tenant_id}/{realm_id} is not configured")
        return Scope(*pair)

    pair = db.get_default_tenant_and_realm()
    if pair is None:
        raise ScopeNotSetError("No default tenant/realm set")
    return Scope(*pair)
