"""Bulk identity deletion helpers.

Identities are listed in full before anything is deleted, so deletions never
shift the pages still being read.
"""
from __future__ import annotations
import logging
from typing import Callable, List

from bi_admin.core.api.client import ApiClient
from bi_admin.core.api.identities import IdentityService
from bi_admin.core.api.roles import RoleService
from bi_admin.core.api.types import Identity

logger = logging.getLogger(__name__)


def _delete_matching(client: ApiClient, should_delete: Callable[[Identity], bool]) -> List[str]:
    service = IdentityService(client)
    identities, total = service.list_identities()
    logger.debug("Loaded %s identities (server total %s)", len(identities), total)

    deleted: List[str] = []
    for identity in identities:
        if not should_delete(identity):
            continue
        service.delete_identity(identity.id)
        logger.info("Deleted identity %s", identity.id)
        deleted.append(identity.id)
    return deleted


def delete_all_identities(client: ApiClient) -> List[str]:
    """Delete every identity in the client's realm. Returns the deleted ids."""
    return _delete_matching(client, lambda identity: True)


def delete_unenrolled_identities(client: ApiClient) -> List[str]:
    """Delete identities with no credential enrolled in the client's tenant/realm."""
    service = IdentityService(client)
    scope = client.scope

    def unenrolled(identity: Identity) -> bool:
        credentials = service.list_credentials(identity.id)
        return not any(
            cred.realm_id == scope.realm_id and cred.tenant_id == scope.tenant_id
            for cred in credentials
        )

    return _delete_matching(client, unenrolled)


def delete_norole_identities(client: ApiClient) -> List[str]:
    """Delete identities holding no role on any resource server of the realm."""
    roles = RoleService(client)
    resource_servers = roles.list_resource_servers()

    def has_no_role(identity: Identity) -> bool:
        for server in resource_servers:
            if roles.list_role_memberships(identity.id, server.id):
                return False
        return True

    return _delete_matching(client, has_no_role)
