"""Resource servers and role memberships."""
from __future__ import annotations
from typing import List, Optional
from urllib.parse import urlencode

from .client import ApiClient
from .types import ResourceServer, Role


class RoleService:
    """Read-only access to resource servers and the roles held by identities."""

    def __init__(self, client: ApiClient):
        self.client = client

    def list_resource_servers(self, limit: Optional[int] = None) -> List[ResourceServer]:
        url = (
            self.client.builder()
            .api()
            .add_tenant()
            .add_realm()
            .add_path(["resource-servers"])
            .to_string()
        )
        servers, _ = self.client.send_request_paginated("GET", url, limit=limit, item_type=ResourceServer)
        return servers

    def list_role_memberships(self, identity_id: str, resource_server_id: str) -> List[Role]:
        """Return the roles an identity holds on one resource server."""
        url = (
            self.client.builder()
            .api()
            .add_tenant()
            .add_realm()
            .add_path(["identities", f"{identity_id}:listRoleMemberships"])
            .to_string()
        )
        url = f"{url}?{urlencode({'resource_server_id': resource_server_id})}"
        roles, _ = self.client.send_request_paginated("GET", url, item_type=Role)
        return roles
