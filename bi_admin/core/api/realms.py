"""Realm management operations on the platform API."""
from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple

from .client import ApiClient
from .types import RealmResource


class RealmService:
    """Service for managing realms of the client's tenant."""

    def __init__(self, client: ApiClient):
        self.client = client

    def _realms_url(self) -> str:
        return self.client.builder().api().add_tenant().add_path(["realms"]).to_string()

    def _realm_url(self, realm_id: Optional[str] = None) -> str:
        builder = self.client.builder().api().add_tenant()
        if realm_id:
            builder.add_realm_with_override(realm_id)
        else:
            builder.add_realm()
        return builder.to_string()

    def create_realm(self, realm: Dict[str, Any]) -> RealmResource:
        return self.client.send_request("POST", self._realms_url(), {"realm": realm}, item_type=RealmResource)

    def list_realms(self, limit: Optional[int] = None) -> Tuple[List[RealmResource], int]:
        return self.client.send_request_paginated("GET", self._realms_url(), limit=limit, item_type=RealmResource)

    def get_realm(self, realm_id: str) -> RealmResource:
        return self.client.send_request("GET", self._realm_url(realm_id), item_type=RealmResource)

    def patch_realm(self, realm: Dict[str, Any]) -> RealmResource:
        """Patch the realm bound to the client."""
        return self.client.send_request("PATCH", self._realm_url(), {"realm": realm}, item_type=RealmResource)

    def delete_realm(self, realm_id: str) -> Any:
        return self.client.send_request("DELETE", self._realm_url(realm_id))
