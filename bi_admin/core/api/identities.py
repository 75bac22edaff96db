"""Identity management operations."""
from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode

from bi_admin.core.validators import validate_filter

from .client import ApiClient
from .types import Credential, Identity


class IdentityService:
    """Service for managing identities in the client's realm."""

    def __init__(self, client: ApiClient):
        self.client = client

    def _identities_url(self, *segments: str) -> str:
        return (
            self.client.builder()
            .api()
            .add_tenant()
            .add_realm()
            .add_path(["identities", *segments])
            .to_string()
        )

    def create_identity(self, identity: Dict[str, Any]) -> Identity:
        """Create an identity.

        Args:
            identity: Identity fields, e.g. ``{"display_name": ..., "traits": {...}}``
        """
        return self.client.send_request(
            "POST", self._identities_url(), {"identity": identity}, item_type=Identity
        )

    def get_identity(self, identity_id: str) -> Identity:
        return self.client.send_request("GET", self._identities_url(identity_id), item_type=Identity)

    def list_identities(
        self,
        filter: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Tuple[List[Identity], int]:
        """List identities, optionally filtered.

        Args:
            filter: Filter expression such as ``traits.username eq "alice"``
            limit: Maximum number of identities to return

        Returns:
            (identities, total size)

        Raises:
            InvalidFilterError: If the filter is malformed
        """
        url = self._identities_url()
        if filter:
            url = f"{url}?{urlencode({'filter': validate_filter(filter)})}"
        return self.client.send_request_paginated("GET", url, limit=limit, item_type=Identity)

    def patch_identity(self, identity_id: str, identity: Dict[str, Any]) -> Identity:
        return self.client.send_request(
            "PATCH", self._identities_url(identity_id), {"identity": identity}, item_type=Identity
        )

    def delete_identity(self, identity_id: str) -> Any:
        return self.client.send_request("DELETE", self._identities_url(identity_id))

    def list_credentials(self, identity_id: str, limit: Optional[int] = None) -> List[Credential]:
        """List credentials bound to an identity."""
        credentials, _ = self.client.send_request_paginated(
            "GET",
            self._identities_url(identity_id, "credentials"),
            limit=limit,
            item_type=Credential,
        )
        return credentials
