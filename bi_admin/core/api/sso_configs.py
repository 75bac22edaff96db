"""SSO configuration operations used by the migration helpers."""
from __future__ import annotations
from typing import Any, Iterable, Optional

from .client import ApiClient
from .types import SsoConfig


class SsoConfigService:
    """Service for SSO configurations of the client's realm."""

    def __init__(self, client: ApiClient):
        self.client = client

    def _sso_configs_url(self, *segments: str) -> str:
        return (
            self.client.builder()
            .api()
            .add_tenant()
            .add_realm()
            .add_path(["sso-configs", *segments])
            .to_string()
        )

    def create_bookmark(self, name: str, login_link: str, icon_url: Optional[str] = None) -> SsoConfig:
        """Create a bookmark SSO config that shows a tile linking to ``login_link``.

        Args:
            name: Display name of the tile
            login_link: URL the tile opens
            icon_url: Optional tile icon

        Returns:
            Created SSO config
        """
        payload: dict = {"type": "bookmark", "login_link": login_link, "is_tile_visible": True}
        if icon_url:
            payload["icon"] = icon_url
        body = {"sso_config": {"display_name": name, "payload": payload}}
        return self.client.send_request("POST", self._sso_configs_url(), body, item_type=SsoConfig)

    def add_identities(self, sso_config_id: str, identity_ids: Iterable[str]) -> Any:
        """Grant identities access to an SSO config."""
        body = {"identity_ids": list(identity_ids)}
        return self.client.send_request("POST", self._sso_configs_url(f"{sso_config_id}:addIdentities"), body)
