"""OneLogin fast migrate: recreate OneLogin apps as bookmark SSO configs.

Flow:
    1. fetch_onelogin_applications() lists apps with their assigned users
    2. select_applications() picks the apps to migrate
    3. create_sso_config_and_assign_identities() creates one bookmark per app
       and grants it to platform identities whose email matches an assigned user
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import requests

from bi_admin.config.settings import settings
from bi_admin.core.api.client import ApiClient
from bi_admin.core.api.exceptions import RequestError, SerializationError, TransportError
from bi_admin.core.api.identities import IdentityService
from bi_admin.core.api.sso_configs import SsoConfigService
from bi_admin.core.api.types import Identity, SsoConfig
from bi_admin.core.store.models import OneloginConfig

logger = logging.getLogger(__name__)


@dataclass
class OneLoginUser:
    id: int
    email: Optional[str] = None
    username: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OneLoginUser":
        try:
            return cls(id=data["id"], email=data.get("email"), username=data.get("username"))
        except (KeyError, TypeError) as exc:
            raise SerializationError(f"Malformed OneLogin user: {exc}") from exc


@dataclass
class OneLoginApplication:
    id: int
    name: str
    visible: bool = True
    assigned_users: List[OneLoginUser] = field(default_factory=list)
    icon: Optional[str] = None
    login_link: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OneLoginApplication":
        try:
            return cls(
                id=data["id"],
                name=data["name"],
                visible=data.get("visible", True),
                assigned_users=[OneLoginUser.from_dict(u) for u in data.get("users") or []],
                icon=data.get("icon_url"),
                login_link=data.get("login_url") or "",
            )
        except (KeyError, TypeError) as exc:
            raise SerializationError(f"Malformed OneLogin application: {exc}") from exc


class OneLoginClient:
    """Minimal OneLogin API v2 client authenticated with client credentials."""

    def __init__(
        self,
        config: OneloginConfig,
        session: Optional[requests.Session] = None,
        timeout: Optional[int] = None,
    ):
        self.domain = config.domain.rstrip("/")
        self.client_id = config.client_id
        self.client_secret = config.client_secret
        self.session = session or requests.Session()
        self.timeout = timeout or settings.request_timeout
        self._token: Optional[str] = None

    def __repr__(self) -> str:
        return f"<OneLoginClient domain={self.domain}>"

    def _call(self, method: str, url: str, **kwargs) -> Any:
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc

        logger.debug("%s response status: %s", url, resp.status_code)
        if not 200 <= resp.status_code < 300:
            raise RequestError(resp.status_code, resp.text, url)
        try:
            return resp.json()
        except ValueError as exc:
            raise SerializationError(f"Invalid JSON from {url}: {exc}") from exc

    def get_access_token(self) -> str:
        """Fetch (once per client) an access token via client credentials."""
        if self._token:
            return self._token
        url = f"{self.domain}/auth/oauth2/v2/token"
        payload = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        data = self._call("POST", url, json=payload)
        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise SerializationError("Access token not found in OneLogin token response")
        self._token = token
        return token

    def _get(self, path: str) -> Any:
        headers = {"Authorization": f"Bearer {self.get_access_token()}"}
        return self._call("GET", f"{self.domain}{path}", headers=headers)

    def list_applications(self) -> List[OneLoginApplication]:
        return [OneLoginApplication.from_dict(app) for app in self._get("/api/2/apps")]

    def get_application(self, app_id: int) -> OneLoginApplication:
        return OneLoginApplication.from_dict(self._get(f"/api/2/apps/{app_id}"))

    def list_app_users(self, app_id: int) -> List[OneLoginUser]:
        return [OneLoginUser.from_dict(user) for user in self._get(f"/api/2/apps/{app_id}/users")]


def fetch_onelogin_applications(client: OneLoginClient) -> List[OneLoginApplication]:
    """List applications with assigned users, icon and launch link filled in."""
    applications = client.list_applications()
    for app in applications:
        logger.info("Fetching assigned users for app: %s", app.name)
        app.assigned_users = client.list_app_users(app.id)
        # The list endpoint omits icon_url; the detail endpoint has it.
        app.icon = client.get_application(app.id).icon
        app.login_link = f"{client.domain}/launch/{app.id}"
        logger.info("Fetched %s users for app id %s", len(app.assigned_users), app.id)
    return applications


def select_applications(
    applications: Sequence[OneLoginApplication],
    selection: str,
) -> List[OneLoginApplication]:
    """Pick applications from ``"all"`` or comma separated indices (e.g. ``"0, 2"``).

    Raises:
        ValueError: If an index is not an integer or is out of range
    """
    selection = selection.strip()
    if selection.lower() == "all":
        return list(applications)

    selected = []
    for part in selection.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            index = int(part)
        except ValueError:
            raise ValueError(f"Invalid application index {part!r}") from None
        if not 0 <= index < len(applications):
            raise ValueError(f"Application index {index} out of range (0-{len(applications) - 1})")
        selected.append(applications[index])
    return selected


def filter_identities(
    onelogin_users: Sequence[OneLoginUser],
    identities: Sequence[Identity],
) -> List[Identity]:
    """Keep identities whose primary email matches an assigned OneLogin user."""
    emails = {user.email for user in onelogin_users if user.email}
    return [
        identity
        for identity in identities
        if identity.traits.primary_email_address and identity.traits.primary_email_address in emails
    ]


def create_sso_config_and_assign_identities(
    api_client: ApiClient,
    application: OneLoginApplication,
) -> SsoConfig:
    """Create a bookmark SSO config for the app and assign matching identities."""
    sso_configs = SsoConfigService(api_client)
    sso_config = sso_configs.create_bookmark(application.name, application.login_link, application.icon)

    identities, _ = IdentityService(api_client).list_identities()
    matched = filter_identities(application.assigned_users, identities)
    if matched:
        sso_configs.add_identities(sso_config.id, [identity.id for identity in matched])
    logger.info("Assigned %s identities to SSO config %s", len(matched), sso_config.id)
    return sso_config
