"""Composition of tenant- and realm-scoped endpoint URLs."""
from __future__ import annotations
from typing import Iterable, List, Optional
from urllib.parse import quote

from urllib3.util import parse_url
from urllib3.exceptions import LocationParseError

from bi_admin.core.store.models import Realm

from .exceptions import InvalidUrlError

API_VERSION = "v1"


class UrlBuilder:
    """Builds URLs of the form ``{base}/v1/tenants/{tenant}/realms/{realm}/{...}``.

    Steps are recorded in call order and rendered by ``to_string``; the order
    must follow the platform's routing convention.

    Usage:
        url = (
            UrlBuilder(realm, tenant_id="t1")
            .api()
            .add_tenant()
            .add_realm()
            .add_path(["identities"])
            .to_string()
        )
    """

    def __init__(self, realm: Realm, tenant_id: Optional[str] = None):
        self.realm = realm
        self.tenant_id = tenant_id or realm.tenant_id
        self._base: Optional[str] = None
        self._segments: List[str] = []

    def api(self) -> "UrlBuilder":
        """Use the realm's API base URL."""
        self._base = self.realm.api_base_url
        return self

    def auth(self) -> "UrlBuilder":
        """Use the realm's auth base URL."""
        self._base = self.realm.auth_base_url
        return self

    def add_tenant(self) -> "UrlBuilder":
        self._segments.extend(["tenants", self.tenant_id])
        return self

    def add_realm(self) -> "UrlBuilder":
        """Add the realm bound to this builder."""
        self._segments.extend(["realms", self.realm.id])
        return self

    def add_realm_with_override(self, realm_id: str) -> "UrlBuilder":
        """Add an explicit realm id instead of the bound realm."""
        self._segments.extend(["realms", realm_id])
        return self

    def add_path(self, segments: Iterable[str]) -> "UrlBuilder":
        self._segments.extend(segments)
        return self

    def to_string(self) -> str:
        """Render the URL.

        Raises:
            InvalidUrlError: If no base was selected, a segment is empty, or
                the result is not an absolute http(s) URL
        """
        if self._base is None:
            raise InvalidUrlError("", "no base URL selected; call api() or auth() first")

        base = self._base.strip().rstrip("/")
        parts = [base, API_VERSION]
        for segment in self._segments:
            cleaned = str(segment).strip("/")
            if not cleaned:
                raise InvalidUrlError(base, f"empty path segment in {self._segments!r}")
            parts.append(quote(cleaned, safe=":"))
        url = "/".join(parts)

        try:
            parsed = parse_url(url)
        except LocationParseError as exc:
            raise InvalidUrlError(url, str(exc)) from exc
        if parsed.scheme not in ("http", "https"):
            raise InvalidUrlError(url, "scheme must be http or https")
        if not parsed.host:
            raise InvalidUrlError(url, "missing host")
        return url

    def __str__(self) -> str:
        return self.to_string()
