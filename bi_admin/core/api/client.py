"""Authenticated HTTP client for the platform management API.

Handles bearer authorization, error mapping, JSON decoding and pagination.
"""
from __future__ import annotations
import json
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple, Type, TypeVar

import requests

from bi_admin.config.settings import settings

from .exceptions import RequestError, SerializationError, TransportError
from .tokens import TokenManager
from .types import Page
from .urls import UrlBuilder

if TYPE_CHECKING:
    from bi_admin.core.scope import Scope
    from bi_admin.core.store.database import Database

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ApiClient:
    """HTTP client bound to one tenant/realm scope.

    Every call fetches a bearer token from the ``TokenManager`` first (cached
    unless near expiry). Non-2xx responses raise ``RequestError`` carrying the
    status and body verbatim; nothing is retried.

    Usage:
        client = ApiClient(db, resolve_scope(db))
        url = client.builder().api().add_tenant().add_realm().add_path(["identities"]).to_string()
        identities, total = client.send_request_paginated("GET", url, item_type=Identity)
    """

    def __init__(
        self,
        db: "Database",
        scope: "Scope",
        token_manager: Optional[TokenManager] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[int] = None,
        page_size: Optional[int] = None,
    ):
        self.db = db
        self.scope = scope
        self.session = session or requests.Session()
        self.timeout = timeout or settings.request_timeout
        self.page_size = page_size or settings.page_size
        self.token_manager = token_manager or TokenManager(db, session=self.session, timeout=self.timeout)

    def __repr__(self) -> str:
        return f"<ApiClient tenant_id={self.scope.tenant_id} realm_id={self.scope.realm_id}>"

    def builder(self) -> UrlBuilder:
        """URL builder seeded with this client's realm and tenant."""
        return UrlBuilder(self.scope.realm, self.scope.tenant_id)

    def send_request(
        self,
        method: str,
        url: str,
        body: Optional[Any] = None,
        item_type: Optional[Type[T]] = None,
    ) -> Any:
        """Issue a single request and decode the response.

        Args:
            method: HTTP method
            url: Absolute URL (usually from ``builder()``)
            body: JSON-serialisable payload
            item_type: Resource type with ``from_dict``; raw JSON is returned when omitted

        Returns:
            Decoded resource, raw JSON, or ``{}`` for an empty body
        """
        payload = self._decode(self._send(method, url, body))
        if item_type is None:
            return payload
        return item_type.from_dict(payload)

    def send_request_paginated(
        self,
        method: str,
        url: str,
        body: Optional[Any] = None,
        limit: Optional[int] = None,
        item_type: Optional[Type[T]] = None,
    ) -> Tuple[List[T], int]:
        """Collect a list across pages.

        Pages are requested strictly in order, following ``next_page_token``.
        With a limit, requesting stops once ``limit`` items are held and the
        result is truncated to exactly ``limit``.

        Args:
            method: HTTP method
            url: Absolute URL of the collection
            body: JSON-serialisable payload
            limit: Maximum number of items to return
            item_type: Resource type declaring ``collection_field``

        Returns:
            (items in server order, total size reported by the server or the
            number of items returned when it reports none)

        Raises:
            RequestError: On any non-2xx page; no partial result is returned
        """
        if item_type is None:
            raise ValueError("send_request_paginated requires item_type")
        if limit is not None and limit < 0:
            raise ValueError("limit must be >= 0")

        page_size = self.page_size if limit is None else max(1, min(self.page_size, limit))
        params: Dict[str, Any] = {"page_size": page_size}
        items: List[T] = []
        total_size: Optional[int] = None

        while limit is None or len(items) < limit:
            page = Page.decode(self._decode(self._send(method, url, body, params)), item_type)
            items.extend(page.items)
            if page.total_size is not None:
                total_size = page.total_size
            if not page.next_page_token:
                break
            params = {"page_size": page_size, "page_token": page.next_page_token}

        if limit is not None and len(items) > limit:
            del items[limit:]
        return items, total_size if total_size is not None else len(items)

    def _send(
        self,
        method: str,
        url: str,
        body: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        token = self.token_manager.get_or_refresh_token(self.scope.tenant, self.scope.realm)
        headers = {"Authorization": f"Bearer {token.access_token}"}

        data = None
        if body is not None:
            try:
                data = json.dumps(body)
            except (TypeError, ValueError) as exc:
                raise SerializationError(f"Cannot encode request body for {url}: {exc}") from exc
            headers["Content-Type"] = "application/json"

        try:
            resp = self.session.request(
                method.upper(),
                url,
                params=params,
                data=data,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"{method.upper()} {url} failed: {exc}") from exc

        logger.debug("%s %s response status: %s", method.upper(), url, resp.status_code)
        if not 200 <= resp.status_code < 300:
            raise RequestError(resp.status_code, resp.text, url)
        logger.debug("%s response text: %s", url, resp.text)
        return resp

    @staticmethod
    def _decode(resp: requests.Response) -> Any:
        if not resp.text or not resp.text.strip():
            return {}
        try:
            return json.loads(resp.text)
        except ValueError as exc:
            raise SerializationError(f"Invalid JSON from {resp.url}: {exc}") from exc
