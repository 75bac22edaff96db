"""Platform management API client library.

Architecture:
- exceptions.py: Typed exceptions for error handling
- urls.py: Tenant/realm-scoped URL composition
- tokens.py: Client-credentials token cache and refresh
- client.py: Authenticated HTTP client with pagination
- types.py: Typed resources and the page envelope
- identities.py, realms.py, roles.py, sso_configs.py: Resource services

Usage:
    from bi_admin.core.api import ApiClient, IdentityService
    from bi_admin.core.scope import resolve_scope
    from bi_admin.core.store import Database

    db = Database.initialize()
    client = ApiClient(db, resolve_scope(db))
    identities, total = IdentityService(client).list_identities(limit=10)
"""
from .exceptions import (
    BiError,
    RequestError,
    TransportError,
    SerializationError,
    StorageError,
    InvalidUrlError,
    InvalidFilterError,
    ScopeNotSetError,
)
from .urls import UrlBuilder
from .tokens import TokenManager, token_url
from .types import (
    Page,
    Identity,
    IdentityTraits,
    RealmResource,
    Credential,
    ResourceServer,
    Role,
    SsoConfig,
)
from .client import ApiClient
from .identities import IdentityService
from .realms import RealmService
from .roles import RoleService
from .sso_configs import SsoConfigService

__all__ = [
    # Exceptions
    "BiError",
    "RequestError",
    "TransportError",
    "SerializationError",
    "StorageError",
    "InvalidUrlError",
    "InvalidFilterError",
    "ScopeNotSetError",

    # Client
    "UrlBuilder",
    "TokenManager",
    "token_url",
    "ApiClient",

    # Types
    "Page",
    "Identity",
    "IdentityTraits",
    "RealmResource",
    "Credential",
    "ResourceServer",
    "Role",
    "SsoConfig",

    # Services
    "IdentityService",
    "RealmService",
    "RoleService",
    "SsoConfigService",
]
