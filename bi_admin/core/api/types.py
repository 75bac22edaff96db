"""Typed resources returned by the management API and the page envelope."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Generic, List, Optional, Type, TypeVar

from .exceptions import SerializationError

T = TypeVar("T")


def _require(data: Any, key: str, type_name: str) -> Any:
    if not isinstance(data, dict):
        raise SerializationError(f"{type_name} expects a JSON object, got {type(data).__name__}")
    if key not in data:
        raise SerializationError(f"{type_name} is missing field {key!r}")
    return data[key]


@dataclass
class IdentityTraits:
    username: Optional[str] = None
    primary_email_address: Optional[str] = None
    type: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "IdentityTraits":
        data = data or {}
        return cls(
            username=data.get("username"),
            primary_email_address=data.get("primary_email_address"),
            type=data.get("type"),
        )


@dataclass
class Identity:
    collection_field: ClassVar[str] = "identities"

    id: str
    realm_id: Optional[str] = None
    tenant_id: Optional[str] = None
    display_name: Optional[str] = None
    traits: IdentityTraits = field(default_factory=IdentityTraits)
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Identity":
        return cls(
            id=_require(data, "id", cls.__name__),
            realm_id=data.get("realm_id"),
            tenant_id=data.get("tenant_id"),
            display_name=data.get("display_name"),
            traits=IdentityTraits.from_dict(data.get("traits")),
            raw=data,
        )

    def to_dict(self) -> Dict[str, Any]:
        return self.raw


@dataclass
class RealmResource:
    """Realm as represented by the management API (not the stored credentials)."""
    collection_field: ClassVar[str] = "realms"

    id: str
    tenant_id: Optional[str] = None
    display_name: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RealmResource":
        return cls(
            id=_require(data, "id", cls.__name__),
            tenant_id=data.get("tenant_id"),
            display_name=data.get("display_name"),
            raw=data,
        )

    def to_dict(self) -> Dict[str, Any]:
        return self.raw


@dataclass
class Credential:
    collection_field: ClassVar[str] = "credentials"

    id: str
    identity_id: Optional[str] = None
    realm_id: Optional[str] = None
    tenant_id: Optional[str] = None
    state: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Credential":
        return cls(
            id=_require(data, "id", cls.__name__),
            identity_id=data.get("identity_id"),
            realm_id=data.get("realm_id"),
            tenant_id=data.get("tenant_id"),
            state=data.get("state"),
            raw=data,
        )

    def to_dict(self) -> Dict[str, Any]:
        return self.raw


@dataclass
class ResourceServer:
    collection_field: ClassVar[str] = "resource_servers"

    id: str
    display_name: Optional[str] = None
    identifier: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResourceServer":
        return cls(
            id=_require(data, "id", cls.__name__),
            display_name=data.get("display_name"),
            identifier=data.get("identifier"),
            raw=data,
        )

    def to_dict(self) -> Dict[str, Any]:
        return self.raw


@dataclass
class Role:
    collection_field: ClassVar[str] = "roles"

    id: str
    resource_server_id: Optional[str] = None
    display_name: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Role":
        return cls(
            id=_require(data, "id", cls.__name__),
            resource_server_id=data.get("resource_server_id"),
            display_name=data.get("display_name"),
            raw=data,
        )

    def to_dict(self) -> Dict[str, Any]:
        return self.raw


@dataclass
class SsoConfig:
    collection_field: ClassVar[str] = "sso_configs"

    id: str
    display_name: Optional[str] = None
    config_type: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SsoConfig":
        config = data.get("config") if isinstance(data, dict) else None
        return cls(
            id=_require(data, "id", cls.__name__),
            display_name=data.get("display_name"),
            config_type=config.get("type") if isinstance(config, dict) else None,
            raw=data,
        )

    def to_dict(self) -> Dict[str, Any]:
        return self.raw


@dataclass
class Page(Generic[T]):
    """One page of a list response: ``{<collection>: [...], next_page_token?, total_size?}``."""
    items: List[T]
    next_page_token: Optional[str] = None
    total_size: Optional[int] = None

    @classmethod
    def decode(cls, payload: Any, item_type: Type[T]) -> "Page[T]":
        """Decode a list response for ``item_type``.

        A missing collection field is an empty page.

        Raises:
            SerializationError: If the envelope or an item is malformed
        """
        if not isinstance(payload, dict):
            raise SerializationError(f"List response must be a JSON object, got {type(payload).__name__}")

        field_name = item_type.collection_field
        raw_items = payload.get(field_name, [])
        if not isinstance(raw_items, list):
            raise SerializationError(f"Field {field_name!r} must be a list")

        token = payload.get("next_page_token") or None
        if token is not None and not isinstance(token, str):
            raise SerializationError("Field 'next_page_token' must be a string")

        total_size = payload.get("total_size")
        if total_size is not None:
            try:
                total_size = int(total_size)
            except (TypeError, ValueError):
                raise SerializationError(f"Field 'total_size' must be an integer, got {total_size!r}") from None

        return cls(
            items=[item_type.from_dict(item) for item in raw_items],
            next_page_token=token,
            total_size=total_size,
        )
