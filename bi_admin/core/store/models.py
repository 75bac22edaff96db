"""Records persisted by the local store."""
from __future__ import annotations
import time
from dataclasses import dataclass, asdict, fields
from enum import Enum
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Tenant:
    """Customer account in the identity platform."""
    id: str


@dataclass(frozen=True)
class Realm:
    """Isolated configuration scope within a tenant.

    Carries the application credentials and base URLs needed to authenticate
    and to call the management API for this realm.
    """
    id: str
    tenant_id: str
    application_id: str
    client_id: str
    client_secret: str
    open_id_configuration_url: str
    auth_base_url: str
    api_base_url: str

    def __repr__(self) -> str:
        return f"<Realm id={self.id} tenant_id={self.tenant_id} api_base_url={self.api_base_url}>"


@dataclass(frozen=True)
class Token:
    """Bearer token cached for one tenant/realm pair."""
    access_token: str
    expires_at: int
    tenant_id: str
    realm_id: str
    application_id: str

    def is_valid(self, safety_margin: int = 0, now: Optional[float] = None) -> bool:
        """Return True if the token outlives ``now`` by more than ``safety_margin`` seconds."""
        if now is None:
            now = time.time()
        return self.expires_at - safety_margin > now

    def __repr__(self) -> str:
        return f"<Token tenant_id={self.tenant_id} realm_id={self.realm_id} expires_at={self.expires_at}>"


# ─────────────────────────────────────────────────────────────────────────────
# Integration settings (stored as JSON blobs in the settings table)
# ─────────────────────────────────────────────────────────────────────────────
class _ConfigBlob:
    """Mixin for settings dataclasses that round-trip through JSON objects."""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        if not isinstance(data, dict):
            raise TypeError(f"{cls.__name__} expects a JSON object, got {type(data).__name__}")
        known = {f.name for f in fields(cls)}
        missing = known - data.keys()
        if missing:
            raise KeyError(f"{cls.__name__} missing fields: {', '.join(sorted(missing))}")
        return cls(**{key: data[key] for key in known})


@dataclass
class OktaConfig(_ConfigBlob):
    domain: str
    api_token: str


@dataclass
class OneloginConfig(_ConfigBlob):
    domain: str
    client_id: str
    client_secret: str


@dataclass
class OpenaiConfig(_ConfigBlob):
    api_key: str


@dataclass
class AnthropicConfig(_ConfigBlob):
    api_key: str


class AiProvider(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"

    def to_dict(self) -> str:
        return self.value

    @classmethod
    def from_dict(cls, data: Any) -> "AiProvider":
        return cls(data)
