"""Local persistent store (SQLite via SQLAlchemy)."""
from .models import (
    Tenant,
    Realm,
    Token,
    OktaConfig,
    OneloginConfig,
    OpenaiConfig,
    AnthropicConfig,
    AiProvider,
)
from .database import Database

__all__ = [
    "Database",
    "Tenant",
    "Realm",
    "Token",
    "OktaConfig",
    "OneloginConfig",
    "OpenaiConfig",
    "AnthropicConfig",
    "AiProvider",
]
