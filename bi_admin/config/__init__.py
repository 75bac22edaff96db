"""Configuration module for bi-admin."""
from .settings import AppConfig, load_settings

__all__ = ["AppConfig", "load_settings"]
