"""Administrative client for a multi-tenant identity platform."""

__version__ = "0.1.0"
