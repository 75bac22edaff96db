"""Helpers for migrating applications and users from third-party identity providers."""
