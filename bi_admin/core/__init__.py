"""Core logic of bi-admin, independent of the command-line surface.

Module Structure:
    - api/          : Authenticated management API client and resource services
    - store/        : Local SQLite store (tenants, realms, default, tokens, settings)
    - scope.py      : Explicit tenant/realm scope resolution
    - cleanup.py    : Bulk identity deletion helpers
    - validators.py : Input validation (ids, base URLs, list filters)

Usage Pattern:
    db = Database.initialize()
    scope = resolve_scope(db, tenant_id, realm_id)   # or the stored default
    client = ApiClient(db, scope)
    IdentityService(client).list_identities(limit=10)
"""
