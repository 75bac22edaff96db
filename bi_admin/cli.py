"""Command-line entry point for bi-admin.

This module is a thin wrapper around bi_admin.core services: it parses
arguments, resolves the tenant/realm scope, calls a service and prints JSON.
"""
from __future__ import annotations
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from bi_admin.config.settings import DATABASE_FILENAME, settings
from bi_admin.core.api import (
    ApiClient,
    BiError,
    IdentityService,
    RealmService,
    TokenManager,
)
from bi_admin.core.cleanup import (
    delete_all_identities,
    delete_norole_identities,
    delete_unenrolled_identities,
)
from bi_admin.core.scope import resolve_scope
from bi_admin.core.store import Database, OktaConfig, OneloginConfig, Realm, Tenant
from bi_admin.core.validators import normalize_id, validate_base_url
from bi_admin.migrate.onelogin import (
    OneLoginClient,
    create_sso_config_and_assign_identities,
    fetch_onelogin_applications,
    select_applications,
)

CLEANUP_MODES = {
    "all": delete_all_identities,
    "unenrolled": delete_unenrolled_identities,
    "norole": delete_norole_identities,
}


def _print_json(value: Any) -> None:
    print(json.dumps(value, indent=2, sort_keys=True))


def _realm_summary(realm: Realm) -> dict:
    return {
        "realm_id": realm.id,
        "application_id": realm.application_id,
        "api_base_url": realm.api_base_url,
        "auth_base_url": realm.auth_base_url,
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bi-admin", description="Identity platform admin client")
    parser.add_argument("--tenant-id", help="Tenant to act on (defaults to the stored default)")
    parser.add_argument("--realm-id", help="Realm to act on (defaults to the stored default)")
    parser.add_argument("--data-dir", help="Directory of the local store (default: BI_DATA_DIR or user data dir)")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level (default: %(default)s)")

    sub = parser.add_subparsers(dest="cmd")

    at = sub.add_parser("add-tenant", help="Register a tenant/realm with its API credentials")
    at.add_argument("--application-id", required=True)
    at.add_argument("--client-id", required=True)
    at.add_argument("--client-secret", required=True)
    at.add_argument("--auth-base-url", required=True)
    at.add_argument("--api-base-url", required=True)
    at.add_argument("--open-id-configuration-url", required=True)
    at.add_argument("--set-default", action="store_true")

    sub.add_parser("list-tenants")
    sub.add_parser("set-default")
    sub.add_parser("show-default")
    sub.add_parser("remove-tenant")
    sub.add_parser("logout", help="Drop the cached token of the selected tenant/realm")

    li = sub.add_parser("list-identities")
    li.add_argument("--filter")
    li.add_argument("--limit", type=int)

    gi = sub.add_parser("get-identity")
    gi.add_argument("identity_id")

    di = sub.add_parser("delete-identity")
    di.add_argument("identity_id")

    dis = sub.add_parser("delete-identities", help="Bulk delete identities")
    dis.add_argument("--mode", choices=sorted(CLEANUP_MODES), required=True)
    dis.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    lr = sub.add_parser("list-realms")
    lr.add_argument("--limit", type=int)

    gr = sub.add_parser("get-realm")
    gr.add_argument("realm_id_arg", metavar="realm_id")

    co = sub.add_parser("configure-onelogin")
    co.add_argument("--domain", required=True)
    co.add_argument("--client-id", required=True)
    co.add_argument("--client-secret", required=True)

    ck = sub.add_parser("configure-okta")
    ck.add_argument("--domain", required=True)
    ck.add_argument("--api-token", required=True)

    fm = sub.add_parser("onelogin-fast-migrate")
    fm.add_argument("--select", help="'all' or comma separated application indices (prompted if omitted)")

    return parser


def _require_pair(parser: argparse.ArgumentParser, args: argparse.Namespace) -> tuple:
    if not args.tenant_id or not args.realm_id:
        parser.error(f"{args.cmd} requires --tenant-id and --realm-id")
    return normalize_id(args.tenant_id, "Tenant id"), normalize_id(args.realm_id, "Realm id")


def run(parser: argparse.ArgumentParser, args: argparse.Namespace, db: Database) -> None:
    """Dispatch one parsed command against an initialized store."""
    if args.cmd == "add-tenant":
        tenant_id, realm_id = _require_pair(parser, args)
        realm = Realm(
            id=realm_id,
            tenant_id=tenant_id,
            application_id=normalize_id(args.application_id, "Application id"),
            client_id=args.client_id.strip(),
            client_secret=args.client_secret.strip(),
            open_id_configuration_url=validate_base_url(args.open_id_configuration_url, "OpenID configuration URL"),
            auth_base_url=validate_base_url(args.auth_base_url, "Auth base URL"),
            api_base_url=validate_base_url(args.api_base_url, "API base URL"),
        )
        db.upsert_tenant_and_realm(Tenant(tenant_id), realm)
        if args.set_default:
            db.set_default_tenant_and_realm(tenant_id, realm_id)
        print(f"[add-tenant] Tenant '{tenant_id}' realm '{realm_id}' saved", file=sys.stderr)
        return

    if args.cmd == "list-tenants":
        default = db.get_default_tenant_and_realm()
        default_key = (default[0].id, default[1].id) if default else None
        _print_json([
            {
                "tenant_id": tenant.id,
                "realms": [
                    dict(_realm_summary(realm), default=(tenant.id, realm.id) == default_key)
                    for realm in realms
                ],
            }
            for tenant, realms in db.get_all_tenants_with_realms()
        ])
        return

    if args.cmd == "set-default":
        tenant_id, realm_id = _require_pair(parser, args)
        if db.get_tenant_and_realm(tenant_id, realm_id) is None:
            raise BiError(f"Tenant/realm {tenant_id}/{realm_id} is not configured")
        db.set_default_tenant_and_realm(tenant_id, realm_id)
        print(f"[set-default] Default set to {tenant_id}/{realm_id}", file=sys.stderr)
        return

    if args.cmd == "show-default":
        default = db.get_default_tenant_and_realm()
        _print_json(dict(_realm_summary(default[1]), tenant_id=default[0].id) if default else None)
        return

    if args.cmd == "remove-tenant":
        tenant_id, realm_id = _require_pair(parser, args)
        db.delete_tenant_realm_pair(tenant_id, realm_id)
        print(f"[remove-tenant] Tenant/realm {tenant_id}/{realm_id} removed", file=sys.stderr)
        return

    if args.cmd == "configure-onelogin":
        db.set_onelogin_config(OneloginConfig(
            domain=validate_base_url(args.domain, "OneLogin domain"),
            client_id=args.client_id.strip(),
            client_secret=args.client_secret.strip(),
        ))
        print("[configure-onelogin] OneLogin configuration saved", file=sys.stderr)
        return

    if args.cmd == "configure-okta":
        db.set_okta_config(OktaConfig(
            domain=validate_base_url(args.domain, "Okta domain"),
            api_token=args.api_token.strip(),
        ))
        print("[configure-okta] Okta configuration saved", file=sys.stderr)
        return

    # Everything below talks to the platform API.
    scope = resolve_scope(db, args.tenant_id, args.realm_id)

    if args.cmd == "logout":
        TokenManager(db).invalidate(scope.tenant_id, scope.realm_id)
        print(f"[logout] Token for {scope.tenant_id}/{scope.realm_id} removed", file=sys.stderr)
        return

    client = ApiClient(db, scope)

    if args.cmd == "list-identities":
        identities, total = IdentityService(client).list_identities(args.filter, args.limit)
        _print_json({"identities": [i.to_dict() for i in identities], "total_size": total})
    elif args.cmd == "get-identity":
        _print_json(IdentityService(client).get_identity(args.identity_id).to_dict())
    elif args.cmd == "delete-identity":
        IdentityService(client).delete_identity(args.identity_id)
        print(f"[delete-identity] Deleted identity {args.identity_id}", file=sys.stderr)
    elif args.cmd == "delete-identities":
        if not args.yes:
            answer = input(f"Delete {args.mode} identities in {scope.tenant_id}/{scope.realm_id}? [y/N] ")
            if answer.strip().lower() not in ("y", "yes"):
                print("[delete-identities] Aborted", file=sys.stderr)
                return
        deleted = CLEANUP_MODES[args.mode](client)
        _print_json({"deleted": deleted})
    elif args.cmd == "list-realms":
        realms, total = RealmService(client).list_realms(args.limit)
        _print_json({"realms": [r.to_dict() for r in realms], "total_size": total})
    elif args.cmd == "get-realm":
        _print_json(RealmService(client).get_realm(args.realm_id_arg).to_dict())
    elif args.cmd == "onelogin-fast-migrate":
        config = db.get_onelogin_config()
        if config is None:
            raise BiError("OneLogin is not configured; run configure-onelogin first")
        applications = fetch_onelogin_applications(OneLoginClient(config))
        selection = args.select
        if selection is None:
            for index, app in enumerate(applications):
                print(f"{index}: {app.name} - {app.id} (visible: {app.visible})")
            selection = input("Select applications to fast migrate (comma separated indices or 'all'): ")
        created = [
            create_sso_config_and_assign_identities(client, app).to_dict()
            for app in select_applications(applications, selection)
        ]
        _print_json({"sso_configs": created})
    else:
        parser.print_help()


def main(argv: Optional[List[str]] = None) -> None:
    """Command-line entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.cmd:
        parser.print_help()
        return

    try:
        logging.basicConfig(
            level=args.log_level.upper(),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        db = Database.initialize(Path(args.data_dir) / DATABASE_FILENAME if args.data_dir else None)
        try:
            run(parser, args, db)
        finally:
            db.close()
    except (BiError, ValueError) as e:
        print(f"[bi-admin] Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
