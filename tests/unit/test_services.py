from urllib.parse import urlencode

import pytest

from bi_admin.core.api import (
    ApiClient,
    IdentityService,
    InvalidFilterError,
    RealmService,
    RoleService,
    SsoConfigService,
)

REALM = "https://api.example.com/v1/tenants/t1/realms/r1"
TENANT = "https://api.example.com/v1/tenants/t1"


@pytest.fixture()
def client(db, scope, fake_session):
    return ApiClient(db, scope, session=fake_session)


class TestIdentityService:
    def test_create_wraps_body(self, client, fake_session):
        fake_session.add("POST", f"{REALM}/identities", {"id": "i1", "display_name": "Alice"})

        identity = IdentityService(client).create_identity({"display_name": "Alice"})

        assert identity.id == "i1"
        assert fake_session.calls[0].data == '{"identity": {"display_name": "Alice"}}'

    def test_get_parses_traits(self, client, fake_session):
        fake_session.add("GET", f"{REALM}/identities/i1", {
            "id": "i1",
            "traits": {"username": "alice", "primary_email_address": "alice@example.com"},
        })

        identity = IdentityService(client).get_identity("i1")

        assert identity.traits.username == "alice"
        assert identity.traits.primary_email_address == "alice@example.com"

    def test_list_with_filter(self, client, fake_session):
        query = urlencode({"filter": 'traits.username eq "alice"'})
        url = f"{REALM}/identities?{query}"
        fake_session.add("GET", url, {"identities": [{"id": "i1"}], "total_size": 1})

        identities, total = IdentityService(client).list_identities('traits.username eq "alice"')

        assert [i.id for i in identities] == ["i1"]
        assert total == 1

    def test_invalid_filter_sends_nothing(self, client, fake_session):
        with pytest.raises(InvalidFilterError):
            IdentityService(client).list_identities("username = alice")
        assert fake_session.calls == []

    def test_patch_and_delete(self, client, fake_session):
        fake_session.add("PATCH", f"{REALM}/identities/i1", {"id": "i1", "display_name": "Bob"})
        fake_session.add("DELETE", f"{REALM}/identities/i1", status_code=200, text="")

        service = IdentityService(client)
        assert service.patch_identity("i1", {"display_name": "Bob"}).display_name == "Bob"
        assert service.delete_identity("i1") == {}

    def test_list_credentials(self, client, fake_session):
        fake_session.add("GET", f"{REALM}/identities/i1/credentials", {
            "credentials": [{"id": "c1", "identity_id": "i1", "realm_id": "r1", "tenant_id": "t1", "state": "ACTIVE"}],
        })

        credentials = IdentityService(client).list_credentials("i1")

        assert credentials[0].state == "ACTIVE"


class TestRealmService:
    def test_list_realms_is_tenant_scoped(self, client, fake_session):
        fake_session.add("GET", f"{TENANT}/realms", {"realms": [{"id": "r1"}, {"id": "r2"}]})

        realms, total = RealmService(client).list_realms()

        assert [r.id for r in realms] == ["r1", "r2"]
        assert total == 2

    def test_get_realm_uses_override(self, client, fake_session):
        fake_session.add("GET", f"{TENANT}/realms/r9", {"id": "r9", "display_name": "Other"})
        assert RealmService(client).get_realm("r9").display_name == "Other"

    def test_create_patch_delete(self, client, fake_session):
        fake_session.add("POST", f"{TENANT}/realms", {"id": "r5"})
        fake_session.add("PATCH", f"{TENANT}/realms/r1", {"id": "r1", "display_name": "Renamed"})
        fake_session.add("DELETE", f"{TENANT}/realms/r5", text="")

        service = RealmService(client)
        assert service.create_realm({"display_name": "New"}).id == "r5"
        assert service.patch_realm({"display_name": "Renamed"}).display_name == "Renamed"
        service.delete_realm("r5")
        assert fake_session.calls[0].data == '{"realm": {"display_name": "New"}}'


class TestRoleService:
    def test_list_resource_servers(self, client, fake_session):
        fake_session.add("GET", f"{REALM}/resource-servers", {"resource_servers": [{"id": "rs1"}]})
        assert [s.id for s in RoleService(client).list_resource_servers()] == ["rs1"]

    def test_list_role_memberships(self, client, fake_session):
        url = f"{REALM}/identities/i1:listRoleMemberships?resource_server_id=rs1"
        fake_session.add("GET", url, {"roles": [{"id": "admin", "resource_server_id": "rs1"}]})

        roles = RoleService(client).list_role_memberships("i1", "rs1")

        assert [r.id for r in roles] == ["admin"]


class TestSsoConfigService:
    def test_create_bookmark(self, client, fake_session):
        fake_session.add("POST", f"{REALM}/sso-configs", {
            "id": "sso1",
            "display_name": "Wiki",
            "config": {"type": "bookmark"},
        })

        sso = SsoConfigService(client).create_bookmark("Wiki", "https://wiki.example.com", "https://icon")

        assert sso.id == "sso1"
        assert sso.config_type == "bookmark"
        assert fake_session.calls[0].data == (
            '{"sso_config": {"display_name": "Wiki", "payload": {"type": "bookmark", '
            '"login_link": "https://wiki.example.com", "is_tile_visible": true, "icon": "https://icon"}}}'
        )

    def test_add_identities(self, client, fake_session):
        fake_session.add("POST", f"{REALM}/sso-configs/sso1:addIdentities", {})

        SsoConfigService(client).add_identities("sso1", ["i1", "i2"])

        assert fake_session.calls[0].data == '{"identity_ids": ["i1", "i2"]}'
