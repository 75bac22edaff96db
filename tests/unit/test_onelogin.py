import pytest

from bi_admin.core.api.client import ApiClient
from bi_admin.core.api.exceptions import RequestError
from bi_admin.core.api.types import Identity
from bi_admin.core.store import OneloginConfig
from bi_admin.migrate.onelogin import (
    OneLoginApplication,
    OneLoginClient,
    OneLoginUser,
    create_sso_config_and_assign_identities,
    fetch_onelogin_applications,
    filter_identities,
    select_applications,
)

DOMAIN = "https://acme.onelogin.com"
REALM = "https://api.example.com/v1/tenants/t1/realms/r1"


@pytest.fixture()
def onelogin(fake_session):
    fake_session.add("POST", f"{DOMAIN}/auth/oauth2/v2/token", {"access_token": "ol-token"})
    return OneLoginClient(OneloginConfig(DOMAIN + "/", "cid", "csecret"), session=fake_session)


def _apps(count):
    return [OneLoginApplication(id=i, name=f"app{i}") for i in range(count)]


def test_fetch_applications_fills_users_icon_and_link(onelogin, fake_session):
    fake_session.add("GET", f"{DOMAIN}/api/2/apps", [{"id": 7, "name": "Wiki", "visible": False}])
    fake_session.add("GET", f"{DOMAIN}/api/2/apps/7/users", [{"id": 1, "email": "a@example.com"}])
    fake_session.add("GET", f"{DOMAIN}/api/2/apps/7", {"id": 7, "name": "Wiki", "icon_url": "https://icon/7"})

    apps = fetch_onelogin_applications(onelogin)

    assert len(apps) == 1
    app = apps[0]
    assert app.visible is False
    assert app.icon == "https://icon/7"
    assert app.login_link == f"{DOMAIN}/launch/7"
    assert [u.email for u in app.assigned_users] == ["a@example.com"]

    token_calls = fake_session.calls_to(f"{DOMAIN}/auth/oauth2/v2/token")
    assert len(token_calls) == 1
    assert token_calls[0].json == {"grant_type": "client_credentials", "client_id": "cid", "client_secret": "csecret"}
    assert fake_session.calls[-1].headers == {"Authorization": "Bearer ol-token"}


def test_onelogin_error_status_raises_request_error(onelogin, fake_session):
    fake_session.add("GET", f"{DOMAIN}/api/2/apps", status_code=401, text="unauthorized")

    with pytest.raises(RequestError) as exc_info:
        onelogin.list_applications()

    assert exc_info.value.body == "unauthorized"


class TestSelectApplications:
    def test_all(self):
        apps = _apps(3)
        assert select_applications(apps, " ALL ") == apps

    def test_indices(self):
        apps = _apps(3)
        assert [a.id for a in select_applications(apps, "2, 0")] == [2, 0]

    @pytest.mark.parametrize("selection", ["x", "3", "-1", "0,,9"])
    def test_invalid_selection(self, selection):
        with pytest.raises(ValueError):
            select_applications(_apps(3), selection)


def test_filter_identities_matches_on_email():
    users = [OneLoginUser(1, email="a@example.com"), OneLoginUser(2, email=None)]
    identities = [
        Identity.from_dict({"id": "i1", "traits": {"primary_email_address": "a@example.com"}}),
        Identity.from_dict({"id": "i2", "traits": {"primary_email_address": "b@example.com"}}),
        Identity.from_dict({"id": "i3"}),
    ]
    assert [i.id for i in filter_identities(users, identities)] == ["i1"]


def test_create_sso_config_assigns_matching_identities(db, scope, fake_session):
    client = ApiClient(db, scope, session=fake_session)
    app = OneLoginApplication(
        id=7,
        name="Wiki",
        assigned_users=[OneLoginUser(1, email="a@example.com")],
        login_link=f"{DOMAIN}/launch/7",
    )
    fake_session.add("POST", f"{REALM}/sso-configs", {"id": "sso1", "display_name": "Wiki"})
    fake_session.add("GET", f"{REALM}/identities", {"identities": [
        {"id": "i1", "traits": {"primary_email_address": "a@example.com"}},
        {"id": "i2", "traits": {"primary_email_address": "b@example.com"}},
    ]})
    fake_session.add("POST", f"{REALM}/sso-configs/sso1:addIdentities", {})

    sso = create_sso_config_and_assign_identities(client, app)

    assert sso.id == "sso1"
    assert fake_session.calls[-1].data == '{"identity_ids": ["i1"]}'


def test_create_sso_config_without_matches_skips_assignment(db, scope, fake_session):
    client = ApiClient(db, scope, session=fake_session)
    app = OneLoginApplication(id=7, name="Wiki", login_link=f"{DOMAIN}/launch/7")
    fake_session.add("POST", f"{REALM}/sso-configs", {"id": "sso1"})
    fake_session.add("GET", f"{REALM}/identities", {"identities": [{"id": "i1"}]})

    create_sso_config_and_assign_identities(client, app)

    assert not fake_session.calls_to(f"{REALM}/sso-configs/sso1:addIdentities")
