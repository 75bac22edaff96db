import pytest

from bi_admin.core.api.client import ApiClient
from bi_admin.core.api.exceptions import RequestError
from bi_admin.core.cleanup import (
    delete_all_identities,
    delete_norole_identities,
    delete_unenrolled_identities,
)

REALM = "https://api.example.com/v1/tenants/t1/realms/r1"


@pytest.fixture()
def client(db, scope, fake_session):
    return ApiClient(db, scope, session=fake_session)


def _list_identities(fake_session, *ids):
    fake_session.add("GET", f"{REALM}/identities", {"identities": [{"id": i} for i in ids]})


def _deleted(fake_session):
    return [call.url.rsplit("/", 1)[-1] for call in fake_session.calls if call.method == "DELETE"]


def test_delete_all_lists_before_deleting(client, fake_session):
    _list_identities(fake_session, "i1", "i2")
    for identity_id in ("i1", "i2"):
        fake_session.add("DELETE", f"{REALM}/identities/{identity_id}", text="")

    assert delete_all_identities(client) == ["i1", "i2"]
    assert [call.method for call in fake_session.calls] == ["GET", "DELETE", "DELETE"]


def test_delete_unenrolled_keeps_identities_enrolled_in_this_realm(client, fake_session):
    _list_identities(fake_session, "i1", "i2", "i3")
    fake_session.add("GET", f"{REALM}/identities/i1/credentials", {
        "credentials": [{"id": "c1", "realm_id": "r1", "tenant_id": "t1"}],
    })
    fake_session.add("GET", f"{REALM}/identities/i2/credentials", {
        "credentials": [{"id": "c2", "realm_id": "other", "tenant_id": "t1"}],
    })
    fake_session.add("GET", f"{REALM}/identities/i3/credentials", {"credentials": []})
    fake_session.add("DELETE", f"{REALM}/identities/i2", text="")
    fake_session.add("DELETE", f"{REALM}/identities/i3", text="")

    assert delete_unenrolled_identities(client) == ["i2", "i3"]
    assert _deleted(fake_session) == ["i2", "i3"]


def test_delete_norole_keeps_identities_with_any_role(client, fake_session):
    fake_session.add("GET", f"{REALM}/resource-servers", {"resource_servers": [{"id": "rs1"}, {"id": "rs2"}]})
    _list_identities(fake_session, "i1", "i2")
    memberships = f"{REALM}/identities/{{}}:listRoleMemberships?resource_server_id={{}}"
    fake_session.add("GET", memberships.format("i1", "rs1"), {"roles": []})
    fake_session.add("GET", memberships.format("i1", "rs2"), {"roles": [{"id": "viewer"}]})
    fake_session.add("GET", memberships.format("i2", "rs1"), {"roles": []})
    fake_session.add("GET", memberships.format("i2", "rs2"), {})
    fake_session.add("DELETE", f"{REALM}/identities/i2", text="")

    assert delete_norole_identities(client) == ["i2"]


def test_delete_failure_stops_the_run(client, fake_session):
    _list_identities(fake_session, "i1", "i2")
    fake_session.add("DELETE", f"{REALM}/identities/i1", status_code=403, text="forbidden")

    with pytest.raises(RequestError) as exc_info:
        delete_all_identities(client)

    assert exc_info.value.status_code == 403
    assert _deleted(fake_session) == ["i1"]
