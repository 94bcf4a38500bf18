import uuid
from datetime import datetime

from sqlalchemy import event, select

from app.hub.db.models import AccessGrant
from app.hub.services.access_sync import AccessSyncService, compute_access_diff
from tests.hub_helpers import auth_headers, create_employee, create_store, login


def _sync(client, token, user_id, store_ids):
    return client.put(
        f"/admin/profiles/{user_id}/stores",
        headers=auth_headers(token),
        json={"store_ids": store_ids},
    )


def test_compute_access_diff():
    diff = compute_access_diff({"a", "b"}, {"b", "c"})
    assert diff.additions == frozenset({"c"})
    assert diff.removals == frozenset({"a"})
    assert compute_access_diff({"a"}, {"a"}).is_empty


def test_sync_adds_and_removes(client, db_session):
    token = login(client)
    user_id, _ = create_employee(client, token)
    one, two, three = (create_store(client, token) for _ in range(3))

    response = _sync(client, token, user_id, [one["id"], two["id"]])
    assert response.status_code == 200, response.text
    data = response.json()["data"]
    assert sorted(data["added"]) == sorted([one["id"], two["id"]])
    assert data["removed"] == []

    kept = db_session.get(AccessGrant, (uuid.UUID(user_id), uuid.UUID(two["id"])))
    marker_time = datetime(2020, 1, 2, 3, 4, 5)
    marker_admin = uuid.uuid4()
    kept.created_at = marker_time
    kept.assigned_by = marker_admin
    db_session.commit()

    response = _sync(client, token, user_id, [two["id"], three["id"], three["id"]])
    data = response.json()["data"]
    assert data["added"] == [three["id"]]
    assert data["removed"] == [one["id"]]
    assert data["store_ids"] == sorted([two["id"], three["id"]])

    rows = db_session.execute(select(AccessGrant).where(AccessGrant.user_id == uuid.UUID(user_id))).scalars().all()
    assert {str(row.store_id) for row in rows} == {two["id"], three["id"]}
    assert all(row.assigned_by is not None for row in rows)
    db_session.expire_all()
    kept = db_session.get(AccessGrant, (uuid.UUID(user_id), uuid.UUID(two["id"])))
    assert kept.created_at == marker_time
    assert kept.assigned_by == marker_admin


def test_sync_to_empty_removes_everything(client):
    token = login(client)
    user_id, _ = create_employee(client, token)
    store = create_store(client, token)
    _sync(client, token, user_id, [store["id"]])

    response = _sync(client, token, user_id, [])
    assert response.json()["data"]["removed"] == [store["id"]]
    response = client.get(f"/admin/profiles/{user_id}/stores", headers=auth_headers(token))
    assert response.json()["data"]["store_ids"] == []


def test_sync_rejects_unknown_store(client):
    token = login(client)
    user_id, _ = create_employee(client, token)
    missing = "00000000-0000-0000-0000-0000000000aa"
    response = _sync(client, token, user_id, [missing])
    assert response.status_code == 400
    assert response.json()["error"]["details"]["store_ids"] == [missing]


def test_sync_unknown_user_is_not_found(client):
    token = login(client)
    response = _sync(client, token, "00000000-0000-0000-0000-0000000000bb", [])
    assert response.status_code == 404


def test_noop_sync_writes_nothing(client, db_session):
    token = login(client)
    user_id, _ = create_employee(client, token)
    store = create_store(client, token)
    _sync(client, token, user_id, [store["id"]])

    statements = []

    def _capture(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    engine = db_session.get_bind()
    event.listen(engine, "before_cursor_execute", _capture)
    try:
        diff = AccessSyncService(db_session).sync(
            uuid.UUID(user_id),
            [uuid.UUID(store["id"])],
            assigned_by=None,
        )
    finally:
        event.remove(engine, "before_cursor_execute", _capture)

    assert diff.is_empty
    assert not [statement for statement in statements if statement.lstrip().upper().startswith(("INSERT", "DELETE"))]


def test_sync_requires_admin(client):
    token = login(client)
    user_id, employee_token = create_employee(client, token)
    response = _sync(client, employee_token, user_id, [])
    assert response.status_code == 403
