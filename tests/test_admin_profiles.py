from tests.hub_helpers import auth_headers, create_employee, create_store, login


def _create_profile(client, token, **overrides):
    payload = {"full_name": "Pat Doe", "email": "pat@example.com", "role": "Admin"}
    payload.update(overrides)
    return client.post("/admin/profiles", headers=auth_headers(token), json=payload)


def test_non_admin_needs_home_store(client):
    token = login(client)
    response = _create_profile(client, token, role="Manager")
    assert response.status_code == 400
    assert response.json()["error"]["details"]["field"] == "home_store_id"

    store = create_store(client, token)
    response = _create_profile(client, token, role="Manager", home_store_id=store["id"])
    assert response.status_code == 201, response.text
    data = response.json()["data"]
    assert data["role"] == "Manager"
    assert data["home_store_id"] == store["id"]
    assert data["must_reset_password"] is True


def test_create_with_explicit_id_conflicts_on_repeat(client):
    token = login(client)
    user_id = "3f1c2a9e-8f7b-4c1d-9a0e-1234567890ab"
    assert _create_profile(client, token, id=user_id).status_code == 201
    response = _create_profile(client, token, id=user_id)
    assert response.status_code == 409


def test_patch_enforces_home_store_rule(client):
    token = login(client)
    profile = _create_profile(client, token).json()["data"]

    response = client.patch(f"/admin/profiles/{profile['id']}", headers=auth_headers(token), json={"role": "Lead"})
    assert response.status_code == 400

    store = create_store(client, token)
    response = client.patch(
        f"/admin/profiles/{profile['id']}",
        headers=auth_headers(token),
        json={"role": "Lead", "home_store_id": store["id"]},
    )
    assert response.status_code == 200, response.text
    assert response.json()["data"]["role"] == "Lead"


def test_list_filters_by_status_and_search(client):
    token = login(client)
    kept = _create_profile(client, token, full_name="Casey Jones", email="casey@example.com").json()["data"]
    gone = _create_profile(client, token, full_name="Robin Hood", email="robin@example.com").json()["data"]
    client.post(f"/admin/profiles/{gone['id']}/delete", headers=auth_headers(token))

    response = client.get("/admin/profiles", headers=auth_headers(token), params={"status": "deleted"})
    assert [item["id"] for item in response.json()["data"]] == [gone["id"]]

    response = client.get("/admin/profiles", headers=auth_headers(token), params={"search": "CASEY"})
    assert [item["id"] for item in response.json()["data"]] == [kept["id"]]

    response = client.get("/admin/profiles", headers=auth_headers(token), params={"status": "active"})
    emails = [item["email"] for item in response.json()["data"]]
    assert "robin@example.com" not in emails
    assert "admin@example.com" in emails


def test_lifecycle_transitions(client):
    token = login(client)
    profile = _create_profile(client, token).json()["data"]
    url = f"/admin/profiles/{profile['id']}"

    assert client.post(f"{url}/deactivate", headers=auth_headers(token)).json()["data"]["status"] == "inactive"
    response = client.post(f"{url}/deactivate", headers=auth_headers(token))
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "INVALID_STATUS_TRANSITION"
    assert client.post(f"{url}/delete", headers=auth_headers(token)).json()["data"]["status"] == "deleted"
    assert client.post(f"{url}/reactivate", headers=auth_headers(token)).json()["data"]["status"] == "active"

    response = client.post(f"{url}/archive", headers=auth_headers(token))
    assert response.status_code == 400


def test_detail_includes_store_ids(client):
    token = login(client)
    store = create_store(client, token)
    profile = _create_profile(client, token).json()["data"]
    client.put(
        f"/admin/profiles/{profile['id']}/stores",
        headers=auth_headers(token),
        json={"store_ids": [store["id"]]},
    )
    response = client.get(f"/admin/profiles/{profile['id']}", headers=auth_headers(token))
    assert response.status_code == 200
    assert response.json()["data"]["store_ids"] == [store["id"]]


def test_me_returns_own_profile(client):
    token = login(client)
    user_id, employee_token = create_employee(client, token)
    response = client.get("/me", headers=auth_headers(employee_token))
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["id"] == user_id
    assert data["role"] == "Employee"
    assert data["store_ids"] == []


def test_login_rejects_bad_password(client):
    response = client.post("/auth/login", json={"email": "admin@example.com", "password": "wrong"})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHENTICATED"
