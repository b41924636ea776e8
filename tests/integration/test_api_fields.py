from fastapi.testclient import TestClient

from resumeforge.api.app import create_app


def _client_for(username: str, client: TestClient | None = None) -> tuple[TestClient, dict[str, str]]:
    client = client or TestClient(create_app())
    client.post("/user/register", json={"username": username, "password": "password1"})
    login = client.post("/auth/login", json={"username": username, "password": "password1"})
    return client, {"Authorization": f"Bearer {login.json()['data']['accessToken']}"}


def test_field_group_crud_and_search() -> None:
    client, headers = _client_for("henry")

    created = client.post("/field/group", headers=headers, json={"name": "Experience"})
    assert created.status_code == 201
    group = created.json()["data"]
    assert group["name"] == "Experience"
    assert {"id", "createTime", "updateTime"} <= set(group)

    dup = client.post("/field/group", headers=headers, json={"name": "Experience"})
    assert dup.status_code == 409

    for name in ("Education", "Skills"):
        client.post("/field/group", headers=headers, json={"name": name})

    search = client.post(
        "/field/group/search",
        headers=headers,
        json={"page": 1, "limit": 2, "sort": [{"key": "name", "order": "asc"}]},
    )
    assert search.status_code == 200
    page = search.json()["data"]
    assert [item["name"] for item in page["data"]] == ["Education", "Experience"]
    assert page["total"] == 3
    assert page["totalPages"] == 2

    renamed = client.put(f"/field/group/{group['id']}", headers=headers, json={"name": "Work"})
    assert renamed.json()["data"]["name"] == "Work"
    assert client.get(f"/field/group/{group['id']}", headers=headers).json()["data"]["name"] == "Work"

    deleted = client.delete(f"/field/group/{group['id']}", headers=headers)
    assert deleted.status_code == 200
    assert client.get(f"/field/group/{group['id']}", headers=headers).status_code == 404


def test_search_rejects_unknown_filter_key() -> None:
    client, headers = _client_for("iris")
    resp = client.post(
        "/field/group/search",
        headers=headers,
        json={"condition": [{"key": "userId", "operate": "eq", "value": 1}]},
    )
    assert resp.status_code == 400


def test_other_users_cannot_touch_resources() -> None:
    client, owner = _client_for("jack")
    _, intruder = _client_for("kate", client)

    group_id = client.post("/field/group", headers=owner, json={"name": "Private"}).json()["data"]["id"]
    field_id = client.post("/field", headers=owner, json={"name": "ssn", "type": 1}).json()["data"]["id"]

    assert client.get(f"/field/group/{group_id}", headers=intruder).status_code == 403
    assert client.delete(f"/field/{field_id}", headers=intruder).status_code == 403
    assert client.get("/field", headers=intruder).json()["data"] == []

    foreign_parent = client.post(
        "/field",
        headers=intruder,
        json={"name": "child", "type": 1, "belongId": field_id, "pos": 0},
    )
    assert foreign_parent.status_code == 404


def test_field_crud() -> None:
    client, headers = _client_for("liam")
    group_id = client.post("/field/group", headers=headers, json={"name": "Contact"}).json()["data"]["id"]

    created = client.post(
        "/field",
        headers=headers,
        json={"name": "email", "type": 1, "value": "liam@example.com", "groupId": group_id, "order": 1},
    )
    assert created.status_code == 201
    field = created.json()["data"]
    assert field["groupId"] == group_id
    assert field["order"] == 1
    assert field["belongId"] is None

    listed = client.get("/field", headers=headers, params={"groupId": group_id})
    assert [item["id"] for item in listed.json()["data"]] == [field["id"]]

    updated = client.put(f"/field/{field['id']}", headers=headers, json={"value": "liam@work.example"})
    assert updated.json()["data"]["value"] == "liam@work.example"

    conflict = client.post("/field", headers=headers, json={"name": "email", "type": 1, "groupId": group_id})
    assert conflict.status_code == 409

    removed = client.delete(f"/field/{field['id']}", headers=headers)
    assert removed.json()["data"] == {"deleted": 1}
    assert client.get(f"/field/{field['id']}", headers=headers).status_code == 404


def test_non_numeric_field_id_is_a_validation_error() -> None:
    client, headers = _client_for("mona")
    resp = client.get("/field/abc", headers=headers)
    assert resp.status_code == 422
    assert resp.json()["code"] == 422


def test_batch_create_and_batch_update() -> None:
    client, headers = _client_for("nora")
    created = client.post(
        "/field/batch",
        headers=headers,
        json={
            "fields": [
                {"name": "languages", "type": 4},
                {"name": "english", "type": 1, "belongId": "#0", "pos": 0},
                {"name": "spanish", "type": 1, "belongId": "#0", "pos": 1},
            ]
        },
    )
    assert created.status_code == 201
    parent, english, spanish = created.json()["data"]
    assert english["belongId"] == parent["id"]
    assert spanish["belongId"] == parent["id"]

    swapped = client.put(
        "/field/batch-update",
        headers=headers,
        json={
            "updates": [
                {"id": english["id"], "data": {"pos": 1}},
                {"id": spanish["id"], "data": {"pos": 0, "value": "basic"}},
            ]
        },
    )
    assert swapped.status_code == 200
    by_id = {item["id"]: item for item in swapped.json()["data"]}
    assert by_id[english["id"]]["pos"] == 1
    assert by_id[spanish["id"]]["pos"] == 0
    assert by_id[spanish["id"]]["value"] == "basic"

    deleted = client.delete(f"/field/{parent['id']}", headers=headers)
    assert deleted.json()["data"] == {"deleted": 3}


def test_batch_create_forward_reference_is_rejected() -> None:
    client, headers = _client_for("omar")
    resp = client.post(
        "/field/batch",
        headers=headers,
        json={"fields": [{"name": "a", "type": 1, "belongId": "#1"}, {"name": "b", "type": 1}]},
    )
    assert resp.status_code == 400
    assert client.get("/field", headers=headers).json()["data"] == []


def test_empty_batch_is_a_validation_error() -> None:
    client, headers = _client_for("paul")
    assert client.post("/field/batch", headers=headers, json={"fields": []}).status_code == 422
    assert client.put("/field/batch-update", headers=headers, json={"updates": []}).status_code == 422
