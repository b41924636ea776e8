from fastapi.testclient import TestClient

from resumeforge.api.app import create_app
from resumeforge.db.models import Field
from resumeforge.db.session import SessionLocal


def test_build_reorder_and_tear_down_a_resume_section() -> None:
    app = create_app()
    client = TestClient(app)

    assert client.post("/user/register", json={"username": "sofia", "password": "password1"}).status_code == 201
    login = client.post("/auth/login", json={"username": "sofia", "password": "password1"}).json()["data"]
    headers = {"Authorization": f"Bearer {login['accessToken']}"}

    group = client.post("/field/group", headers=headers, json={"name": "Experience"}).json()["data"]

    batch = client.post(
        "/field/batch",
        headers=headers,
        json={
            "fields": [
                {"name": "jobs", "type": 4, "groupId": group["id"]},
                {"name": "acme", "type": 5, "groupId": group["id"], "belongId": "#0", "pos": 0},
                {"name": "globex", "type": 5, "groupId": group["id"], "belongId": "#0", "pos": 1},
                {"name": "initech", "type": 5, "groupId": group["id"], "belongId": "#0", "pos": 2},
                {"name": "role", "type": 1, "value": "Engineer", "belongId": "#1", "pos": 0},
            ]
        },
    )
    assert batch.status_code == 201
    jobs, acme, globex, initech, role = batch.json()["data"]
    assert role["belongId"] == acme["id"]

    # Move the oldest job to the end of the list.
    moved = client.put(f"/field/{acme['id']}", headers=headers, json={"pos": 2})
    assert moved.json()["data"]["pos"] == 2
    positions = {
        item["name"]: item["pos"]
        for item in client.get("/field", headers=headers, params={"groupId": group["id"]}).json()["data"]
    }
    assert positions == {"jobs": None, "acme": 2, "globex": 0, "initech": 1}

    # Writing onto an occupied slot replaces the job that was there.
    replaced = client.post(
        "/field",
        headers=headers,
        json={"name": "hooli", "type": 5, "groupId": group["id"], "belongId": jobs["id"], "pos": 2},
    )
    assert replaced.status_code == 201
    assert client.get(f"/field/{acme['id']}", headers=headers).status_code == 404
    assert client.get(f"/field/{role['id']}", headers=headers).status_code == 404

    assert client.delete(f"/field/group/{group['id']}", headers=headers).status_code == 200
    with SessionLocal() as db:
        assert db.query(Field).count() == 0

    logout = client.post("/auth/logout", headers=headers, json={"refreshToken": login["refreshToken"]})
    assert logout.json()["data"] == {"success": True}
    assert client.get("/field", headers=headers).status_code == 401
