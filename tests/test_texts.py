from typerace.db import DEFAULT_TEXT_LINES


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def test_get_textline(client):
    resp = client.get("/get/textline/1")
    assert resp.status_code == 200
    assert resp.json() == {"index": 1, "text": DEFAULT_TEXT_LINES[1]}


def test_get_textline_out_of_range(client):
    assert client.get(f"/get/textline/{len(DEFAULT_TEXT_LINES)}").status_code == 404
    assert client.get("/get/textline/-1").status_code == 404


def test_admin_requires_auth(client):
    assert client.get("/admin/textlines").status_code == 401
    assert client.get("/admin/textlines", headers=_auth("a.b.c")).status_code == 401


def test_admin_requires_admin(client, login):
    token = login("alice")
    assert client.get("/admin/textlines", headers=_auth(token)).status_code == 403


def test_admin_list(client, login):
    token = login("admin")
    resp = client.get("/admin/textlines", headers=_auth(token))
    assert resp.status_code == 200
    assert resp.json() == {"lines": DEFAULT_TEXT_LINES}


def test_admin_add_and_delete(client, login):
    headers = _auth(login("admin"))

    resp = client.post("/admin/textlines", json={"text": "  Hello there.  "}, headers=headers)
    assert resp.status_code == 201
    assert resp.json() == {"index": len(DEFAULT_TEXT_LINES), "text": "Hello there."}
    assert client.get(f"/get/textline/{len(DEFAULT_TEXT_LINES)}").json()["text"] == "Hello there."

    resp = client.delete("/admin/textlines/0", headers=headers)
    assert resp.status_code == 200
    lines = client.get("/admin/textlines", headers=headers).json()["lines"]
    assert lines == DEFAULT_TEXT_LINES[1:] + ["Hello there."]


def test_admin_add_blank(client, login):
    resp = client.post("/admin/textlines", json={"text": "   "}, headers=_auth(login("admin")))
    assert resp.status_code == 400


def test_admin_delete_missing(client, login):
    resp = client.delete("/admin/textlines/99", headers=_auth(login("admin")))
    assert resp.status_code == 404
