import re

from app import app as flask_app
from conftest import login


def test_anonymous_home_redirects_to_login(client):
    response = client.get("/")
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/users/login")


def test_login_page_renders(client):
    response = client.get("/users/login")
    assert response.status_code == 200
    assert b'name="username"' in response.data


def test_login_with_bad_password(client, school):
    response = client.post("/users/login", data={"username": "tbrown", "password": "nope"})
    assert response.status_code == 200
    assert b"Invalid credentials" in response.data

    with client.session_transaction() as sess:
        assert not sess.get("signed_in")


def test_login_with_unknown_user(client, school):
    response = client.post("/users/login", data={"username": "ghost", "password": "whatever"})
    assert response.status_code == 200
    assert b"Invalid credentials" in response.data


def test_login_requires_both_fields(client, fake_db):
    response = client.post("/users/login", data={"username": "tbrown", "password": ""})
    assert b"Please enter both username and password." in response.data


def test_login_stores_principal(client, school):
    response = login(client, "tbrown")
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/")

    with client.session_transaction() as sess:
        assert sess["signed_in"] is True
        assert sess["user_id"] == school["teacher_user_id"]
        assert sess["role"] == "teacher"
        assert sess["full_name"] == "Tom Brown"
        assert sess["username"] == "tbrown"


def test_login_returns_to_original_url(client, school):
    client.get("/admin")
    page = client.get("/users/login")
    assert b'value="/admin"' in page.data

    response = client.post(
        "/users/login",
        data={"username": "admin", "password": "secret123", "original_url": "/admin"},
    )
    assert response.headers["Location"].endswith("/admin")


def test_login_ignores_offsite_original_url(client, school):
    response = client.post(
        "/users/login",
        data={"username": "admin", "password": "secret123", "original_url": "//evil.example"},
    )
    assert response.headers["Location"].endswith("/")
    assert "evil.example" not in response.headers["Location"]


def test_logout_clears_session(client, school):
    login(client, "tbrown")
    response = client.post("/users/logout")
    assert response.status_code == 302

    with client.session_transaction() as sess:
        assert "signed_in" not in sess
        assert "user_id" not in sess

    assert client.get("/teacher").status_code == 302


def test_home_redirects_by_role(client, school):
    login(client, "tbrown")
    assert client.get("/").headers["Location"].endswith("/teacher")

    client.post("/users/logout")
    login(client, "admin")
    assert "/admin" in client.get("/").headers["Location"]


def test_unknown_path_redirects_home(client):
    response = client.get("/no/such/page")
    assert response.status_code == 302
    assert response.headers["Location"].endswith("/")


def extract_csrf(html: str) -> str:
    pattern = r'<input[^>]*name=["\']csrf_token["\'][^>]*value=["\']([^"\']+)["\']'
    m = re.search(pattern, html, flags=re.IGNORECASE)
    assert m, "CSRF token not found in form"
    return m.group(1)


def test_login_post_requires_csrf_token(client, school, monkeypatch):
    monkeypatch.setitem(flask_app.config, "WTF_CSRF_ENABLED", True)

    r = client.post("/users/login", data={"username": "tbrown", "password": "secret123"})
    assert r.status_code == 400

    page = client.get("/users/login")
    token = extract_csrf(page.get_data(as_text=True))
    r2 = client.post(
        "/users/login",
        data={"csrf_token": token, "username": "tbrown", "password": "secret123", "original_url": "/"},
    )
    assert r2.status_code == 302
