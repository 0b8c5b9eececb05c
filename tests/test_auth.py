import pytest
from sqlmodel import Session

from heapchart.auth import check_password, hash_password
from heapchart.db import engine


def test_password_hashing():
    secret = hash_password("correct horse")
    assert secret != "correct horse"
    assert check_password("correct horse", secret)
    assert not check_password("wrong horse", secret)
    assert not check_password("correct horse", "not-a-bcrypt-hash")
    assert not check_password("correct horse", None)


@pytest.mark.parametrize("path", ["/", "/libraries", "/floors", "/library/new/edit", "/floor/1"])
def test_pages_require_login(client, path):
    r = client.get(path, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"


def test_login_and_signup_pages_are_public(client):
    assert client.get("/login").status_code == 200
    assert client.get("/signup").status_code == 200


def test_signup_login_and_dashboard(client, store, signup, login):
    r = signup(client)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"
    assert store.user("librarian").secret_hash != "correct horse battery"

    r = login(client)
    assert r.status_code == 303
    assert r.headers["location"] == "/"

    r = client.get("/")
    assert r.status_code == 200
    assert "librarian" in r.text


@pytest.mark.parametrize(
    "username, password, redundant",
    [
        ("", "long enough", None),
        ("ab", "long enough", None),
        ("reader", "long enough", "different"),
        ("reader", "", None),
        ("reader", "short", None),
        ("reader", "x" * 73, None),
    ],
)
def test_signup_validation(client, store, signup, username, password, redundant):
    r = signup(client, username, password, redundant)
    assert r.status_code == 400
    assert store.user(username) is None


def test_signup_rejects_taken_username(client, signup):
    assert signup(client).status_code == 303
    r = signup(client)
    assert r.status_code == 400
    assert "unavailable" in r.json()["detail"]


def test_login_failures(client, signup, login):
    signup(client)
    assert login(client, password="wrong password").status_code == 401
    assert login(client, username="nobody").status_code == 401
    assert login(client, password="").status_code == 400
    assert client.get("/", follow_redirects=False).status_code == 303


def test_logged_in_users_are_sent_away_from_login(user_client):
    for path in ("/login", "/signup"):
        r = user_client.get(path, follow_redirects=False)
        assert r.status_code == 303
        assert r.headers["location"] == "/"


def test_logout_needs_a_local_referrer(user_client):
    r = user_client.get("/logout", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/"

    r = user_client.get("/logout", headers={"referer": "http://evil.example/page"}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "http://evil.example/page"
    assert user_client.get("/", follow_redirects=False).status_code == 200

    r = user_client.get("/logout", headers={"referer": "http://testserver/"}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"
    assert user_client.get("/", follow_redirects=False).status_code == 303


def test_deleted_user_is_logged_out(user_client, store):
    with Session(engine) as s:
        s.delete(s.merge(store.user("librarian")))
        s.commit()

    r = user_client.get("/libraries", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"
    # The stale session no longer counts as logged in.
    assert user_client.get("/login").status_code == 200


def test_signup_records_when_the_user_was_created(client, store, signup):
    signup(client)
    assert store.user("librarian").created_at is not None


def test_startup_failure_is_logged(monkeypatch, caplog):
    from heapchart import main

    def broken():
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(main, "init_db", broken)
    with pytest.raises(RuntimeError):
        main.on_startup()
    assert "database setup failed" in caplog.text
