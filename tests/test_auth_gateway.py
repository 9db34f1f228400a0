# tests/test_auth_gateway.py
import pytest

from portal.app import create_app
from portal.config import TestConfig
from portal.extensions import db
from portal.models import Profile
from portal.services.auth_gateway import AuthError, AuthGateway, ProfileCache, SessionUser, get_gateway


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def _user(uid="u1", is_admin=False):
    return SessionUser(id=uid, email=f"{uid}@example.com", full_name=None, is_admin=is_admin)


# ---------- ProfileCache ----------

def test_cache_expires_after_ttl():
    clock = FakeClock()
    cache = ProfileCache(ttl_seconds=30, clock=clock)
    cache.set("u1", _user())

    clock.now += 29
    assert cache.get("u1") == _user()

    clock.now += 1
    assert cache.get("u1") is None
    assert len(cache) == 0


def test_cache_set_sweeps_expired_entries():
    clock = FakeClock()
    cache = ProfileCache(ttl_seconds=30, clock=clock)
    cache.set("gone-1", _user("gone-1"))
    cache.set("gone-2", _user("gone-2"))

    clock.now += 31
    cache.set("u1", _user("u1"))

    # prošlé záznamy zmizí i bez čtení jejich klíče
    assert len(cache) == 1
    assert cache.get("u1") == _user("u1")


def test_cache_invalidate():
    cache = ProfileCache(ttl_seconds=30, clock=FakeClock())
    cache.set("u1", _user("u1"))
    cache.set("u2", _user("u2"))

    cache.invalidate("u1")
    assert cache.get("u1") is None
    assert len(cache) == 1

    cache.invalidate()
    assert len(cache) == 0


# ---------- AuthGateway ----------

def test_gateway_registered_per_app():
    first = create_app(TestConfig)
    second = create_app(TestConfig)
    with first.app_context():
        gw_first = get_gateway()
    with second.app_context():
        gw_second = get_gateway()
    assert gw_first is not gw_second
    assert gw_first.cache.ttl_seconds == TestConfig.PROFILE_CACHE_TTL


def test_injected_gateway_keeps_its_cache():
    cache = ProfileCache(ttl_seconds=5)
    gateway = AuthGateway(cache=cache)
    app = create_app(TestConfig, auth_gateway=gateway)
    with app.app_context():
        assert get_gateway() is gateway
        assert get_gateway().cache is cache


def test_token_roundtrip(app):
    with app.app_context():
        gw = get_gateway()
        assert gw.verify_token(gw.issue_token("abc")) == "abc"


def test_tampered_token_rejected(app):
    with app.app_context():
        gw = get_gateway()
        token = gw.issue_token("abc")
        with pytest.raises(AuthError) as exc:
            gw.verify_token(token[:-2] + "xx")
    assert exc.value.message == "Neplatný token"


def test_token_from_other_secret_rejected(app):
    other = create_app(type("OtherConfig", (TestConfig,), {"SECRET_KEY": "other"}))
    with other.app_context():
        foreign = get_gateway().issue_token("abc")
    with app.app_context():
        with pytest.raises(AuthError):
            get_gateway().verify_token(foreign)


def test_expired_token_rejected(app):
    with app.app_context():
        gw = get_gateway()
        token = gw.issue_token("abc")
        app.config["AUTH_TOKEN_MAX_AGE"] = -1
        with pytest.raises(AuthError) as exc:
            gw.verify_token(token)
    assert exc.value.message == "Platnost přihlášení vypršela"


def test_resolve_unknown_profile(app):
    with app.app_context():
        gw = get_gateway()
        with pytest.raises(AuthError):
            gw.resolve(gw.issue_token("ghost"))


def test_resolve_caches_profile(app, make_profile):
    make_profile("u1", is_admin=True)
    with app.app_context():
        gw = get_gateway()
        token = gw.issue_token("u1")

        user = gw.resolve(token)
        assert user.is_admin is True
        assert gw.cache.get("u1") == user

        # změna v DB se projeví až po invalidaci cache
        db.session.get(Profile, "u1").is_admin = False
        db.session.commit()
        assert gw.resolve(token).is_admin is True

        gw.cache.invalidate("u1")
        assert gw.resolve(token).is_admin is False


# ---------- /api/auth/check-session ----------

def test_check_session_anonymous(client):
    res = client.get("/api/auth/check-session")
    assert res.status_code == 200
    assert res.get_json() == {"hasSession": False, "userId": None, "userEmail": None, "isAdmin": False}


def test_check_session_customer(client, customer_headers):
    body = client.get("/api/auth/check-session", headers=customer_headers).get_json()
    assert body == {
        "hasSession": True,
        "userId": "cust-token",
        "userEmail": "cust-token@example.com",
        "isAdmin": False,
    }


def test_check_session_admin(client, admin_headers):
    body = client.get("/api/auth/check-session", headers=admin_headers).get_json()
    assert body["isAdmin"] is True


def test_check_session_malformed_header(client):
    res = client.get("/api/auth/check-session", headers={"Authorization": "Basic abc"})
    assert res.get_json()["hasSession"] is False
