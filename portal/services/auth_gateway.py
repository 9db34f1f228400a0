# portal/services/auth_gateway.py
"""
Ověření session tokenu a práv administrátora.

Token vydává identity provider (podepsaný SECRET_KEY, itsdangerous), tady ho
jen ověřujeme a k id uživatele dohledáme profil. Výsledek lookupu drží
`ProfileCache` s TTL, aby se is_admin nečetl z DB při každém requestu.
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from functools import wraps
from typing import Callable

from flask import current_app, jsonify, request
from flask_login import UserMixin, current_user
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from portal.extensions import db, login_manager
from portal.models import Profile

logger = logging.getLogger(__name__)


class AuthError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@dataclass(frozen=True)
class SessionUser(UserMixin):
    """Odlehčená kopie profilu pro current_user (nedrží ORM session)."""
    id: str
    email: str | None
    full_name: str | None
    is_admin: bool

    def get_id(self):
        return self.id


class ProfileCache:
    """Jednoduchá TTL cache id -> SessionUser, bezpečná pro více vláken."""

    def __init__(self, ttl_seconds: float = 300, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, SessionUser]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> SessionUser | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: SessionUser) -> None:
        with self._lock:
            now = self._clock()
            # úklid prošlých záznamů
            expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
            for k in expired:
                del self._entries[k]
            self._entries[key] = (now + self.ttl_seconds, value)

    def invalidate(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class AuthGateway:
    def __init__(self, cache: ProfileCache | None = None):
        self.cache = cache

    def init_app(self, app) -> None:
        if self.cache is None:
            self.cache = ProfileCache(ttl_seconds=app.config.get("PROFILE_CACHE_TTL", 300))
        app.extensions["auth_gateway"] = self

    # ── Tokeny ───────────────────────────────────────────────────────────────

    def _serializer(self) -> URLSafeTimedSerializer:
        secret = current_app.config.get("SECRET_KEY")
        if not secret:
            raise RuntimeError("SECRET_KEY není nastaven – bez něj nelze ověřovat tokeny.")
        salt = current_app.config.get("AUTH_TOKEN_SALT", "portal-session")
        return URLSafeTimedSerializer(secret_key=secret, salt=salt)

    def issue_token(self, user_id: str) -> str:
        return self._serializer().dumps({"uid": str(user_id)})

    def verify_token(self, token: str) -> str:
        max_age = int(current_app.config.get("AUTH_TOKEN_MAX_AGE", 60 * 60 * 12))
        try:
            data = self._serializer().loads(token, max_age=max_age)
        except SignatureExpired:
            raise AuthError("Platnost přihlášení vypršela")
        except BadSignature:
            raise AuthError("Neplatný token")
        uid = data.get("uid") if isinstance(data, dict) else None
        if not uid:
            raise AuthError("Neplatný token")
        return str(uid)

    # ── Profily ──────────────────────────────────────────────────────────────

    def resolve(self, token: str) -> SessionUser:
        uid = self.verify_token(token)
        cached = self.cache.get(uid)
        if cached is not None:
            return cached

        profile = db.session.get(Profile, uid)
        if profile is None:
            raise AuthError("Profil uživatele nenalezen")

        user = SessionUser(
            id=profile.id,
            email=profile.email,
            full_name=profile.full_name,
            is_admin=bool(profile.is_admin),
        )
        self.cache.set(uid, user)
        return user

    def load_from_request(self, req):
        header = req.headers.get("Authorization", "")
        if not header.lower().startswith("bearer "):
            return None
        token = header.split(" ", 1)[1].strip()
        if not token:
            return None
        try:
            return self.resolve(token)
        except AuthError as e:
            logger.info("[auth] token rejected for %s: %s", req.path, e.message)
            return None


def get_gateway() -> AuthGateway:
    return current_app.extensions["auth_gateway"]


@login_manager.request_loader
def load_user_from_request(req):
    return get_gateway().load_from_request(req)


def admin_required(view):
    """Pustí dál jen přihlášeného administrátora, jinak JSON 401/403."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify({"error": "Nepřihlášený uživatel"}), 401
        if not getattr(current_user, "is_admin", False):
            current_app.logger.warning(
                "[auth] non-admin %s tried %s", current_user.get_id(), request.path
            )
            return jsonify({"error": "Přístup pouze pro administrátory"}), 403
        return view(*args, **kwargs)

    return wrapped
