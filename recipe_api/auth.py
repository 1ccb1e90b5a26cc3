"""
Authentication: password hashing, the session token registry and the
``login_required`` gate for protected routes.

A signed-in client carries ``{"username", "token"}`` in its Flask session
cookie. The cookie alone is not trusted: every token is also registered in
Redis when issued and removed on sign-out, and protected routes reject a
token the registry does not know.
"""

from __future__ import annotations

import logging
import secrets
from functools import wraps
from typing import Any, Callable, MutableMapping

import bcrypt
import redis
from flask import current_app, session

from .errors import AuthError, CacheError, ConflictError, ForbiddenError, StoreError, ValidationError
from .schemas import Credentials, parse_payload
from .storage import UserRepository

logger = logging.getLogger(__name__)

DEFAULT_ROUNDS = 14
DEFAULT_SESSION_TTL = 24 * 60 * 60


def hash_password(plain_password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    password = (plain_password or "").encode("utf-8")
    if not password:
        raise ValidationError("Password is empty")
    try:
        return bcrypt.hashpw(password, bcrypt.gensalt(rounds=rounds)).decode("utf-8")
    except ValueError as exc:
        # bcrypt refuses passwords longer than 72 bytes.
        raise ValidationError("Password is too long") from exc


def verify_password(plain_password: str, password_hash: str) -> bool:
    password = (plain_password or "").encode("utf-8")
    hashed = (password_hash or "").encode("utf-8")
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password, hashed)
    except ValueError:
        return False


class SessionRegistry:
    """Issued session tokens, kept in Redis until sign-out or expiry."""

    def __init__(self, client: redis.Redis, ttl: int = DEFAULT_SESSION_TTL) -> None:
        self._client = client
        self._ttl = ttl

    @staticmethod
    def _key(token: str) -> str:
        return f"session:{token}"

    def register(self, token: str, username: str) -> None:
        try:
            self._client.set(self._key(token), username, ex=self._ttl)
        except redis.RedisError as exc:
            raise CacheError(f"Could not register session: {exc}") from exc

    def is_active(self, token: str, username: str) -> bool:
        try:
            owner = self._client.get(self._key(token))
        except redis.RedisError as exc:
            raise CacheError(f"Could not look up session: {exc}") from exc
        if isinstance(owner, bytes):
            owner = owner.decode("utf-8")
        return owner is not None and owner == username

    def revoke(self, token: str) -> None:
        try:
            self._client.delete(self._key(token))
        except redis.RedisError as exc:
            raise CacheError(f"Could not revoke session: {exc}") from exc


class AuthService:
    def __init__(
        self,
        users: UserRepository,
        registry: SessionRegistry,
        *,
        rounds: int = DEFAULT_ROUNDS,
    ) -> None:
        self._users = users
        self._registry = registry
        self._rounds = rounds

    def sign_up(self, data: Any) -> None:
        credentials = parse_payload(Credentials, data)

        try:
            self._users.get_user(credentials.username)
        except KeyError:
            pass
        except Exception as exc:
            logger.exception("User lookup failed during sign-up")
            raise StoreError("Error while inserting a new user") from exc
        else:
            raise ConflictError(f"Username '{credentials.username}' is already taken")

        password_hash = hash_password(credentials.password, rounds=self._rounds)

        try:
            self._users.add_user(username=credentials.username, password_hash=password_hash)
        except Exception as exc:
            logger.exception("Failed to insert user")
            raise StoreError("Error while inserting a new user") from exc

        logger.info("Created user %s", credentials.username)

    def sign_in(self, data: Any, state: MutableMapping) -> None:
        credentials = parse_payload(Credentials, data)

        try:
            user = self._users.get_user(credentials.username)
        except Exception as exc:
            logger.info("Sign-in failed for %s: unknown user", credentials.username)
            raise AuthError() from exc

        if not verify_password(credentials.password, user.password):
            logger.info("Sign-in failed for %s: wrong password", credentials.username)
            raise AuthError()

        token = secrets.token_urlsafe(32)
        self._registry.register(token, user.username)

        state.clear()
        state["username"] = user.username
        state["token"] = token
        logger.info("Signed in %s", user.username)

    def sign_out(self, state: MutableMapping) -> None:
        token = state.get("token")
        if token:
            try:
                self._registry.revoke(token)
            except CacheError:
                logger.warning("Could not revoke session token", exc_info=True)
        username = state.get("username")
        state.clear()
        if username:
            logger.info("Signed out %s", username)

    def require_session(self, state: MutableMapping) -> str:
        """Return the signed-in username or raise :class:`ForbiddenError`."""
        token = state.get("token")
        username = state.get("username")
        if not token or not username:
            raise ForbiddenError()
        if not self._registry.is_active(token, username):
            raise ForbiddenError()
        return username


def login_required(view: Callable) -> Callable:
    """Reject the request with 403 before ``view`` runs when not signed in."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        auth_service: AuthService = current_app.config["AUTH_SERVICE"]
        auth_service.require_session(session)
        return view(*args, **kwargs)

    return wrapper


__all__ = [
    "AuthService",
    "SessionRegistry",
    "hash_password",
    "login_required",
    "verify_password",
]
