"""Users and login sessions, kept in SQLite.

Passwords are bcrypt hashes. Session tokens are random, time-limited, and
travel in the ``gamenite_session`` cookie.
"""

import secrets
import sqlite3
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt

SESSION_COOKIE = "gamenite_session"

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL DEFAULT '',
    password_hash BLOB,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS sessions (
    token TEXT PRIMARY KEY,
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    expires_at TEXT NOT NULL
);
"""


class AuthError(Exception):
    pass


class EmailAlreadyRegistered(AuthError):
    pass


class InvalidCredentials(AuthError):
    pass


@dataclass(frozen=True)
class User:
    id: str
    email: str
    name: str = ""
    created_at: str = ""


def _hash_password(password: str) -> bytes:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt())


def _check_password(password: str, hashed: bytes | None) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode(), hashed)
    except ValueError:
        return False


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthStore:
    def __init__(self, db_path: str = "auth.db", session_ttl: timedelta = timedelta(hours=48)):
        self.db_path = db_path
        self.session_ttl = session_ttl
        self._lock = threading.Lock()
        self._db = sqlite3.connect(db_path, check_same_thread=False)
        self._db.row_factory = sqlite3.Row
        self._db.execute("PRAGMA foreign_keys = ON")
        self._db.executescript(SCHEMA)
        self._db.commit()

    def close(self) -> None:
        self._db.close()

    # ── Users ──

    def create_user(self, email: str, password: str | None, name: str = "") -> User:
        email = _normalize_email(email)
        if not email:
            raise AuthError("Email is required")
        if password is not None and len(password) < 8:
            raise AuthError("Password must be at least 8 characters")
        user = User(
            id=uuid.uuid4().hex,
            email=email,
            name=name,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        hashed = _hash_password(password) if password is not None else None
        with self._lock:
            try:
                self._db.execute(
                    "INSERT INTO users (id, email, name, password_hash, created_at) VALUES (?, ?, ?, ?, ?)",
                    (user.id, user.email, user.name, hashed, user.created_at),
                )
                self._db.commit()
            except sqlite3.IntegrityError as exc:
                raise EmailAlreadyRegistered(f"An account for {email} already exists") from exc
        return user

    def get_user_by_email(self, email: str) -> User | None:
        with self._lock:
            row = self._db.execute(
                "SELECT id, email, name, created_at FROM users WHERE email = ?",
                (_normalize_email(email),),
            ).fetchone()
        return User(**dict(row)) if row else None

    def get_or_create_oauth_user(self, email: str, name: str = "") -> User:
        """Find the account for an externally verified email, creating it if needed."""
        existing = self.get_user_by_email(email)
        if existing:
            return existing
        return self.create_user(email, None, name=name)

    def authenticate(self, email: str, password: str) -> User:
        with self._lock:
            row = self._db.execute(
                "SELECT id, email, name, created_at, password_hash FROM users WHERE email = ?",
                (_normalize_email(email),),
            ).fetchone()
        if not row or not _check_password(password, row["password_hash"]):
            raise InvalidCredentials("Invalid email or password")
        return User(id=row["id"], email=row["email"], name=row["name"], created_at=row["created_at"])

    # ── Sessions ──

    def create_session(self, user: User) -> str:
        token = secrets.token_urlsafe(32)
        expires_at = datetime.now(timezone.utc) + self.session_ttl
        with self._lock:
            self._db.execute(
                "INSERT INTO sessions (token, user_id, expires_at) VALUES (?, ?, ?)",
                (token, user.id, expires_at.isoformat()),
            )
            self._db.commit()
        return token

    def get_session_user(self, token: str | None) -> User | None:
        """Return the user for a live session token; expired tokens are removed."""
        if not token:
            return None
        with self._lock:
            row = self._db.execute(
                """
                SELECT u.id, u.email, u.name, u.created_at, s.expires_at
                FROM sessions s JOIN users u ON u.id = s.user_id
                WHERE s.token = ?
                """,
                (token,),
            ).fetchone()
        if not row:
            return None
        if datetime.fromisoformat(row["expires_at"]) <= datetime.now(timezone.utc):
            self.revoke_session(token)
            return None
        return User(id=row["id"], email=row["email"], name=row["name"], created_at=row["created_at"])

    def revoke_session(self, token: str) -> None:
        with self._lock:
            self._db.execute("DELETE FROM sessions WHERE token = ?", (token,))
            self._db.commit()
