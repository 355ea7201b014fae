"""
Local Account Storage

Accounts live in a single JSON file next to the ledger snapshots.
Passwords are stored as salted PBKDF2-HMAC-SHA256 hashes, never in clear.

This is meant for a single machine / single household install. Password
recovery only records the request; there is no mail transport.

The "remember me" e-mail is kept in a separate small file beside the
accounts file, so it is readable before anyone logs in.
"""

import hashlib
import hmac
import json
import os
import secrets
from datetime import date, datetime
from pathlib import Path
from typing import Optional
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError

from bliq_money.config import get_settings
from bliq_money.models.user import AuthSession, UserProfile
from bliq_money.services.auth.interface import (
    AuthServiceInterface,
    AuthenticationError,
)


PBKDF2_ITERATIONS = 200_000


def hash_password(password: str, salt: Optional[bytes] = None) -> tuple[bytes, bytes]:
    """Return (salt, hash) for a password. A new salt is generated if none is given."""
    if salt is None:
        salt = os.urandom(16)
    pwd_hash = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return salt, pwd_hash


def verify_password(password: str, salt: bytes, pwd_hash: bytes) -> bool:
    _salt, new_hash = hash_password(password, salt)
    return hmac.compare_digest(new_hash, pwd_hash)


class LocalAuthService(AuthServiceInterface):
    """File-backed accounts keyed by lower-cased e-mail."""

    def __init__(
        self,
        users_file: Optional[Path] = None,
        min_password_length: Optional[int] = None,
    ):
        settings = get_settings()
        self._users_file = Path(users_file or settings.storage.users_file)
        self._remember_file = self._users_file.with_name("remembered_login.json")
        self._min_password_length = (
            min_password_length
            if min_password_length is not None
            else settings.app.min_password_length
        )

    def _read_users(self) -> dict[str, dict]:
        if not self._users_file.exists():
            return {}
        try:
            return json.loads(self._users_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise AuthenticationError(
                f"Failed to read users file {self._users_file}: {e}",
                user_message="Accounts are unavailable right now. Please try again.",
            )

    def _write_users(self, users: dict[str, dict]) -> None:
        try:
            self._users_file.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._users_file.with_suffix(".tmp")
            tmp_path.write_text(json.dumps(users, indent=2), encoding="utf-8")
            os.replace(tmp_path, self._users_file)
        except OSError as e:
            raise AuthenticationError(
                f"Failed to write users file {self._users_file}: {e}",
                user_message="Your account could not be saved. Please try again.",
            )

    @staticmethod
    def _profile_from_record(record: dict) -> UserProfile:
        return UserProfile.model_validate(
            {k: v for k, v in record.items() if k not in ("salt", "password_hash", "reset_requested_at")}
        )

    @staticmethod
    def _new_session(user: UserProfile, remember: bool) -> AuthSession:
        return AuthSession(user=user, token=secrets.token_urlsafe(32), remember=remember)

    async def login(self, email: str, password: str, remember: bool = True) -> AuthSession:
        record = self._read_users().get(email.strip().lower())
        if record is None or not verify_password(
            password,
            bytes.fromhex(record["salt"]),
            bytes.fromhex(record["password_hash"]),
        ):
            raise AuthenticationError("Invalid e-mail or password")
        user = self._profile_from_record(record)
        self._set_remembered_email(user.email if remember else None)
        return self._new_session(user, remember)

    async def signup(
        self,
        name: str,
        email: str,
        password: str,
        birth_date: date,
    ) -> AuthSession:
        if len(password or "") < self._min_password_length:
            raise AuthenticationError(
                f"Password must have at least {self._min_password_length} characters"
            )
        if birth_date and birth_date > date.today():
            raise AuthenticationError("Birth date cannot be in the future")

        try:
            user = UserProfile(
                id=str(uuid4()),
                name=name,
                email=email,
                birth_date=birth_date,
                created_at=datetime.utcnow(),
            )
        except PydanticValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors())
            raise AuthenticationError(f"Invalid signup data: {fields}")

        users = self._read_users()
        if user.email in users:
            raise AuthenticationError("An account with this e-mail already exists")

        salt, pwd_hash = hash_password(password)
        record = user.model_dump(mode="json")
        record["salt"] = salt.hex()
        record["password_hash"] = pwd_hash.hex()
        users[user.email] = record
        self._write_users(users)

        return self._new_session(user, remember=True)

    async def reset_password(self, email: str) -> bool:
        users = self._read_users()
        key = email.strip().lower()
        if key not in users:
            return False
        users[key]["reset_requested_at"] = datetime.utcnow().isoformat()
        self._write_users(users)
        return True

    def remembered_email(self) -> Optional[str]:
        if not self._remember_file.exists():
            return None
        try:
            return json.loads(self._remember_file.read_text(encoding="utf-8")).get("email")
        except (OSError, json.JSONDecodeError, AttributeError):
            return None

    def _set_remembered_email(self, email: Optional[str]) -> None:
        try:
            if email is None:
                self._remember_file.unlink(missing_ok=True)
                return
            self._remember_file.parent.mkdir(parents=True, exist_ok=True)
            self._remember_file.write_text(json.dumps({"email": email}), encoding="utf-8")
        except OSError as e:
            raise AuthenticationError(
                f"Failed to update {self._remember_file}: {e}",
                user_message="Your login preference could not be saved. Please try again.",
            )
