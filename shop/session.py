from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError as SchemaError
from rich import print as rprint

from .api import ShopAPI
from .errors import AuthError, NetworkError, ValidationError
from .schemas import AuthResult, User
from .storage import KeyValueStorage

TOKEN_KEY = "token"
USER_KEY = "user"
MIN_PASSWORD_LENGTH = 6
PROFILE_FIELDS = ("name", "email", "phone", "address")


def validate_registration(password: str, confirm_password: str) -> None:
    """Reject a sign-up form before it reaches the server."""

    if password != confirm_password:
        raise ValidationError("Passwords do not match")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


def extract_credentials(data: Any) -> Tuple[str, Dict[str, Any]]:
    """Pull (token, user) out of a /login or /register response.

    The token may sit under ``accessToken`` or ``token``; the user under
    ``user`` or be the payload itself.
    """

    if not isinstance(data, dict):
        raise AuthError("Invalid response from server")
    token = data.get("accessToken") or data.get("token")
    user = data.get("user") or data
    if not token or not isinstance(user, dict) or not user:
        raise AuthError("Invalid response from server")
    return token, user


class SessionStore:
    """The signed-in identity, persisted in durable storage across restarts."""

    def __init__(self, api: ShopAPI, storage: KeyValueStorage) -> None:
        self.api = api
        self.storage = storage
        self.user: Optional[User] = None
        self._rehydrate()

    def _rehydrate(self) -> None:
        token = self.storage.get(TOKEN_KEY)
        data = self.storage.get_json(USER_KEY)
        if not token or not isinstance(data, dict):
            return
        try:
            self.user = User.model_validate(data)
        except SchemaError as exc:
            rprint(f"[yellow]Discarding stored session:[/yellow] {exc.error_count()} invalid field(s)")
            self.storage.remove(TOKEN_KEY)
            self.storage.remove(USER_KEY)

    @property
    def token(self) -> Optional[str]:
        return self.storage.get(TOKEN_KEY)

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    async def login(self, email: str, password: str) -> AuthResult:
        try:
            data = await self.api.auth.login(email, password)
            self._store_credentials(data)
        except (NetworkError, AuthError) as exc:
            return AuthResult(success=False, error=self._auth_error(exc, "Login failed"))
        return AuthResult(success=True)

    async def register(self, email: str, password: str, name: str) -> AuthResult:
        try:
            data = await self.api.auth.register(email, password, name)
            self._store_credentials(data)
        except (NetworkError, AuthError) as exc:
            return AuthResult(success=False, error=self._auth_error(exc, "Registration failed"))
        return AuthResult(success=True)

    def logout(self) -> None:
        self.storage.remove(TOKEN_KEY)
        self.storage.remove(USER_KEY)
        self.user = None

    async def update_profile(self, fields: Dict[str, Any]) -> bool:
        """PATCH the user's contact details and merge them into the stored user."""

        if self.user is None:
            return False
        changes = {key: value for key, value in fields.items() if key in PROFILE_FIELDS}
        try:
            await self.api.users.update(self.user.id, changes)
        except NetworkError as exc:
            rprint(f"[red]Error updating profile:[/red] {exc}")
            return False
        merged = {**self.user.to_wire(), **changes}
        self.storage.set_json(USER_KEY, merged)
        self.user = User.model_validate(merged)
        return True

    def _store_credentials(self, data: Any) -> None:
        token, user_data = extract_credentials(data)
        user_data = {key: value for key, value in user_data.items() if key not in ("accessToken", "token")}
        try:
            user = User.model_validate(user_data)
        except SchemaError as exc:
            raise AuthError("Invalid response from server") from exc
        self.storage.set(TOKEN_KEY, token)
        self.storage.set_json(USER_KEY, user_data)
        self.user = user

    @staticmethod
    def _auth_error(exc: Exception, fallback: str) -> str:
        payload = getattr(exc, "payload", None)
        if isinstance(payload, dict) and payload.get("message"):
            return str(payload["message"])
        if isinstance(payload, str) and payload:
            return payload
        return str(exc) or fallback
