"""Optional bearer-token protection for booking endpoints."""

from __future__ import annotations

import secrets
from typing import Optional

from huddle.utils.config import Settings, get_settings


class AuthenticationError(Exception):
    """Base authentication failure."""


class MissingTokenError(AuthenticationError):
    """Raised when a protected call carries no bearer token."""


class InvalidTokenError(AuthenticationError):
    """Raised when the provided token does not match HUDDLE_API_TOKEN."""


class AuthService:
    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()

    @property
    def auth_enabled(self) -> bool:
        return bool(self._settings.api_token)

    def validate_bearer_token(self, bearer_token: Optional[str]) -> None:
        if not self.auth_enabled:
            return
        if not bearer_token:
            raise MissingTokenError("Authorization header with Bearer token is required")
        if not secrets.compare_digest(bearer_token, self._settings.api_token or ""):
            raise InvalidTokenError("Invalid bearer token")
