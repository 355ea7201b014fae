"""Authentication services package."""

from bliq_money.services.auth.interface import (
    AuthServiceInterface,
    AuthenticationError,
)
from bliq_money.services.auth.local import (
    LocalAuthService,
    hash_password,
    verify_password,
)

__all__ = [
    "AuthServiceInterface",
    "AuthenticationError",
    "LocalAuthService",
    "hash_password",
    "verify_password",
]
