"""
Abstract Authentication Interface

The ledger only needs an authenticated identity. How it is obtained
(local accounts, an identity provider) is up to the implementation.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from bliq_money.models.user import AuthSession
from bliq_money.services.errors import ExternalCollaboratorError


class AuthServiceInterface(ABC):
    """Login, signup and password reset."""

    @abstractmethod
    async def login(self, email: str, password: str, remember: bool = True) -> AuthSession:
        """
        Authenticate an existing user.

        Raises:
            AuthenticationError: With a user-facing message on failure
        """
        pass

    @abstractmethod
    async def signup(
        self,
        name: str,
        email: str,
        password: str,
        birth_date: date,
    ) -> AuthSession:
        """
        Create an account and log it in.

        Raises:
            AuthenticationError: If the data is invalid or the e-mail is taken
        """
        pass

    @abstractmethod
    async def reset_password(self, email: str) -> bool:
        """
        Start the password recovery of an account.

        Succeeds for unknown addresses too, so callers cannot tell which
        e-mails are registered. Returns whether an account was found, for
        auditing only.
        """
        pass

    @abstractmethod
    def remembered_email(self) -> Optional[str]:
        """E-mail of the last login made with "remember me", if any."""
        pass


class AuthenticationError(ExternalCollaboratorError):
    """Login, signup or reset failed. The message is shown to the user."""
    pass
