"""
User and Session Models

The ledger never looks inside these. It only needs to know which user the
currently loaded snapshot belongs to.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserProfile(BaseModel):
    """Profile of an authenticated user."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=254)
    birth_date: Optional[date] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    avatar: Optional[str] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        if "@" not in v:
            raise ValueError(f"Invalid e-mail address: {v}")
        return v.lower()

    @property
    def first_name(self) -> str:
        """First word of the name, used for greetings."""
        return self.name.split(" ")[0]


class AuthSession(BaseModel):
    """An authenticated session as returned by the auth service."""

    user: UserProfile
    token: str = Field(..., min_length=1)
    remember: bool = True
