from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from vidbrief.schemas.base import CamelModel


class SignupRequest(CamelModel):
    email: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=1, max_length=1024)
    name: str = Field(min_length=1, max_length=200)


class SigninRequest(CamelModel):
    email: str = Field(min_length=1, max_length=320)
    password: str = Field(min_length=1, max_length=1024)


class RefreshRequest(CamelModel):
    refresh_token: str = Field(min_length=1)


class UserProfile(CamelModel):
    id: UUID
    email: str
    name: str | None = None
    image_url: str | None = None
    credits: int
    created_at: datetime | None = None


class AuthResponse(CamelModel):
    token: str
    refresh_token: str
    expires_at: datetime
    user: UserProfile
