"""
Pydantic models for user data.

``LoginRequest`` accepts the camelCase ``displayName`` the web client
sends.  All fields are optional at the schema level; presence checks
happen in ``AuthService`` so a missing email and an empty email produce
the same error.
"""

from typing import Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    email: Optional[str] = Field(None, examples=["a@x.com"])
    password: Optional[str] = Field(None, examples=["secret"])
    display_name: Optional[str] = Field(None, alias="displayName", examples=["Alice"])

    model_config = {
        "populate_by_name": True,
    }


class UserRead(BaseModel):
    """Schema for a user as returned by the API (no password hash)."""

    id: int
    email: str
    display_name: Optional[str] = None

    model_config = {
        "from_attributes": True,
    }


class LoginResponse(BaseModel):
    ok: bool = True
    user: UserRead
    token: str
    created: bool = False
