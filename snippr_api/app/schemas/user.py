"""
Pydantic models for user registration, login and token responses.

Passwords only ever appear in request models; response models carry
the user id and email and nothing else.
"""

from pydantic import BaseModel, Field, field_validator


class UserCredentials(BaseModel):
    """Email/password pair used both to register and to log in."""

    email: str = Field(..., min_length=1, max_length=320, examples=["alice@example.com"])
    password: str = Field(..., min_length=1, examples=["secret123"])

    @field_validator("email")
    @classmethod
    def strip_email(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Email must not be blank")
        return v


class UserRead(BaseModel):
    """Schema for reading a user from the API."""

    id: int
    email: str

    model_config = {
        "from_attributes": True,
    }


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: str = Field(..., description="ISO-8601 UTC timestamp after which the token is rejected")
