from __future__ import annotations

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    # Optional so that a missing field is answered with our own 400 message
    username: str | None = None
    password: str | None = None


class RegisterRequest(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1)
    role: str = "user"


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6)


class UserOut(BaseModel):
    id: int
    username: str
    role: str

    class Config:
        from_attributes = True


class TokenOut(BaseModel):
    token: str
    user: UserOut
