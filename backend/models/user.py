from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from enum import Enum

from utils.hash import password_fits_bcrypt


class Role(str, Enum):
    ADMIN = "admin"
    COLLECTOR = "collector"


def _check_password(value: str) -> str:
    if not password_fits_bcrypt(value):
        raise ValueError("Password too long (max 72 bytes)")
    return value


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def password_limit(cls, v: str) -> str:
        return _check_password(v)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class UserCreate(RegisterRequest):
    role: Role = Role.COLLECTOR


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6)
    role: Optional[Role] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v

    @field_validator("password")
    @classmethod
    def password_limit(cls, v: Optional[str]) -> Optional[str]:
        return _check_password(v) if v is not None else v
