from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

EMAIL_PATTERN = r'^[^@\s]+@[^@\s]+\.[^@\s]+$'


class RegisterRequest(BaseModel):
    username: str = Field(min_length=1, max_length=256)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=256)
    password: str = Field(min_length=8)

    @field_validator('password')
    @classmethod
    def fits_bcrypt(cls, value):
        if len(value.encode('utf-8')) > 72:
            raise ValueError('password must be at most 72 bytes')
        return value


class LoginRequest(BaseModel):
    email: str
    password: str


class UserView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    created_at: datetime


class AuthResult(BaseModel):
    token: str
    user: UserView


class EntryCreate(BaseModel):
    site_name: str = Field(min_length=1, max_length=256)
    site_url: Optional[str] = Field(default=None, max_length=2048)
    username: str = Field(max_length=256)
    password: str = Field(min_length=1)
    notes: Optional[str] = None


class EntryUpdate(BaseModel):
    site_name: Optional[str] = Field(default=None, min_length=1, max_length=256)
    site_url: Optional[str] = Field(default=None, max_length=2048)
    username: Optional[str] = Field(default=None, max_length=256)
    password: Optional[str] = Field(default=None, min_length=1)
    notes: Optional[str] = None

    def changes(self) -> dict:
        """Fields the caller actually supplied; absent and null both mean keep."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class EntryView(BaseModel):
    id: str
    site_name: str
    site_url: Optional[str] = None
    username: str
    password: str
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
