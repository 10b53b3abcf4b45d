"""
User Domain Models

Dashboard operators. Every user carries the single privileged role.
"""
from pydantic import BaseModel, EmailStr, Field, ConfigDict
from datetime import datetime

ADMIN_ROLE = "admin"


class User(BaseModel):
    """User as returned to API clients (never carries the password hash)"""

    id: str
    name: str = ""
    email: EmailStr
    role: str = ADMIN_ROLE
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        data = self.model_dump()
        data['created_at'] = data['created_at'].isoformat()
        return data


class UserCreate(BaseModel):
    name: str = Field("", max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=6)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
