from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional
from enum import Enum


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class UserLogin(BaseModel):
    username: str
    password: str


class UserRegister(BaseModel):
    username: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)


class CurrentUser(BaseModel):
    """Authenticated caller, as carried in the session token"""
    id: str
    role: UserRole = UserRole.USER
    username: Optional[str] = None
    upstream_token: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class UserResponse(BaseModel):
    id: str
    role: UserRole
    username: Optional[str] = None


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class RoleUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId")
    new_role: UserRole = Field(..., alias="newRole")
