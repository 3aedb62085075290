from typing import List
from pydantic import Field

from app.core.permissions import RoleName
from app.schemas.common import FormModel


class LoginRequest(FormModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class TokenResponse(FormModel):
    access_token: str
    token_type: str = "bearer"
    user_id: int
    username: str
    full_name: str
    roles: List[str]


class PasswordChange(FormModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)


class UserCreate(FormModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    roles: List[RoleName] = Field(default_factory=list)


class UserRolesUpdate(FormModel):
    roles: List[RoleName] = Field(default_factory=list)


class UserActiveUpdate(FormModel):
    active: bool
