# storefront/api/schemas/user.py
from pydantic import BaseModel
from typing import Optional


# emails, names and password lengths are validated by UserService so bad input
# is a 400 with a message rather than a 422


class SignupRequest(BaseModel):
    name: str
    email: str
    password: str


class UserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    is_admin: Optional[bool] = None


class PasswordChange(BaseModel):
    current_password: str
    new_password: str


class UserOut(BaseModel):
    id: str
    name: str
    email: str
    is_admin: bool = False
    created_at: Optional[str] = None


class SignupResponse(BaseModel):
    message: str
    user: UserOut


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: Optional[UserOut] = None
