# storefront/api/routes/auth.py
from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.security import OAuth2PasswordRequestForm

from storefront.api.deps import get_user_service
from storefront.api.routes.users import user_out
from storefront.api.schemas.user import SignupRequest, SignupResponse, TokenResponse
from storefront.core.security import create_access_token, verify_password
from storefront.services.users import UserService

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/signup", response_model=SignupResponse, status_code=201)
def signup(payload: SignupRequest, users: UserService = Depends(get_user_service)):
    """
    Register a regular (non-admin) user. Blank names, malformed emails and
    passwords shorter than 6 characters are a 400; a taken email is a 409.
    The password is stored as a bcrypt hash in 'password_hash'.
    """
    user = users.create_user(payload.name, payload.email, payload.password)
    return {"message": "User created successfully", "user": user_out(user)}


@router.post("/token", response_model=TokenResponse)
def token(response: Response, form_data: OAuth2PasswordRequestForm = Depends(), users: UserService = Depends(get_user_service)):
    """
    Token endpoint used by OAuth2PasswordRequestForm clients; `username` is the email.
    Returns a signed JWT whose subject is the user id, and also sets it as an
    'access_token' cookie for browser flows.
    """
    invalid = HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    user = users.find_by_email(form_data.username)
    if user is None:
        raise invalid
    if not user.password_hash or not verify_password(form_data.password, user.password_hash):
        raise invalid

    access_token = create_access_token(subject=user.id)
    response.set_cookie(key="access_token", value=access_token, httponly=True, samesite="lax")
    return {"access_token": access_token, "token_type": "bearer", "user": user_out(user)}
