from typing import List

from fastapi import APIRouter, Depends, Response, status

from storefront.api.deps import get_current_user, get_user_service, require_admin
from storefront.api.schemas.user import PasswordChange, UserOut, UserUpdate
from storefront.models.user import User
from storefront.services.users import UserService

router = APIRouter(prefix="/api/users", tags=["users"])


def user_out(user: User) -> UserOut:
    return UserOut(**user.mask_secret())


@router.get("", response_model=List[UserOut], dependencies=[Depends(require_admin)])
def list_users(users: UserService = Depends(get_user_service)):
    return [user_out(u) for u in users.list_users()]


@router.get("/me", response_model=UserOut)
def read_me(current_user: User = Depends(get_current_user)):
    return user_out(current_user)


@router.put("/me/password", status_code=status.HTTP_204_NO_CONTENT)
def change_my_password(
    payload: PasswordChange,
    current_user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    """Change the caller's own password; the current one must be supplied."""
    users.update_password(current_user.id, payload.current_password, payload.new_password)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{user_id}", response_model=UserOut, dependencies=[Depends(require_admin)])
def get_user(user_id: str, users: UserService = Depends(get_user_service)):
    return user_out(users.get_user(user_id))


@router.patch("/{user_id}", response_model=UserOut, dependencies=[Depends(require_admin)])
def update_user(user_id: str, payload: UserUpdate, users: UserService = Depends(get_user_service)):
    """
    Admin edit of name, email, password or admin flag. Omitted fields are kept;
    a new password is hashed before it is stored.
    """
    return user_out(users.update_user(user_id, payload.model_dump(exclude_unset=True)))


@router.delete("/{user_id}", dependencies=[Depends(require_admin)])
def delete_user(user_id: str, users: UserService = Depends(get_user_service)):
    users.delete_user(user_id)
    return {"ok": True}
