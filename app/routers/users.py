# app/routers/users.py
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app.core.auth import AuthContext, require_admin, require_resident, require_supadmin
from app.database import get_session
from app.repositories.user_repo import UserRepository
from app.schemas.user import (
    ProfileResponse,
    UserActiveUpdate,
    UserProfile,
    UserRead,
    UserRoleUpdate,
    UserUpdate,
)
from app.services.user_service import UserService

router = APIRouter(tags=["Users"])

repo = UserRepository()
service = UserService(repo)


# -------- Profile lookup --------


@router.get("/user/profile", response_model=ProfileResponse)
def read_profile(
    auth_id: str | None = Query(default=None, alias="authId"),
    session: Session = Depends(get_session),
):
    """
    Fetch a user's profile by Supabase auth id.

    Query params:
      - authId (required): 400 MISSING_AUTH_ID if absent
    """
    user = service.get_profile(session, auth_id)
    return ProfileResponse(profile=UserProfile.model_validate(user, from_attributes=True))


# -------- Self profile --------


@router.get("/users/me", response_model=UserRead)
def read_me(ctx: AuthContext = Depends(require_resident)):
    """
    Return the authenticated user's profile.

    Auth:
      - Requires a verified Supabase token and an active profile.
    """
    return ctx.user


@router.patch("/users/me", response_model=UserRead)
def update_me(
    payload: UserUpdate,
    session: Session = Depends(get_session),
    ctx: AuthContext = Depends(require_resident),
):
    """
    Update the authenticated user's display fields (partial update).
    """
    return service.update_me(session, ctx.user, payload)


# -------- Admin endpoints --------


@router.get(
    "/users",
    response_model=list[UserRead],
    dependencies=[Depends(require_admin)],
)
def list_users(
    session: Session = Depends(get_session),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
):
    """
    List all users (admin only).

    Pagination via skip/limit.
    """
    return service.list_users(session, skip, limit)


@router.get(
    "/users/{user_id}",
    response_model=UserRead,
    dependencies=[Depends(require_admin)],
)
def get_user(
    user_id: int,
    session: Session = Depends(get_session),
):
    """
    Get a specific user by id (admin only).
    """
    return service.get_user(session, user_id)


@router.patch("/users/{user_id}/active", response_model=UserRead)
def set_user_active(
    user_id: int,
    payload: UserActiveUpdate,
    session: Session = Depends(get_session),
    ctx: AuthContext = Depends(require_admin),
):
    """
    Activate or deactivate a user (admin only).

    Admins cannot deactivate themselves or touch supadmin accounts.
    """
    return service.set_active(session, ctx.user, user_id, payload)


@router.patch("/users/{user_id}/role", response_model=UserRead)
def change_role(
    user_id: int,
    payload: UserRoleUpdate,
    session: Session = Depends(get_session),
    ctx: AuthContext = Depends(require_supadmin),
):
    """
    Update a user's role (supadmin only).

    Allowed roles: resident, admin, supadmin, field_officer, partner.
    """
    return service.update_role(session, ctx.user, user_id, payload)
