# app/routers/auth.py
from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse
from sqlmodel import Session

from app.core.auth import (
    AuthContext,
    get_access_token,
    get_identity_gateway,
    require_resident,
)
from app.core.identity import IdentityGateway
from app.database import get_session
from app.repositories.user_repo import UserRepository
from app.schemas.auth import (
    AuthMessage,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    ResendVerificationRequest,
    SessionInfo,
)
from app.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Auth"])

repo = UserRepository()
service = AuthService(repo)


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(
    payload: RegisterRequest | None = None,
    session: Session = Depends(get_session),
    gateway: IdentityGateway = Depends(get_identity_gateway),
):
    """
    Sign up with email + password.

    Creates the Supabase Auth account (unverified), the resident profile
    row, and sends the verification email.
    """
    return service.register(session, gateway, payload or RegisterRequest())


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest | None = None,
    session: Session = Depends(get_session),
    gateway: IdentityGateway = Depends(get_identity_gateway),
):
    """
    Log in with email + password.

    Returns the session tokens plus the profile the client should cache.
    Unverified emails are rejected with EMAIL_NOT_VERIFIED.
    """
    return service.login(session, gateway, payload or LoginRequest())


@router.post("/logout", status_code=status.HTTP_302_FOUND)
def logout(
    token: str = Depends(get_access_token),
    gateway: IdentityGateway = Depends(get_identity_gateway),
):
    """
    Revoke the caller's session and redirect to the site root.

    Auth:
      - Authorization: Bearer <token> (NO_SESSION / INVALID_SESSION otherwise)

    A failed revoke at Supabase still redirects; the client clears its
    local session either way.
    """
    service.logout(gateway, token)
    return RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)


@router.post("/resend-verification", response_model=AuthMessage)
def resend_verification(
    payload: ResendVerificationRequest | None = None,
    gateway: IdentityGateway = Depends(get_identity_gateway),
):
    """
    Re-send the verification email to an existing account.

    Unknown emails get USER_NOT_FOUND; no account is created.
    """
    return service.resend_verification(gateway, payload or ResendVerificationRequest())


@router.get("/session", response_model=SessionInfo)
def read_session(ctx: AuthContext = Depends(require_resident)):
    """Return the verified identity and profile behind the bearer token."""
    return service.session_info(ctx.identity, ctx.user)
