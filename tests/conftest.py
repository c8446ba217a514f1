"""Shared fixtures: in-memory database, fake Supabase Auth, API test client.

The real IdentityGateway is used throughout; only the Supabase clients it
talks to are replaced by `FakeSupabaseClient`, which keeps accounts and
issued tokens in memory and records every call.
"""
import os
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

os.environ.setdefault("SUPABASE_URL", "http://supabase.test")
os.environ.setdefault("SUPABASE_KEY", "anon-test-key")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "service-test-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine
from supabase import AuthApiError, AuthRetryableError

from app.core.auth import get_identity_gateway
from app.core.config import get_settings
from app.core.identity import IdentityGateway
from app.database import get_session
from app.main import app
from app.models.report import Report
from app.models.user import ApplicationUser


class FakeAuthProvider:
    """In-memory stand-in for Supabase Auth."""

    def __init__(self):
        self.accounts: dict[str, dict] = {}  # email -> {"user", "password"}
        self.tokens: dict[str, SimpleNamespace] = {}  # access token -> user
        self.calls: list[str] = []
        self.fail_revoke = False
        self.fail_invite = False
        self.unavailable = False

    # ---- helpers for tests ----

    def add_account(
        self,
        email: str,
        password: str = "correct-horse",
        confirmed: bool = True,
        full_name: str | None = None,
    ) -> SimpleNamespace:
        user = SimpleNamespace(
            id=str(uuid.uuid4()),
            email=email,
            email_confirmed_at=datetime.now(timezone.utc) if confirmed else None,
            user_metadata={"full_name": full_name} if full_name else {},
        )
        self.accounts[email] = {"user": user, "password": password}
        return user

    def issue_token(self, user: SimpleNamespace) -> str:
        token = f"token-{uuid.uuid4().hex}"
        self.tokens[token] = user
        return token

    def _check_available(self):
        if self.unavailable:
            raise AuthRetryableError("Service unavailable", 503)


class _FakeAdmin:
    def __init__(self, provider: FakeAuthProvider):
        self.provider = provider

    def create_user(self, attributes: dict):
        self.provider.calls.append("create_user")
        self.provider._check_available()
        email = attributes["email"]
        if email in self.provider.accounts:
            raise AuthApiError(
                "A user with this email address has already been registered",
                422,
                "email_exists",
            )
        user = self.provider.add_account(
            email,
            attributes["password"],
            confirmed=attributes.get("email_confirm", False),
            full_name=attributes.get("user_metadata", {}).get("full_name"),
        )
        return SimpleNamespace(user=user)

    def invite_user_by_email(self, email: str, options=None):
        self.provider.calls.append("invite_user_by_email")
        self.provider._check_available()
        if self.provider.fail_invite:
            raise AuthApiError("Email rate limit exceeded", 429, "over_email_send_rate_limit")
        return SimpleNamespace(user=self.provider.accounts[email]["user"])

    def list_users(self, page=None, per_page=None):
        self.provider.calls.append("list_users")
        self.provider._check_available()
        users = [a["user"] for a in self.provider.accounts.values()]
        page = page or 1
        per_page = per_page or 50
        return users[(page - 1) * per_page : page * per_page]

    def sign_out(self, jwt: str, scope="global"):
        self.provider.calls.append("sign_out")
        if self.provider.fail_revoke:
            raise AuthApiError("Revoke failed", 500, "unexpected_failure")
        self.provider.tokens.pop(jwt, None)


class _FakeAuth:
    def __init__(self, provider: FakeAuthProvider):
        self.provider = provider
        self.admin = _FakeAdmin(provider)

    def get_user(self, jwt: str | None = None):
        self.provider.calls.append("get_user")
        self.provider._check_available()
        user = self.provider.tokens.get(jwt)
        if user is None:
            raise AuthApiError("invalid JWT: token is expired", 403, "bad_jwt")
        return SimpleNamespace(user=user)

    def sign_in_with_password(self, credentials: dict):
        self.provider.calls.append("sign_in_with_password")
        self.provider._check_available()
        account = self.provider.accounts.get(credentials["email"])
        if account is None or account["password"] != credentials["password"]:
            raise AuthApiError("Invalid login credentials", 400, "invalid_credentials")
        user = account["user"]
        if user.email_confirmed_at is None:
            raise AuthApiError("Email not confirmed", 400, "email_not_confirmed")
        token = self.provider.issue_token(user)
        session = SimpleNamespace(
            access_token=token,
            refresh_token=f"refresh-{token}",
            expires_in=3600,
        )
        return SimpleNamespace(user=user, session=session)


class FakeSupabaseClient:
    def __init__(self, provider: FakeAuthProvider):
        self.auth = _FakeAuth(provider)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def provider():
    return FakeAuthProvider()


@pytest.fixture
def settings():
    return get_settings().model_copy(update={"SUPABASE_JWT_SECRET": None})


@pytest.fixture
def gateway(provider, settings):
    return IdentityGateway(
        admin_client=lambda: FakeSupabaseClient(provider),
        public_client=lambda: FakeSupabaseClient(provider),
        settings=settings,
    )


@pytest.fixture
def override_dependencies(engine, gateway):
    """Point a FastAPI app at the test database and fake provider."""

    def _get_session():
        with Session(engine) as s:
            yield s

    def install(target_app):
        target_app.dependency_overrides[get_session] = _get_session
        target_app.dependency_overrides[get_identity_gateway] = lambda: gateway
        return target_app

    yield install
    app.dependency_overrides.clear()


@pytest.fixture
def client(override_dependencies):
    override_dependencies(app)
    return TestClient(app)


@pytest.fixture
def make_user(session, provider):
    """
    Create a provider account plus its users row; returns (user, token).
    """

    def _make(
        role: str = "resident",
        is_active: bool = True,
        email: str | None = None,
        with_profile: bool = True,
        full_name: str = "Test User",
    ):
        email = email or f"{uuid.uuid4().hex[:8]}@example.com"
        account = provider.add_account(email, full_name=full_name)
        token = provider.issue_token(account)
        user = None
        if with_profile:
            user = ApplicationUser(
                auth_id=account.id,
                email=email,
                full_name=full_name,
                username=full_name.lower().replace(" ", "_"),
                role=role,
                is_active=is_active,
            )
            session.add(user)
            session.commit()
            session.refresh(user)
        return user, token

    return _make


@pytest.fixture
def add_report(session):
    """Insert a report row directly; each call is submitted an hour later."""
    base = datetime(2025, 11, 1, tzinfo=timezone.utc)
    counter = {"n": 0}

    def _add(user_id: int, status: str = "pending", priority: str = "medium", **kw):
        counter["n"] += 1
        report = Report(
            user_id=user_id,
            report_type=kw.pop("report_type", "illegal_dump"),
            status=status,
            priority=priority,
            submitted_at=base + timedelta(hours=counter["n"]),
            **kw,
        )
        session.add(report)
        session.commit()
        session.refresh(report)
        return report

    return _add
