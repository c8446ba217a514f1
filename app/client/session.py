# app/client/session.py
"""
Client-side session handling for scripts and tools that call the API.

A `SessionStore` holds at most one `SessionContext` on disk. The session is
created by a successful login and destroyed by logout or by any 401 from a
guarded endpoint; nothing else writes it.

    store = SessionStore()
    with CleanJamaicaClient("http://localhost:8000", store) as api:
        api.login("jane@example.com", "secret-pass")
        me = api.request("GET", "/users/me").json()
        api.logout()
"""
import json
import logging
import os
from pathlib import Path
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError
from sqlmodel import SQLModel

from app.schemas.auth import AuthUserRead, ProfileSummary

logger = logging.getLogger(__name__)

DEFAULT_SESSION_PATH = Path.home() / ".cleanjamaica" / "session.json"


class SessionContext(SQLModel):
    """Tokens plus the profile cached alongside them."""

    access_token: str
    refresh_token: str
    expires_in: int | None = None
    user: AuthUserRead
    profile: ProfileSummary | None = None


class SessionStore:
    """JSON-file holder for the current session."""

    def __init__(self, path: Path | str = DEFAULT_SESSION_PATH):
        self.path = Path(path)

    def save(self, context: SessionContext) -> None:
        """Write the session, readable by the owner only."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        # An existing file keeps its old mode through O_CREAT
        os.fchmod(fd, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(context.model_dump_json(by_alias=True))

    def load(self) -> SessionContext | None:
        """Stored session, or None if there is none or it is unreadable."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError):
            logger.warning("Discarding unreadable session file %s", self.path)
            return None
        try:
            return SessionContext.model_validate_json(raw)
        except PydanticValidationError:
            logger.warning("Discarding unreadable session file %s", self.path)
            return None

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)

    def access_token(self) -> str | None:
        context = self.load()
        return context.access_token if context else None

    def is_logged_in(self) -> bool:
        return self.access_token() is not None

    def stored_profile(self) -> ProfileSummary | None:
        context = self.load()
        return context.profile if context else None


class ApiError(Exception):
    """Non-2xx answer from the API."""

    def __init__(self, status_code: int, code: str, message: str):
        self.status_code = status_code
        self.code = code
        self.message = message
        super().__init__(f"{status_code} {code}: {message}")

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        try:
            body: Any = response.json()
        except json.JSONDecodeError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        return cls(
            response.status_code,
            body.get("code") or "HTTP_ERROR",
            body.get("message") or response.reason_phrase,
        )


class SessionExpired(ApiError):
    """A guarded endpoint rejected the stored session; it has been cleared."""


class CleanJamaicaClient:
    """
    Small httpx client bound to a SessionStore.

    Args:
        base_url: server root, e.g. "http://localhost:8000"
        store: where the session lives between runs
        http: optional preconfigured httpx.Client (tests pass one with a
            mock transport)
        api_prefix: router prefix configured on the server
    """

    def __init__(
        self,
        base_url: str,
        store: SessionStore,
        http: httpx.Client | None = None,
        api_prefix: str = "/api",
        timeout: float = 10.0,
    ):
        self.store = store
        self.api_prefix = api_prefix.rstrip("/")
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)

    def __enter__(self) -> "CleanJamaicaClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self.http.close()

    def _url(self, path: str) -> str:
        return f"{self.api_prefix}/{path.lstrip('/')}"

    def login(self, email: str, password: str) -> SessionContext:
        """Log in and store the new session (replacing any previous one)."""
        response = self.http.post(
            self._url("/auth/login"), json={"email": email, "password": password}
        )
        if not response.is_success:
            raise ApiError.from_response(response)

        data = response.json()
        tokens = data["session"]
        context = SessionContext(
            access_token=tokens["accessToken"],
            refresh_token=tokens["refreshToken"],
            expires_in=tokens.get("expiresIn"),
            user=AuthUserRead.model_validate(data["user"]),
            profile=(
                ProfileSummary.model_validate(data["profile"])
                if data.get("profile")
                else None
            ),
        )
        self.store.save(context)
        return context

    def logout(self) -> bool:
        """
        Revoke the session on the server and clear it locally.

        The local session is cleared whatever the server says. Returns
        True if the server acknowledged the logout.
        """
        token = self.store.access_token()
        if token is None:
            return False

        try:
            response = self.http.post(
                self._url("/auth/logout"),
                headers={"Authorization": f"Bearer {token}"},
                follow_redirects=False,
            )
            acknowledged = response.status_code in (200, 302, 303)
            if not acknowledged:
                logger.warning("Server logout answered %s", response.status_code)
            return acknowledged
        except httpx.HTTPError as e:
            logger.warning("Server logout failed: %s", e)
            return False
        finally:
            self.store.clear()

    def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """
        Call an API route with the stored bearer token.

        Raises:
            SessionExpired: the server answered 401; the session is cleared.
            ApiError: any other non-2xx answer.
        """
        headers = dict(kwargs.pop("headers", None) or {})
        token = self.store.access_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        response = self.http.request(method, self._url(path), headers=headers, **kwargs)

        if response.status_code == 401:
            self.store.clear()
            error = ApiError.from_response(response)
            raise SessionExpired(error.status_code, error.code, error.message)
        if not response.is_success:
            raise ApiError.from_response(response)
        return response
