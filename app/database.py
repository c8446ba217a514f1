# app/database.py
from sqlmodel import SQLModel, create_engine, Session

from app.core.config import get_settings

settings = get_settings()

# ---------------------------------------------------------
# Supabase Postgres connection (via pooler)
#
# - sslmode=require   : enforce SSL when running in the cloud
# - pool_size=1       : keep only 1 connection to the Supabase pooler
# - max_overflow=0    : do not open extra connections beyond the pool
# - pool_pre_ping=True: validate connections before using them
# - connect_timeout / statement_timeout: bound every role lookup by
#   STORE_TIMEOUT_SECONDS; expiry surfaces as STORE_UNAVAILABLE
#
# Supabase Session mode limits the number of clients, so the pool stays
# at a single connection.
# ---------------------------------------------------------


def _engine_kwargs(db_url: str) -> tuple[str, dict]:
    if not db_url.startswith("postgres"):
        # Local / test databases (e.g. sqlite) take the defaults.
        return db_url, {"echo": False}

    if "sslmode=" not in db_url:
        db_url = db_url + ("&" if "?" in db_url else "?") + "sslmode=require"

    timeout = settings.STORE_TIMEOUT_SECONDS
    return db_url, {
        "echo": False,
        "pool_pre_ping": True,
        "pool_size": 1,
        "max_overflow": 0,
        "connect_args": {
            "connect_timeout": max(1, int(timeout)),
            "options": f"-c statement_timeout={int(timeout * 1000)}",
        },
    }


db_url, engine_kwargs = _engine_kwargs(settings.DATABASE_URL)
engine = create_engine(db_url, **engine_kwargs)


def create_db_and_tables() -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist.

    This is called once on application startup.
    """
    SQLModel.metadata.create_all(engine)


def get_session():
    """
    FastAPI dependency that yields a SQLModel Session.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(session: Session = Depends(get_session)):
            ...
    """
    with Session(engine) as session:
        yield session
