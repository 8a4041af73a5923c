from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from tyjson.settings import settings


def enable_case_sensitive_like(engine) -> None:
    """SQLite's LIKE ignores ASCII case unless told otherwise."""
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA case_sensitive_like = ON")
        cursor.close()


connect_args = (
    {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
)
engine = create_engine(
    settings.DATABASE_URL, future=True, echo=False, connect_args=connect_args
)
enable_case_sensitive_like(engine)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
