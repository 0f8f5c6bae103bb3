# storefront/database.py
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def normalize_url(url: str) -> str:
    # Hosted Postgres hands out postgres://, SQLAlchemy requires postgresql://
    if url and url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


class Database:
    """Owns the engine and session factory for one application instance.

    Constructed at startup and disposed at shutdown; request handlers reach
    it through ``get_db`` instead of a module-level session.
    """

    def __init__(self, url: str):
        self.url = normalize_url(url)

        engine_kwargs = {}
        if self.url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in self.url or self.url in ("sqlite://", "sqlite+pysqlite://"):
                # One shared connection, otherwise every session sees an empty database
                engine_kwargs["poolclass"] = StaticPool

        self.engine = create_engine(self.url, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_all(self) -> None:
        # Register every table on Base.metadata before creating them
        import storefront.models.users  # noqa: F401
        import storefront.models.cart  # noqa: F401
        import storefront.models.order  # noqa: F401
        import storefront.models.log  # noqa: F401
        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request):
    database: Database = request.app.state.database
    with database.session() as db:
        yield db
