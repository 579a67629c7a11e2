from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from reviewgate.db.base import Base

IN_MEMORY_SQLITE_URLS = ("sqlite://", "sqlite:///:memory:")


def make_session_factory(database_url: str) -> sessionmaker:
    """Create the engine and tables, and return a session factory."""
    kwargs = {"pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    if database_url in IN_MEMORY_SQLITE_URLS:
        # One shared connection, otherwise every session sees an empty database
        kwargs["poolclass"] = StaticPool
    engine = create_engine(database_url, **kwargs)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
