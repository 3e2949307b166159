from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def create_db_engine(database_url: str) -> Engine:
    """
    SQLAlchemy engine for the hot log store.

    In-memory SQLite gets a single shared connection, otherwise each
    executor thread would see its own empty database.
    """
    engine_kwargs = {}
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        engine_kwargs = {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}

    return create_engine(
        database_url,
        future=True,
        echo=False,  # set True if you want to see SQL in terminal
        **engine_kwargs,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        future=True,
        expire_on_commit=False,
    )


def init_db(engine: Engine) -> None:
    """
    Import models and create tables if they don't exist.
    """
    from logvault import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
