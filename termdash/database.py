from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

# The ledger lives only as long as the process; every aggregator gets a
# private in-memory database.
DB_URL = "sqlite://"

Base = declarative_base()


def new_engine():
    return create_engine(
        DB_URL,
        echo=False,
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )


def init_db(engine) -> None:
    """Create the ledger tables on ``engine``."""
    from . import models  # noqa: F401

    Base.metadata.create_all(engine)


def new_session_factory():
    """Return a ``sessionmaker`` bound to a fresh, initialised engine."""
    engine = new_engine()
    init_db(engine)
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
