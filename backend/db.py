from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import DB_URL

Base = declarative_base()


def make_engine(db_url):
    connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}
    return create_engine(db_url, connect_args=connect_args)


def make_session_factory(bind):
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


engine = make_engine(DB_URL)
SessionLocal = make_session_factory(engine)


def init_db(bind=None):
    from . import models  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
