from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from config import config
from database.models import Base


def make_engine(url: str = None) -> Engine:
    return create_engine(url or config.db.url)


def make_session_factory(engine: Engine) -> sessionmaker:
    # Rows handed back to callers stay readable after their session closes
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(engine: Engine):
    Base.metadata.create_all(bind=engine)


def drop_db(engine: Engine):
    Base.metadata.drop_all(bind=engine)
