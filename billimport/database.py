from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from billimport.db_models import Base


def build_session_factory(database_url: str) -> sessionmaker[Session]:
    connect_args: dict[str, object] = {}
    if database_url.startswith("sqlite"):
        # Writer threads share the engine; sqlite waits on the file lock instead of failing fast.
        connect_args["check_same_thread"] = False
        connect_args["timeout"] = 30

    engine = create_engine(database_url, future=True, connect_args=connect_args)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True)
