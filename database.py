from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from config import get_settings


def make_engine(database_url: str) -> Engine:
    connect_args: dict[str, object] = {}
    kwargs: dict[str, object] = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        if ":memory:" in database_url or database_url.rstrip("/") == "sqlite:":
            # One shared connection, otherwise every checkout sees an empty db.
            kwargs["poolclass"] = StaticPool

    eng = create_engine(database_url, connect_args=connect_args, **kwargs)
    if database_url.startswith("sqlite"):
        event.listen(eng, "connect", _enable_sqlite_pragmas)
    return eng


def _enable_sqlite_pragmas(dbapi_conn, _record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL;")
    cursor.execute("PRAGMA foreign_keys=ON;")
    cursor.close()


def make_sessionmaker(eng: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=eng, autoflush=False, expire_on_commit=False)


engine = make_engine(get_settings().database_url)
SessionLocal = make_sessionmaker(engine)


class Base(DeclarativeBase):
    pass

