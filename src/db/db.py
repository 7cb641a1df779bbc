from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from db.models import Base


# SQLite ships with foreign key checks off; an orphaned row should fail on insert.
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: str, *, echo: bool = False) -> Engine:
    engine = create_engine(url, echo=echo)
    Base.metadata.create_all(engine)
    return engine


def init_db(url: str, *, echo: bool = False) -> Session:
    return sessionmaker(create_db_engine(url, echo=echo))()
