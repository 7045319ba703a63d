from sqlalchemy import create_engine, event
from sqlalchemy.orm import (
    sessionmaker,
    DeclarativeBase,
    scoped_session,
    Session as SqlalchemySession,
)


from settings import DATABASE_URL


if DATABASE_URL.startswith("sqlite"):
    engine = create_engine(
        DATABASE_URL, connect_args={"check_same_thread": False}
    )

    """pysqlite does not emit BEGIN by itself, which breaks SAVEPOINT.
    Let SQLAlchemy control the transaction boundaries instead.
    """

    @event.listens_for(engine, "connect")
    def _sqlite_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _sqlite_begin(conn):
        conn.exec_driver_sql("BEGIN")

else:
    engine = create_engine(
        DATABASE_URL,
        pool_size=20,
        max_overflow=0,
        pool_timeout=300,
    )
db = sessionmaker(engine, future=True)
factory_session = scoped_session(db)


def get_db_sync():
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_db_sync_for_test(db: SqlalchemySession):
    def inner():
        yield db

    return inner


class Base(DeclarativeBase):
    pass


# define all model for alembic migration
from models.User import User  # NOQA
from models.Token import Token  # NOQA
from models.EmailVerification import EmailVerification  # NOQA
from models.ResetPassword import ResetPassword  # NOQA
from models.Event import Event  # NOQA
from models.Ticket import Ticket  # NOQA
from models.Bid import Bid  # NOQA
from models.Purchase import Purchase  # NOQA
