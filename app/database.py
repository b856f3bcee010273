# app/database.py
"""
Database connection, session management, and table creation.
Uses SQLAlchemy with PostgreSQL in production. SQLite is accepted for local
development and tests. All models are auto-imported in create_tables() so
every table is created in one call.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from app.config import settings


def _enable_sqlite_transactions(engine):
    """
    pysqlite defers BEGIN until the first DML statement, which breaks
    SAVEPOINT-based get-or-create. Take over transaction control and
    switch on foreign key enforcement.
    """
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(database_url: str):
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool   # One shared in-memory database
        sqlite_engine = create_engine(database_url, echo=False, **kwargs)
        _enable_sqlite_transactions(sqlite_engine)
        return sqlite_engine

    return create_engine(
        database_url,
        pool_pre_ping=True,          # Auto-reconnect if DB connection drops
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        echo=False,                  # Set True to log all SQL queries (debug only)
    )


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency, yields a DB session and closes it after request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables():
    """
    Creates all DB tables on startup. Safe to call multiple times.
    Import all models here so SQLAlchemy knows about them.
    """
    from app.models.user import User          # noqa
    from app.models.vehicle import Vehicle    # noqa
    from app.models.permit import Permit      # noqa
    from app.models.payment import Payment    # noqa

    Base.metadata.create_all(bind=engine)
