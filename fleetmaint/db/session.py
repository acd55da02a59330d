# fleetmaint/db/session.py
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
import os

from fleetmaint.logger import get_logger

logger = get_logger(__name__)

_engine = None
_SessionLocal = None


def _enable_sqlite_savepoints(engine):
    """
    pysqlite 默认自己管理 BEGIN，导致 SAVEPOINT 行为不可靠。
    这里关闭驱动层事务，由 SQLAlchemy 显式发出 BEGIN，同时打开外键约束。
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


def get_engine():
    global _engine
    if _engine is None:
        db_url = os.environ.get("DATABASE_URL")
        logger.info(f"Using database URL: {db_url}")
        if not db_url:
            raise RuntimeError("DATABASE_URL not set")
        if db_url.startswith("sqlite"):
            _engine = create_engine(
                db_url,
                connect_args={"check_same_thread": False}
            )
            _enable_sqlite_savepoints(_engine)
        else:
            _engine = create_engine(db_url, pool_pre_ping=True)
    return _engine


def get_session():
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=get_engine()
        )
    return _SessionLocal()
