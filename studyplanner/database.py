from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from studyplanner.config import settings


def build_engine(database_url: str):
    """Create an engine; SQLite needs foreign keys switched on per connection"""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    engine = create_engine(database_url, future=True, pool_pre_ping=True, connect_args=connect_args)

    if database_url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def _enable_sqlite_fks(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

Base = declarative_base()


def init_db(bind=None):
    """Create all tables"""
    # Import models so they register with Base.metadata
    import studyplanner.models  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)


def get_db():
    """FastAPI dependency yielding one session per request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
