import math
import sqlite3

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.sql import text

from geonear.core.config import settings
from geonear.schemas.health import ServiceHealth

SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# Trig functions the distance expressions need. PostgreSQL and MySQL ship
# them; SQLite only does when compiled with SQLITE_ENABLE_MATH_FUNCTIONS.
SQLITE_MATH_FUNCTIONS = {
    "sin": math.sin,
    "cos": math.cos,
    "asin": math.asin,
    "sqrt": math.sqrt,
}


def _null_safe(fn):
    def wrapper(value):
        if value is None:
            return None
        return fn(value)

    return wrapper


@event.listens_for(Engine, "connect")
def register_sqlite_math_functions(dbapi_connection, connection_record):
    """Install Python implementations of the trig functions on SQLite connections."""
    if not isinstance(dbapi_connection, sqlite3.Connection):
        return
    for name, fn in SQLITE_MATH_FUNCTIONS.items():
        dbapi_connection.create_function(name, 1, _null_safe(fn), deterministic=True)


engine = create_engine(SQLALCHEMY_DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def health_check(db: Session) -> ServiceHealth:
    """Check database health."""
    try:
        result = db.execute(text("SELECT 1")).scalar()
        if result == 1:
            return ServiceHealth(
                healthy=True,
                message="Database connection successful",
            )
        return ServiceHealth(
            healthy=False, message="Database query returned unexpected result"
        )
    except Exception as e:  # pylint: disable=broad-except
        return ServiceHealth(
            healthy=False, message=f"Database connection failed: {str(e)}"
        )
