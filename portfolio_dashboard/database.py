import logging

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import sessionmaker

from portfolio_dashboard.core.config import settings
from portfolio_dashboard.db.base import Base

logger = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL

if not DATABASE_URL:
    raise ValueError("[ERROR] DATABASE_URL not found!")


def build_engine(url: str):
    """Create a sync engine with pool options suited to the driver."""
    if url.lower().startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},  # SQLite multi-thread
            echo=False,
        )
    return create_engine(
        url,
        connect_args={
            "connect_timeout": 10,
        },
        echo=False,
        pool_pre_ping=True,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_recycle=settings.DATABASE_POOL_RECYCLE,
        pool_timeout=30,
    )


engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


def get_db():
    """Dependency for getting database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _safe_url(url: str) -> str:
    return url.split("@")[1] if "@" in url else url.split("/")[-1]


def test_connection(bind=None) -> bool:
    """Test database connection - NON-BLOCKING."""
    bind = bind or engine
    try:
        with bind.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        logger.info(f"[OK] Database connected: {_safe_url(str(bind.url))}")
        return True
    except Exception as e:
        logger.warning(f"[WARN] Database connection failed (continuing): {e}")
        return False


def count_tables(bind=None) -> int:
    """Number of tables visible on the connection."""
    return len(inspect(bind or engine).get_table_names())


def init_db(bind=None) -> bool:
    """Initialize database tables - NON-BLOCKING."""
    try:
        # Import all models so they're registered with Base
        from portfolio_dashboard.models import Property, MonthlyFinancial  # noqa: F401

        Base.metadata.create_all(bind=bind or engine)
        logger.info("[OK] Database tables initialized!")
        return True
    except Exception as e:
        logger.warning(f"[WARN] Database init warning: {e}")
        return False


def close_db_connection():
    """Close database connections."""
    engine.dispose()
    logger.info("[OK] Database connections closed")
