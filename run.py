import os

import uvicorn
from dotenv import load_dotenv

load_dotenv()


def run_migrations():
    """Run Alembic migrations."""
    from alembic.config import Config
    from alembic import command
    from sqlalchemy.exc import SQLAlchemyError

    alembic_cfg = Config("alembic.ini")
    print("[STARTUP] Running database migrations...")
    try:
        command.upgrade(alembic_cfg, "head")
    except SQLAlchemyError as e:
        print(f"[WARN] Migration failed: {e}")
        return False
    print("[STARTUP] Migrations complete!")
    return True


if __name__ == "__main__":
    # Tables are otherwise created by init_db() in the app lifespan
    if os.getenv("RUN_MIGRATIONS") == "true":
        run_migrations()

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", 8000))

    # Disable reload in production
    reload = os.getenv("ENV") == "development"

    uvicorn.run(
        "portfolio_dashboard.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info",
        workers=1,
        lifespan="on",
    )
