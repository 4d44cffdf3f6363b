from core.database import engine, Base
from core.logging_config import get_logger
import models.all_models  # noqa: F401  (registers the tables on Base)

logger = get_logger("init_db")


def init_db():
    logger.info("Connecting to the database and creating tables...")
    # Only creates tables that don't exist yet
    Base.metadata.create_all(bind=engine)
    logger.info("Database initialization complete.")

if __name__ == "__main__":
    init_db()
