from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from core.config import get_settings

settings = get_settings()

# ----------------------------------------------------------------
# ENGINE SETUP
# ----------------------------------------------------------------
# pool_recycle prevents MySQL "Gone Away" errors during long events.
# The engine connects lazily, so importing this module never touches the server.
engine = create_engine(settings.database_url, pool_recycle=settings.pool_recycle)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()
