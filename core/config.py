import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    database_url: str
    pool_recycle: int
    log_level: str
    export_delimiter: str
    report_sheet_title: str


def _build_database_url():
    explicit = os.getenv("DATABASE_URL")
    if explicit:
        return explicit

    # Format: mysql+pymysql://<username>:<password>@<host>/<db_name>
    username = os.getenv("db_username", "root")
    password = os.getenv("db_pass", "")
    host = os.getenv("db_host", "localhost")
    name = os.getenv("db_name", "tabulation_db")
    return f"mysql+pymysql://{username}:{password}@{host}/{name}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return settings read from the environment (and .env, if present)."""
    return Settings(
        database_url=_build_database_url(),
        pool_recycle=int(os.getenv("DB_POOL_RECYCLE", "3600")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        export_delimiter=os.getenv("EXPORT_DELIMITER", ","),
        report_sheet_title=os.getenv("REPORT_SHEET_TITLE", "Tabulation"),
    )
