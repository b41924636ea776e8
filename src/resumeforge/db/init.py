from __future__ import annotations

import logging
from pathlib import Path

from resumeforge.config import get_settings
from resumeforge.db.base import Base
from resumeforge.db.session import engine
from resumeforge.db import models  # noqa: F401

logger = logging.getLogger(__name__)


def ensure_data_directories() -> None:
    settings = get_settings()
    paths: list[Path] = [settings.data_dir, settings.upload_dir]
    sqlite_prefix = "sqlite:///"
    if settings.database_url.startswith(sqlite_prefix):
        database_path = settings.database_url[len(sqlite_prefix):]
        if database_path and database_path != ":memory:":
            paths.append(Path(database_path).parent)
    for path in paths:
        path.mkdir(parents=True, exist_ok=True)


def init_database() -> dict[str, list[str]]:
    ensure_data_directories()
    Base.metadata.create_all(bind=engine)
    tables = sorted(Base.metadata.tables)
    logger.info("Database ready: %s", ", ".join(tables))
    return {"tables": tables}
