from typing import Optional

from app.config import Settings, settings
from app.services.storage import MarketplaceStorage
from app.utils.logger import logger

_storage: Optional[MarketplaceStorage] = None


def build_storage(config: Settings = settings) -> MarketplaceStorage:
    if config.storage_backend == "sql":
        from app.services.sql_storage import SqlStorage
        logger.info(f"Using SQL storage: {config.masked_database_url}")
        storage = SqlStorage(config.DATABASE_URL, create_tables=not config.RUN_MIGRATIONS)
    else:
        from app.services.memory_storage import MemoryStorage
        logger.info("Using in-memory storage - data is lost on restart")
        storage = MemoryStorage()

    if config.SEED_DEMO_DATA:
        from app.services.seed import seed_demo_data
        seed_demo_data(storage, config)
    return storage


def get_storage() -> MarketplaceStorage:
    """FastAPI dependency returning the process-wide storage backend."""
    global _storage
    if _storage is None:
        _storage = build_storage()
    return _storage
