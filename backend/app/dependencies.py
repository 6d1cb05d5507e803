from functools import lru_cache

from app.config import get_settings
from app.database import get_database
from app.services.inventory import InventoryStore


@lru_cache
def get_inventory_store() -> InventoryStore:
    return InventoryStore(get_database(get_settings().resolved_db_path))
