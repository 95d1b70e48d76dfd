from products_api.core.config import settings
from products_api.core.database import Base, async_session_maker, engine, get_db, init_models
from products_api.core.redis import close_redis, get_redis

__all__ = [
    "settings",
    "Base",
    "engine",
    "async_session_maker",
    "get_db",
    "init_models",
    "get_redis",
    "close_redis",
]
