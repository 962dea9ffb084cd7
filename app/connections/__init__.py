from app.connections.mongo import mongo_lifespan
from app.connections.redis import get_redis, redis_lifespan

__all__ = ["mongo_lifespan", "redis_lifespan", "get_redis"]
