"""
External service adapters.
"""

from .redis import RedisAdapter, create_redis_client

__all__ = ["RedisAdapter", "create_redis_client"]
