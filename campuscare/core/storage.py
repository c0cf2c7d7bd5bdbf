from typing import Optional
import logging

import redis

from .config import settings

logger = logging.getLogger(__name__)

# In-memory client used in tests in place of a Redis server
class InMemoryRedis:
    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value
        return True

    def delete(self, key):
        if key in self.data:
            del self.data[key]
            return 1
        return 0


class TokenStorage:
    """Durable single-slot store for the raw credential token.

    Absence of a value in the slot means "logged out".
    """

    def __init__(self, client, key: str = None):
        self.client = client
        self.key = key or settings.TOKEN_STORAGE_KEY

    def read(self) -> Optional[str]:
        value = self.client.get(self.key)
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value or None

    def write(self, token: str) -> None:
        self.client.set(self.key, token)

    def delete(self) -> None:
        self.client.delete(self.key)


def create_redis_client():
    """Build the Redis client backing the credential slot."""
    if settings.TESTING:
        return InMemoryRedis()
    return redis.from_url(settings.REDIS_URL, decode_responses=True)


def get_token_storage(client=None) -> TokenStorage:
    """Get the credential storage slot."""
    return TokenStorage(client if client is not None else create_redis_client())
