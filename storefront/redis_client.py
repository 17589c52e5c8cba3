"""
Redis client wrapper with connection pooling, retry logic, error handling and
optimistic WATCH/MULTI/EXEC transactions.
"""
import logging
import random
import time
from typing import Any, Callable, Dict, List, Optional

import redis
from redis.exceptions import (
    AuthenticationError,
    ConnectionError,
    RedisError,
    TimeoutError,
    WatchError,
)

from storefront.config import Config
from storefront.exceptions import ConflictError, StoreUnavailableError

logger = logging.getLogger(__name__)


class RedisClient:
    """Redis client with connection pooling and retry logic"""

    def __init__(self, client: Optional[redis.Redis] = None):
        self.pool: Optional[redis.ConnectionPool] = None
        self.client: Optional[redis.Redis] = client
        if client is None:
            self._connect()

    def _connect(self):
        """Initialize Redis connection pool"""
        try:
            self.pool = redis.ConnectionPool.from_url(
                Config.redis_url(),
                max_connections=Config.REDIS_MAX_CONNECTIONS,
                socket_connect_timeout=Config.REDIS_SOCKET_CONNECT_TIMEOUT,
                socket_timeout=Config.REDIS_SOCKET_TIMEOUT,
                retry_on_timeout=Config.REDIS_RETRY_ON_TIMEOUT,
                decode_responses=True,
            )
            self.client = redis.Redis(connection_pool=self.pool)
        except (ConnectionError, AuthenticationError) as e:
            raise StoreUnavailableError(f"Failed to connect to Redis: {e}")

    def _retry_with_backoff(
        self,
        func: Callable,
        max_retries: int = 3,
        initial_backoff: float = 0.1,
        max_backoff: float = 2.0
    ) -> Any:
        """
        Execute function with exponential backoff retry.

        Args:
            func: Function to execute
            max_retries: Maximum number of retry attempts
            initial_backoff: Initial backoff delay in seconds
            max_backoff: Maximum backoff delay in seconds

        Returns:
            Result of function execution

        Raises:
            StoreUnavailableError: If all retries fail
        """
        backoff = initial_backoff

        for attempt in range(max_retries):
            try:
                return func()
            except (ConnectionError, TimeoutError) as e:
                if attempt == max_retries - 1:
                    raise StoreUnavailableError(f"Redis operation failed after {max_retries} retries: {e}")

                # Exponential backoff with jitter
                jitter = random.uniform(0, backoff * 0.1)
                time.sleep(backoff + jitter)
                backoff = min(backoff * 2, max_backoff)
            except RedisError as e:
                # Non-retryable errors
                raise StoreUnavailableError(f"Redis error: {e}")

    def get(self, key: str) -> Optional[str]:
        """Get value from Redis"""
        return self._retry_with_backoff(lambda: self.client.get(key))

    def mget(self, keys: List[str]) -> List[Optional[str]]:
        """Get several values in one round trip"""
        if not keys:
            return []
        return self._retry_with_backoff(lambda: self.client.mget(keys))

    def set(self, key: str, value: Any, ex: Optional[int] = None, nx: bool = False) -> bool:
        """Set value in Redis with optional TTL"""
        return self._retry_with_backoff(lambda: self.client.set(key, value, ex=ex, nx=nx))

    def delete(self, *keys: str) -> int:
        """Delete one or more keys"""
        return self._retry_with_backoff(lambda: self.client.delete(*keys))

    def exists(self, *keys: str) -> int:
        """Check if keys exist"""
        return self._retry_with_backoff(lambda: self.client.exists(*keys))

    def zadd(self, key: str, mapping: Dict[str, float]) -> int:
        """Add members to a sorted set"""
        return self._retry_with_backoff(lambda: self.client.zadd(key, mapping))

    def zrevrange(self, key: str, start: int = 0, end: int = -1) -> List[str]:
        """Sorted set members, highest score first"""
        return self._retry_with_backoff(lambda: self.client.zrevrange(key, start, end))

    def write_batch(self, commands: Callable[[Any], None]) -> List[Any]:
        """Queue several writes on a MULTI/EXEC pipeline and execute them together"""
        def _batch():
            with self.client.pipeline(transaction=True) as pipe:
                commands(pipe)
                return pipe.execute()
        return self._retry_with_backoff(_batch)

    def transaction(self, func: Callable[[Any], Any], *keys: str, attempts: int = 1) -> Any:
        """
        Run an optimistic read-modify-write transaction.

        ``func`` receives a pipeline already WATCHing ``keys``. It reads in
        immediate mode, calls ``pipe.multi()`` and queues its writes. The queued
        writes are executed atomically; if any watched key changed in the
        meantime the whole callable is re-run, up to ``attempts`` times.

        Returns:
            Whatever ``func`` returned on the successful attempt

        Raises:
            ConflictError: If every attempt lost the race
            StoreUnavailableError: If Redis cannot be reached
        """
        for attempt in range(attempts):
            try:
                with self.client.pipeline(transaction=True) as pipe:
                    pipe.watch(*keys)
                    result = func(pipe)
                    pipe.execute()
                    return result
            except WatchError:
                logger.warning(
                    "Concurrent write detected on watched keys (attempt %d of %d)",
                    attempt + 1, attempts,
                )
            except (ConnectionError, TimeoutError) as e:
                raise StoreUnavailableError(f"Redis transaction failed: {e}")
            except RedisError as e:
                raise StoreUnavailableError(f"Redis error: {e}")
        raise ConflictError("The resource was modified concurrently, please retry")

    def ping(self) -> bool:
        """Test Redis connection"""
        try:
            return self.client.ping()
        except Exception:
            return False

    def close(self):
        """Close connection pool"""
        if self.pool:
            self.pool.disconnect()
