# data/storage/cache.py

import logging
from typing import Any, Optional, Dict

import orjson
import redis.asyncio as redis
from redis.asyncio.client import Redis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from utils.constants import DEFAULT_CACHE_TTL, INFO_CACHE_KEY, SCORE_CACHE_KEY
from utils.errors import CacheError
from utils.helpers import mask_url_credentials

logger = logging.getLogger(__name__)


class CacheManager:
    """
    Redis cache for BlitzProof scores and token info.

    The cache is an accelerator only: every failure is logged and reported as
    a miss (get) or False (set/delete). If the initial connection fails the
    manager stays in degraded mode and all operations become no-ops.
    """

    def __init__(self, config: Dict[str, Any], client: Optional[Redis] = None):
        self.config = config
        self.redis_client: Optional[Redis] = client
        self.is_connected = client is not None

        self.ttl = int(config.get('CACHE_TTL', DEFAULT_CACHE_TTL))
        self.prefix = config.get('CACHE_KEY_PREFIX', 'blitzproof')

    async def connect(self) -> None:
        """Establish connection to Redis server."""
        url = self.config.get('REDIS_URL', 'redis://localhost:6379/0')

        # Capped exponential backoff between reconnect attempts
        retry = Retry(
            ExponentialBackoff(
                cap=float(self.config.get('REDIS_BACKOFF_CAP', 10)),
                base=float(self.config.get('REDIS_BACKOFF_BASE', 0.5))
            ),
            int(self.config.get('REDIS_RETRY_ATTEMPTS', 5))
        )

        try:
            self.redis_client = redis.from_url(
                url,
                decode_responses=False,
                socket_timeout=float(self.config.get('REDIS_SOCKET_TIMEOUT', 5)),
                socket_keepalive=True,
                retry=retry,
                retry_on_error=[RedisConnectionError, RedisTimeoutError],
                health_check_interval=30,
            )

            # Test connection
            await self.redis_client.ping()

            self.is_connected = True
            logger.info(f"Connected to Redis cache at {mask_url_credentials(url)}")

        except (RedisError, OSError) as e:
            logger.error(f"Failed to connect to Redis, running without cache: {e}")
            self.is_connected = False

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self.redis_client:
            await self.redis_client.aclose()
            self.is_connected = False
            logger.info("Disconnected from Redis cache")

    def score_key(self, token_id: str) -> str:
        return SCORE_CACHE_KEY.format(prefix=self.prefix, token_id=token_id)

    def info_key(self, token_id: str) -> str:
        return INFO_CACHE_KEY.format(prefix=self.prefix, token_id=token_id)

    def _client(self) -> Redis:
        if not self.is_connected or self.redis_client is None:
            raise CacheError("cache unavailable")
        return self.redis_client

    async def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Args:
            key: Cache key

        Returns:
            Decoded JSON value, or None on miss or any cache failure
        """
        try:
            value = await self._client().get(key)
            if value is None:
                return None
            return orjson.loads(value)

        except CacheError:
            return None
        except orjson.JSONDecodeError as e:
            logger.warning(f"Discarding undecodable cache entry {key}: {e}")
            return None
        except (RedisError, OSError) as e:
            logger.error(f"Cache get error for key {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        Set JSON value in cache with TTL.

        Args:
            key: Cache key
            value: JSON-serialisable value
            ttl: Time to live in seconds (defaults to CACHE_TTL)
        """
        try:
            client = self._client()
            serialized = orjson.dumps(value)

            ttl = self.ttl if ttl is None else ttl
            if ttl > 0:
                await client.setex(key, ttl, serialized)
            else:
                await client.set(key, serialized)
            return True

        except CacheError:
            return False
        except (RedisError, OSError, TypeError) as e:
            logger.error(f"Cache set error for key {key}: {e}")
            return False

    async def delete(self, *keys: str) -> bool:
        """Delete key(s) from cache."""
        if not keys:
            return True
        try:
            await self._client().delete(*keys)
            return True
        except CacheError:
            return False
        except (RedisError, OSError) as e:
            logger.error(f"Cache delete error for {', '.join(keys)}: {e}")
            return False

    async def health_check(self) -> Dict[str, Any]:
        """Report cache reachability."""
        try:
            await self._client().ping()
            return {'status': 'healthy', 'connected': True}
        except CacheError:
            return {'status': 'degraded', 'connected': False}
        except (RedisError, OSError) as e:
            return {'status': 'unhealthy', 'connected': False, 'error': str(e)}
