import uuid

import redis
from redis.exceptions import RedisError

from supplyshop.utils.retry import redis_retry
from supplyshop.utils.settings import REDIS_URL
from supplyshop.utils.logging import get_logger

logger = get_logger(__name__)

# compare-and-delete in one Lua call so a late release never drops someone else's lock
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class LockService:
    """
    Short-lived per-user checkout lock (SET NX EX).
    Guards against two checkout requests from the same user running at once;
    it does not make sequential double-submits idempotent.
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _key(user_id: str) -> str:
        return f"checkout:{user_id}:lock"

    @redis_retry()
    def _set(self, key: str, token: str, ttl: int) -> bool:
        return bool(self.redis.set(name=key, value=token, nx=True, ex=ttl))

    @redis_retry()
    def _release(self, key: str, token: str) -> bool:
        return bool(self.redis.eval(_RELEASE_LUA, 1, key, token))

    def acquire_checkout_lock(self, user_id: str, ttl: int) -> str | None:
        """
        Returns the lock token, or None when another checkout holds the lock.
        Returns "" when redis is unreachable: the guard is skipped, checkout goes on.
        """
        token = uuid.uuid4().hex
        key = self._key(user_id)
        try:
            locked = self._set(key, token, ttl)
        except RedisError as e:
            logger.warning(f"Checkout lock unavailable for user {user_id}, continuing without it: {e}")
            return ""
        if not locked:
            logger.info(f"Checkout lock {key} already held")
            return None
        return token

    def release_checkout_lock(self, user_id: str, token: str):
        if not token:
            return
        try:
            self._release(self._key(user_id), token)
        except RedisError as e:
            # lock expires on its own after ttl
            logger.warning(f"Failed to release checkout lock for user {user_id}: {e}")
