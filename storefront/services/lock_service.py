import uuid

import redis

from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

# compare-and-delete in one step, redis runs the script atomically
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class LockService:
    """
    Per-user checkout lock.

    - acquire: SET key token NX EX ttl, returns the token or None
    - release: only the holder of the token may delete the key
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _checkout_key(user_id: str) -> str:
        return f"checkout:{user_id}:lock"

    @redis_retry()
    def acquire_checkout_lock(self, user_id: str, ttl: int) -> str | None:
        key = self._checkout_key(user_id)
        token = uuid.uuid4().hex
        logger.info(f"Acquire lock {key}")
        # expires on its own if the holder dies mid checkout
        if self.redis.set(name=key, value=token, nx=True, ex=ttl):
            return token
        logger.warning(f"Lock {key} is held by another checkout")
        return None

    @redis_retry()
    def release_checkout_lock(self, user_id: str, token: str) -> bool:
        key = self._checkout_key(user_id)
        logger.info(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)
