from __future__ import annotations
import uuid
import redis
from contextlib import contextmanager
from marketplace.core.config import settings

def _client() -> redis.Redis:
    return redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)

@contextmanager
def redis_lock(key: str, ttl_seconds: int = 120, client: redis.Redis | None = None):
    """Single-flight lock using SET NX EX. Yields whether this caller holds it."""
    token = str(uuid.uuid4())
    c = client or _client()
    acquired = c.set(key, token, nx=True, ex=ttl_seconds)
    try:
        yield bool(acquired)
    finally:
        # only release a lock we still own
        if acquired and c.get(key) == token:
            c.delete(key)
