import logging

from django.conf import settings
from django.core.cache import caches
from django.utils.dateparse import parse_datetime

from .clock import seconds_between
from .types import CacheEntry

logger = logging.getLogger(__name__)

KEY_PREFIX = 'quiz_timer_'


class LocalTimerCache:
    """
    Durable per-attempt record of the last displayed remaining time. It only
    exists so a reload has something to show before the attempt is fetched;
    it is never used to decide when a quiz ends.
    """

    def __init__(self, cache=None) -> None:
        self._cache = cache if cache is not None else caches[settings.QUIZ_TIMER_CACHE_ALIAS]

    @staticmethod
    def key_for(attempt_id) -> str:
        return f'{KEY_PREFIX}{attempt_id}'

    def read(self, attempt_id) -> CacheEntry | None:
        key = self.key_for(attempt_id)
        raw = self._cache.get(key)
        if raw is None:
            return None
        try:
            if str(raw['attempt_id']) != str(attempt_id):
                raise ValueError('attempt id mismatch')
            last_updated_at = parse_datetime(raw['last_updated_at'])
            if last_updated_at is None:
                raise ValueError('unparseable timestamp')
            entry = CacheEntry(
                attempt_id=attempt_id,
                remaining_seconds=int(raw['remaining_seconds']),
                last_updated_at=last_updated_at,
            )
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning('Discarding malformed timer cache entry %s: %s', key, exc)
            self._cache.delete(key)
            return None
        return entry

    def write(self, attempt_id, remaining_seconds: int, updated_at) -> None:
        self._cache.set(
            self.key_for(attempt_id),
            {
                'attempt_id': attempt_id,
                'remaining_seconds': int(remaining_seconds),
                'last_updated_at': updated_at.isoformat(),
            },
            timeout=None,
        )

    def clear(self, attempt_id) -> None:
        self._cache.delete(self.key_for(attempt_id))

    def provisional_remaining(self, attempt_id, now) -> int | None:
        entry = self.read(attempt_id)
        if entry is None:
            return None
        elapsed = max(0, seconds_between(entry.last_updated_at, now))
        return max(0, entry.remaining_seconds - elapsed)
