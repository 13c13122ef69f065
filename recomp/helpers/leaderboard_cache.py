import time

# Built rows for the public board, keyed "leaderboard" / "contestants".
# Polling clients hit these constantly; recalculation clears everything.

LEADERBOARD_CACHE_TTL = 10.0  # seconds

# key -> (expires_at, rows)
_CACHE: dict = {}


def get_cached_rows(key):
    entry = _CACHE.get(key)
    if entry is None:
        return None

    expires_at, rows = entry
    if time.monotonic() >= expires_at:
        del _CACHE[key]
        return None
    return rows


def set_cached_rows(key, rows):
    _CACHE[key] = (time.monotonic() + LEADERBOARD_CACHE_TTL, rows)


def invalidate_leaderboard_cache():
    _CACHE.clear()
