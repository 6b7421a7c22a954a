"""
Chronologically sortable push ids.

Same layout as the Firebase client: 8 characters encoding the epoch
milliseconds followed by 12 random characters. Ids generated within the
same millisecond increment the random part, so generation order equals
lexicographic order.
"""

import random
import threading
import time

PUSH_CHARS = "-0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ_abcdefghijklmnopqrstuvwxyz"

_lock = threading.Lock()
_last_push_time = 0
_last_rand_chars: list[int] = [0] * 12


def generate_push_id(now_ms: int | None = None) -> str:
    """Generate a 20-character push id."""
    global _last_push_time
    now = int(time.time() * 1000) if now_ms is None else now_ms

    with _lock:
        duplicate_time = now <= _last_push_time
        if duplicate_time:
            # Keep ordering when the clock stands still or steps back.
            now = _last_push_time
        _last_push_time = now

        time_chars = []
        remaining = now
        for _ in range(8):
            time_chars.append(PUSH_CHARS[remaining % 64])
            remaining //= 64
        time_part = "".join(reversed(time_chars))

        if not duplicate_time:
            for i in range(12):
                _last_rand_chars[i] = random.randrange(64)
        else:
            i = 11
            while i >= 0 and _last_rand_chars[i] == 63:
                _last_rand_chars[i] = 0
                i -= 1
            if i >= 0:
                _last_rand_chars[i] += 1

        return time_part + "".join(PUSH_CHARS[c] for c in _last_rand_chars)
