import time


# Milliseconds off the monotonic clock. Only meaningful as a difference between two calls in the same process.
def now_ms():
    return time.monotonic_ns() // 1_000_000


def format_time(millis):
    """Format elapsed milliseconds as MM:SS. Negative values clamp to zero.

    Minutes are not capped, so 61 minutes reads "61:00". Partial seconds are
    dropped rather than rounded.
    """
    millis = max(0, int(millis))
    minutes, rem = divmod(millis, 60_000)
    return f"{minutes:02d}:{rem // 1000:02d}"
