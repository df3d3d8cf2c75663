from .misc import now_ms, format_time

__all__ = ["now_ms", "format_time"]
