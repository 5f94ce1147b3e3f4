"""Caller-supplied deadline shared by every network call of an invocation."""

import time


class Deadline:
    """A point in monotonic time after which no new network call may start.

    ``Deadline(None)`` never expires.
    """

    def __init__(self, seconds: float | None, clock=time.monotonic):
        self._clock = clock
        self._expires_at = None if seconds is None else clock() + seconds

    @classmethod
    def from_lambda_context(cls, context, margin: float = 1.0) -> "Deadline":
        """Derive a deadline from a Lambda context, keeping *margin* seconds spare."""
        get_remaining = getattr(context, "get_remaining_time_in_millis", None)
        if get_remaining is None:
            return cls(None)
        return cls(max(get_remaining() / 1000.0 - margin, 0.0))

    def remaining(self) -> float | None:
        if self._expires_at is None:
            return None
        return max(self._expires_at - self._clock(), 0.0)

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def timeout(self, default: float) -> float:
        """Request timeout for the next call: *default*, capped by the time left."""
        remaining = self.remaining()
        if remaining is None:
            return default
        return min(default, remaining)

    def check(self, operation: str, error_cls) -> None:
        """Raise *error_cls* if the deadline passed before *operation* started."""
        if self.expired:
            raise error_cls(f"deadline exceeded before {operation}")
