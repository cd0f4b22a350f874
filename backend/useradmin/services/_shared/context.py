"""Request-scoped operation context: caller identity, deadline and cancellation."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass

from useradmin.services._shared.errors import CanceledError


@dataclass(slots=True)
class ServiceContext:
    """
    Carry cross-cutting request-scoped data down to the storage accessor.

    :param actor_id: Authenticated caller identifier. No handler fills it yet;
        when present it becomes ``created_by`` on new users.
    :param request_id: Correlation id for logging/tracing.
    :param deadline: Absolute :func:`time.monotonic` value after which the
        operation is considered timed out. ``None`` means no deadline.
    :param cancel_event: Hard-abort signal; once set, every storage call made
        with this context fails. The HTTP listener sets it only after the
        shutdown grace period ran out.
    """

    actor_id: int | None = None
    request_id: str | None = None
    deadline: float | None = None
    cancel_event: threading.Event | None = None

    @classmethod
    def with_timeout(
        cls,
        seconds: float | None,
        *,
        cancel_event: threading.Event | None = None,
        actor_id: int | None = None,
        request_id: str | None = None,
    ) -> ServiceContext:
        """Build a context whose deadline is ``seconds`` from now."""
        deadline = time.monotonic() + seconds if seconds and seconds > 0 else None
        return cls(
            actor_id=actor_id,
            request_id=request_id,
            deadline=deadline,
            cancel_event=cancel_event,
        )

    def remaining(self) -> float | None:
        """Seconds left before the deadline (never negative), or ``None``."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def is_canceled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def raise_if_done(self) -> None:
        """
        Abort with :class:`CanceledError` when canceled or past the deadline.

        :raises CanceledError: If the shutdown signal fired or time ran out.
        """
        if self.is_canceled():
            raise CanceledError("Operation canceled: shutdown in progress")
        if self.remaining() == 0.0:
            raise CanceledError("Operation canceled: deadline exceeded")
