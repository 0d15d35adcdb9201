"""
Cooperative cancellation for rate-limited requests.

Python threads cannot be interrupted from the outside, so a caller that may
need to abandon a throttled request installs a `CancellationToken` for its
execution context. `RateLimitedHttpClient` waits out its delay on that token,
and a cancelled wait ends the attempt without sending the request.

The token travels through a `ContextVar`, so the verb signatures stay the
same as any other `HttpClient`.

Example:
    >>> token = CancellationToken()
    >>> with UseCancellation(token):
    ...     response = client.get("https://api.example.com/items")
    >>> # from another thread: token.cancel()
    >>> if response is None:
    ...     print("Request was cancelled before it was sent")
"""

import functools
import threading
from collections.abc import Callable
from contextvars import ContextVar, Token
from typing import Any, TypeVar

_T = TypeVar("_T")


class CancellationToken:
    """
    A one-shot, thread-safe cancellation flag.

    Once cancelled, a token stays cancelled. Any thread may call `cancel()`;
    threads blocked in `wait()` are woken immediately.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Mark the token as cancelled and wake all waiters."""
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """
        Block for up to `seconds`, returning early if cancelled.

        Args:
            seconds: Maximum time to wait.

        Returns:
            True if the token was cancelled (before or during the wait),
            False if the full duration elapsed.
        """
        return self._event.wait(seconds)

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancelled()})"


class CancellationScope:
    """
    Manages the active `CancellationToken` for the current execution scope.

    Encapsulates the `ContextVar` that holds the token. Used internally by
    `UseCancellation` and `RateLimitedHttpClient`.
    """

    _current: ContextVar[CancellationToken | None] = ContextVar(
        "_current_cancellation_token", default=None
    )

    @staticmethod
    def get_current() -> CancellationToken | None:
        """Returns the active token, or None if outside a `UseCancellation` block."""
        return CancellationScope._current.get()

    @staticmethod
    def _set(token: CancellationToken) -> Token[CancellationToken | None]:
        return CancellationScope._current.set(token)

    @staticmethod
    def _reset(ctx_token: Token[CancellationToken | None]) -> None:
        CancellationScope._current.reset(ctx_token)

    @staticmethod
    def propagate(fn: Callable[..., _T]) -> Callable[..., _T]:
        """
        Wraps `fn` so it runs with the current cancellation token.

        Captures the active token at wrap-time (caller thread) and installs it
        at call-time (worker thread). If no token is active, returns `fn`
        unchanged.

        Designed for `ThreadPoolExecutor.submit()`::

            executor.submit(CancellationScope.propagate(client.get), url)
        """
        token = CancellationScope.get_current()
        if token is None:
            return fn

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> _T:
            ctx_token = CancellationScope._set(token)
            try:
                return fn(*args, **kwargs)
            finally:
                CancellationScope._reset(ctx_token)

        return wrapper


class UseCancellation:
    """
    Context manager that installs a `CancellationToken` for the enclosed block.

    Nestable: an inner `UseCancellation` overrides the outer one and the
    outer token is restored on exit.

    Args:
        token: The token to install. If None, a fresh token is created and
            returned by `__enter__`.

    Example:
        >>> with UseCancellation() as token:
        ...     threading.Timer(0.5, token.cancel).start()
        ...     response = client.get(url)  # None if cancelled during the delay
    """

    def __init__(self, token: CancellationToken | None = None) -> None:
        self._token = token or CancellationToken()
        self._ctx_token: Token[CancellationToken | None] | None = None

    def __enter__(self) -> CancellationToken:
        self._ctx_token = CancellationScope._set(self._token)
        return self._token

    def __exit__(self, *args: object) -> None:
        assert self._ctx_token is not None, \
            "UseCancellation.__exit__ called without __enter__"
        CancellationScope._reset(self._ctx_token)
        self._ctx_token = None
