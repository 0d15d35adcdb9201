"""
Rate-limited request serialization for simplerest.

Some web services only accept one request per interval from a client.
RateLimitedHttpClient lets call sites honor such a limit without their own
throttling: it puts every verb behind a single fair gate and waits a fixed
delay after acquiring it, before the request is sent.

Guarantees:
    - At most one delegated request is in flight at any time.
    - Successive admissions are at least `delay` seconds apart.
    - Callers are admitted in arrival (FIFO) order.
    - A caller cancelled during the delay never sends its request and
      gets None back; the gate is always released.

The delay is counted from gate acquisition, not from the end of the previous
request. A slow request therefore extends the spacing beyond `delay`, but a
fast one never shortens it below `delay`.

Example:
    >>> from simplerest._rate_limit import RateLimitedHttpClient
    >>> from simplerest._http import HttpRequest
    >>> client = RateLimitedHttpClient(delay=2.0, delegate=HttpRequest())
    >>> response = client.get("https://api.example.com/items/1")
"""

import logging
import threading
import time
from collections.abc import Callable, Mapping
from typing import Any, override

from simplerest._cancellation import CancellationScope
from simplerest._http import HttpClient, HttpRequest, MultipartValue, RequestBody
from simplerest._response import HttpResponse

logger = logging.getLogger(__name__)


# =============================================================================
# Fair Gate
# =============================================================================


class FairLock:
    """
    Mutual-exclusion lock that admits waiters in first-come-first-served order.

    Implemented as a ticket lock: each `acquire()` takes the next ticket and
    waits until that ticket is being served. Tickets are handed out under the
    condition's internal mutex, so two "simultaneous" callers are ordered by
    whichever obtains that mutex first.

    Not reentrant. Only the owning thread may release it.

    Example:
        >>> gate = FairLock()
        >>> with gate:
        ...     do_exclusive_work()
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._next_ticket = 0
        self._now_serving = 0
        self._abandoned: set[int] = set()
        self._owner: int | None = None

    def acquire(self) -> None:
        """
        Block until this caller's turn comes, then take the lock.

        If the wait is interrupted (e.g. KeyboardInterrupt), the ticket is
        given up so the callers queued behind it are still served.
        """
        with self._cond:
            ticket = self._next_ticket
            self._next_ticket += 1
            try:
                while ticket != self._now_serving:
                    self._cond.wait()
            except BaseException:
                if ticket == self._now_serving:
                    self._advance()
                else:
                    self._abandoned.add(ticket)
                raise
            self._owner = threading.get_ident()

    def release(self) -> None:
        """
        Release the lock and hand it to the next ticket holder.

        Raises:
            RuntimeError: If the calling thread does not hold the lock.
        """
        with self._cond:
            if self._owner != threading.get_ident():
                raise RuntimeError("cannot release un-acquired FairLock")
            self._owner = None
            self._advance()

    def _advance(self) -> None:
        # Caller holds self._cond. Skips tickets whose waiters gave up.
        self._now_serving += 1
        while self._now_serving in self._abandoned:
            self._abandoned.remove(self._now_serving)
            self._now_serving += 1
        self._cond.notify_all()

    def locked(self) -> bool:
        """Return True if some thread currently holds the lock. For introspection only."""
        with self._cond:
            return self._owner is not None

    def queue_length(self) -> int:
        """Number of callers holding or waiting for the lock. For introspection only."""
        with self._cond:
            return self._next_ticket - self._now_serving - len(self._abandoned)

    def __enter__(self) -> "FairLock":
        self.acquire()
        return self

    def __exit__(self, *args: object) -> None:
        self.release()


# =============================================================================
# Rate-Limited Decorator
# =============================================================================


class RateLimitedHttpClient(HttpClient):
    """
    HTTP client decorator that serializes requests and spaces them apart.

    Every verb (GET, POST, PUT, DELETE, HEAD and multipart POST) goes through
    the same protocol:

    1. Acquire the fair gate, queueing behind earlier callers.
    2. Wait `delay` seconds while holding the gate.
    3. If the wait was cancelled (see `UseCancellation`), release the gate
       and return None without calling the delegate.
    4. Otherwise call the delegate and release the gate once it returns or
       raises.

    Delegate errors propagate unchanged. Because the delegate is only ever
    called while holding the gate, it does not need to be thread-safe.

    There is no timeout on the delegated call other than the HTTP timeout
    passed through to it: a request that never returns keeps the gate.

    Example:
        >>> client = RateLimitedHttpClient(delay=0.5)
        >>> with ThreadPoolExecutor(max_workers=3) as pool:
        ...     urls = [f"http://x/{i}" for i in range(3)]
        ...     responses = list(pool.map(client.get, urls))  # ~0s, ~0.5s, ~1s

    Args:
        delay: Seconds to wait after acquiring the gate, before each request.
            Zero serializes requests without spacing them.
        delegate: The client that performs the requests. Defaults to a new
            HttpRequest owned by this instance.
    """

    def __init__(
        self,
        delay: float,
        delegate: HttpClient | None = None,
    ):
        """
        Initialize the rate-limited HTTP client.

        Raises:
            AssertionError: If delay is None or negative.
        """
        assert delay is not None, "delay cannot be None."
        assert delay >= 0, "delay must be greater than or equal to 0."

        self._delay = float(delay)
        self.delegate = delegate if delegate is not None else HttpRequest()
        self._gate = FairLock()

    def _lock_and_wait(self) -> bool:
        """
        Take the gate and wait out the delay.

        Returns:
            True if the caller may proceed (gate held), False if the wait was
            cancelled (gate already released).
        """
        self._gate.acquire()
        logger.debug(f"Gate acquired at {time.monotonic():.3f}, waiting {self._delay}s.")

        token = CancellationScope.get_current()
        try:
            if token is None:
                time.sleep(self._delay)
                return True
            cancelled = token.wait(self._delay)
        except BaseException:
            self._release_quietly()
            raise

        if cancelled:
            self._release_quietly()
            logger.warning("⚠️ Rate-limited request cancelled during delay; request was not sent.")
            return False
        return True

    def _release_quietly(self) -> None:
        try:
            self._gate.release()
        except RuntimeError as e:
            logger.debug(f"Ignoring gate release by non-owner: {e}")

    def _serialized(self, operation: Callable[..., Any], *args: Any) -> HttpResponse | None:
        if not self._lock_and_wait():
            return None
        try:
            return operation(*args)
        finally:
            self._gate.release()

    @override
    def get(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse | None:
        """
        Wait for the gate and the delay, then delegate the GET request.

        Returns:
            The delegate's response, or None if cancelled during the delay.
        """
        return self._serialized(self.delegate.get, url, headers, timeout)

    @override
    def post(
        self,
        url: str,
        data: RequestBody | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse | None:
        """
        Wait for the gate and the delay, then delegate the POST request.

        Returns:
            The delegate's response, or None if cancelled during the delay.
        """
        return self._serialized(self.delegate.post, url, data, headers, timeout)

    @override
    def post_multipart(
        self,
        url: str,
        fields: Mapping[str, MultipartValue],
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse | None:
        return self._serialized(self.delegate.post_multipart, url, fields, headers, timeout)

    @override
    def put(
        self,
        url: str,
        data: RequestBody | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse | None:
        return self._serialized(self.delegate.put, url, data, headers, timeout)

    @override
    def delete(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse | None:
        return self._serialized(self.delegate.delete, url, headers, timeout)

    @override
    def head(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse | None:
        return self._serialized(self.delegate.head, url, headers, timeout)
