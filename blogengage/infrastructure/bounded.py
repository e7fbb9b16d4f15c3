# ==============================================================================
# Bounded Remote Calls
# ==============================================================================
"""
Run remote-store calls with a hard upper bound on how long the caller waits.

The caller blocks for at most ``timeout`` seconds. On timeout or error the
call counts as failed and a default is returned. A timed-out call is not
cancelled in-flight (the database driver offers no cooperative
cancellation); its late result is logged and ignored.

Usage::

    bounded = BoundedExecutor()
    promotions = bounded.run(repo.list_active, timeout=5, default=[])
"""

import logging
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BoundedExecutor:
    """
    Thread-pool backed runner for timeout-bounded calls.

    Args:
        max_workers: Worker threads available for in-flight calls
    """

    def __init__(self, max_workers: int = 4):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="bounded")

    def run(
        self,
        fn: Callable[..., T],
        *args: Any,
        timeout: float,
        default: T | None = None,
        label: str | None = None,
        **kwargs: Any,
    ) -> T | None:
        """
        Call ``fn(*args, **kwargs)`` and wait at most ``timeout`` seconds.

        Args:
            fn: Callable to run
            timeout: Seconds to wait before giving up
            default: Value returned on timeout or error
            label: Name used in log messages (defaults to the callable's name)

        Returns:
            The call's result, or ``default``
        """
        name = label or getattr(fn, "__name__", repr(fn))
        future = self._executor.submit(fn, *args, **kwargs)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            logger.warning("%s timed out after %.1fs, ignoring its result", name, timeout)
            future.add_done_callback(_log_late_result(name))
            return default
        except Exception as e:
            logger.error("%s failed: %s", name, e)
            return default

    def shutdown(self, wait: bool = False) -> None:
        """Stop accepting work; in-flight calls finish in the background unless wait=True."""
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "BoundedExecutor":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown(wait=False)


def _log_late_result(name: str) -> Callable[[Future], None]:
    def _callback(future: Future) -> None:
        exception = future.exception()
        if exception is not None:
            logger.debug("Late call %s finished with error: %s", name, exception)
        else:
            logger.debug("Late call %s finished; result discarded", name)

    return _callback
