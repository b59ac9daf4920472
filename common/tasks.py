"""Small task utilities: bounded fan-out and time-boxed execution."""

from __future__ import annotations

import multiprocessing
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, Sequence, TypeVar


T = TypeVar("T")
R = TypeVar("R")


class TaskTimeoutError(TimeoutError):
    """Raised when a time-boxed task does not finish in time."""


@dataclass(slots=True)
class Settled(Generic[T, R]):
    """Outcome of one item processed by :func:`settle_all`."""

    item: T
    value: R | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def settle_all(
    func: Callable[[T], R], items: Iterable[T], *, max_workers: int = 5
) -> list[Settled[T, R]]:
    """Apply ``func`` to every item with at most ``max_workers`` in flight.

    Every item settles on its own: an exception is captured on its
    :class:`Settled` entry instead of aborting the batch. Results keep the
    input order.
    """

    items = list(items)
    if not items:
        return []
    results: list[Settled[T, R]] = []
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(items)))) as executor:
        futures = [executor.submit(func, item) for item in items]
        for item, future in zip(items, futures):
            try:
                results.append(Settled(item=item, value=future.result()))
            except Exception as exc:
                results.append(Settled(item=item, error=exc))
    return results


def run_with_timeout(func: Callable[..., R], args: Sequence[Any], *, timeout: float) -> R:
    """Run ``func(*args)`` in a child process, killing it after ``timeout`` seconds.

    ``func`` and its arguments must be picklable (module level callables).
    Exceptions raised in the child are re-raised here.
    """

    with multiprocessing.Pool(processes=1) as pool:
        pending = pool.apply_async(func, tuple(args))
        try:
            return pending.get(timeout=timeout)
        except multiprocessing.TimeoutError as exc:
            raise TaskTimeoutError(f"Task exceeded {timeout:g}s") from exc


__all__ = ["Settled", "TaskTimeoutError", "settle_all", "run_with_timeout"]
