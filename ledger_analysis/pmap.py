"""Order-preserving map over a bounded ``ThreadPoolExecutor``.

Used by :meth:`CategorizationEngine.categorize_batch` when a caller asks for
concurrency. Only a small window of work is in flight at a time, so a large
iterable of descriptions is never materialized as futures all at once.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from itertools import islice
from typing import TypeVar

InT = TypeVar("InT")
OutT = TypeVar("OutT")


def p_map(
    iterable: Iterable[InT],
    mapper: Callable[[InT], OutT],
    *,
    concurrency: int,
) -> list[OutT]:
    """Apply ``mapper`` to every item with at most ``concurrency`` calls running.

    The output follows input order. The first mapper error cancels work that
    has not started yet and is re-raised unchanged.
    """

    if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1:
        raise ValueError("concurrency must be a positive integer")

    items = enumerate(iterable)
    results: dict[int, OutT] = {}

    with ThreadPoolExecutor(max_workers=concurrency, thread_name_prefix="la-map") as pool:
        pending: dict[Future[OutT], int] = {
            pool.submit(mapper, item): idx for idx, item in islice(items, concurrency)
        }
        while pending:
            done, _ = wait(pending, return_when=FIRST_COMPLETED)
            for fut in done:
                idx = pending.pop(fut)
                try:
                    results[idx] = fut.result()
                except Exception:
                    pool.shutdown(wait=False, cancel_futures=True)
                    raise
            # Refill the window by as many slots as just freed.
            for idx, item in islice(items, len(done)):
                pending[pool.submit(mapper, item)] = idx

    return [results[i] for i in range(len(results))]


__all__ = ["p_map"]
