"""
Row-partitioned kernel execution on a thread pool.

Elementwise kernels and matrix products write disjoint slices of their output,
so they can be split by leading-axis row ranges and run concurrently. NumPy
releases the GIL inside its ufunc and BLAS loops, which lets a plain
`concurrent.futures.ThreadPoolExecutor` deliver real parallelism here.

The executor is a fan-out/fan-in: `run_rows` returns only after every partial
kernel finished, and the first exception raised by any of them is re-raised
on the calling thread.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

logger = logging.getLogger(__name__)

RowKernel = Callable[[int, int], None]


class KernelExecutor:
    """
    Splits row-range kernels across a lazily created thread pool.

    Parameters
    ----------
    workers : int
        Maximum number of concurrent partial kernels. ``1`` disables the pool.
    threshold : int
        Minimum amount of work (usually output elements) before a kernel is
        split.
    """

    def __init__(self, workers: int = 1, threshold: int = 65536) -> None:
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}.")
        self._workers = int(workers)
        self._threshold = int(threshold)
        self._pool: Optional[ThreadPoolExecutor] = None
        self._lock = threading.Lock()

    @property
    def workers(self) -> int:
        return self._workers

    @property
    def threshold(self) -> int:
        return self._threshold

    def is_parallel(self, rows: int, work: int) -> bool:
        """Whether a kernel over `rows` rows and `work` elements would be split."""
        return self._workers > 1 and rows >= 2 and work >= self._threshold

    def run_rows(self, rows: int, work: int, kernel: RowKernel) -> None:
        """
        Run ``kernel(start, end)`` over ``[0, rows)``.

        The kernel is called once with ``(0, rows)`` when parallelism is off
        or not worth it; otherwise the range is cut into at most `workers`
        contiguous chunks executed on the pool.

        Parameters
        ----------
        rows : int
            Number of independent rows.
        work : int
            Total work estimate compared against the threshold.
        kernel : Callable[[int, int], None]
            Writes the output for the half-open row range it receives. Chunks
            never overlap, and no ordering between them is guaranteed.
        """
        if rows <= 0:
            return
        if not self.is_parallel(rows, work):
            kernel(0, rows)
            return

        parts = min(self._workers, rows)
        base, extra = divmod(rows, parts)
        bounds = []
        start = 0
        for i in range(parts):
            end = start + base + (1 if i < extra else 0)
            bounds.append((start, end))
            start = end

        logger.debug("Splitting kernel over %d rows into %d chunks", rows, parts)
        pool = self._ensure_pool()
        futures = [pool.submit(kernel, s, e) for s, e in bounds]
        for future in futures:
            future.result()

    def _ensure_pool(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._pool is None:
                self._pool = ThreadPoolExecutor(
                    max_workers=self._workers, thread_name_prefix="numstride"
                )
            return self._pool

    def shutdown(self) -> None:
        """Release the worker threads. The executor can still be used afterwards."""
        with self._lock:
            pool, self._pool = self._pool, None
        if pool is not None:
            pool.shutdown(wait=True)

    def __repr__(self) -> str:
        return f"KernelExecutor(workers={self._workers}, threshold={self._threshold})"
