"""Dask-backed execution context for fanning weight computation out over workers."""

import os
from typing import Any, Callable, List, Optional, Sequence

import pandas as pd
from dask.distributed import Client, LocalCluster, as_completed
from tqdm import tqdm

from ..utils.logging import get_logger

logger = get_logger(__name__)


class ExecutionContext:
    """Explicit worker-pool lifecycle: create pool, submit work, join, tear down.

    Each submitted chunk is an independent task over a disjoint slice of the
    input, so a retried task cannot disturb another chunk's result. The
    shared object (the source regions) is scattered once to every worker and
    treated as read-only.

    ``n_workers=0`` runs chunks in the calling process with the same
    progress reporting, which keeps debugging and small runs cheap.
    """

    def __init__(self,
                 n_workers: Optional[int] = None,
                 processes: bool = True,
                 retries: int = 2,
                 show_progress: bool = True,
                 client: Optional[Client] = None):
        """Initialize execution context.

        Args:
            n_workers: Worker count (None = all CPUs but one, 0 = in-process)
            processes: Use worker processes rather than threads
            retries: Times a failed chunk task is resubmitted
            show_progress: Display a progress bar over completed targets
            client: Existing Dask client to reuse (not closed by this context)
        """
        if n_workers is None:
            n_workers = max((os.cpu_count() or 2) - 1, 1)
        if n_workers < 0:
            raise ValueError(f"Number of workers cannot be negative: {n_workers}")

        self.n_workers = n_workers
        self.processes = processes
        self.retries = retries
        self.show_progress = show_progress
        self.client = client
        self._owns_client = client is None
        self._cluster = None

    @classmethod
    def from_settings(cls, settings) -> "ExecutionContext":
        """Build a context from a Settings instance."""
        return cls(
            n_workers=settings.resolved_workers(),
            processes=settings.use_processes,
            retries=settings.task_retries,
            show_progress=settings.show_progress,
        )

    @property
    def is_parallel(self) -> bool:
        return self.n_workers > 0 or not self._owns_client

    def start(self) -> "ExecutionContext":
        """Start the local cluster (no-op for in-process or borrowed clients)."""
        if self.client is not None or self.n_workers == 0:
            return self

        self._cluster = LocalCluster(
            n_workers=self.n_workers,
            threads_per_worker=1,
            processes=self.processes,
            dashboard_address=None,
        )
        self.client = Client(self._cluster)
        logger.info("Started worker pool", n_workers=self.n_workers, processes=self.processes)
        return self

    def map_chunks(self,
                   func: Callable[[Any, Any], Any],
                   chunks: Sequence[Any],
                   shared: Any = None,
                   sizes: Optional[Sequence[int]] = None,
                   desc: str = "Processing") -> List[Any]:
        """Apply ``func(chunk, shared)`` to every chunk and join on completion.

        Args:
            func: Picklable function of (chunk, shared)
            chunks: Disjoint units of work
            shared: Read-only object every task needs
            sizes: Progress units per chunk (defaults to 1 each)
            desc: Progress bar label

        Returns:
            Results in the order of ``chunks``
        """
        if sizes is None:
            sizes = [1] * len(chunks)

        with tqdm(total=sum(sizes), desc=desc, disable=not self.show_progress) as bar:
            if not self.is_parallel:
                results = []
                for chunk, size in zip(chunks, sizes):
                    results.append(func(chunk, shared))
                    bar.update(size)
                return results

            if self.client is None:
                raise RuntimeError("ExecutionContext has not been started")

            shared_future = None
            if shared is not None:
                shared_future = self.client.scatter(shared, broadcast=True)

            futures = [
                self.client.submit(func, chunk, shared_future, retries=self.retries, pure=False)
                for chunk in chunks
            ]
            position = {future.key: i for i, future in enumerate(futures)}

            results: List[Any] = [None] * len(futures)
            for future in as_completed(futures):
                i = position[future.key]
                results[i] = future.result()
                bar.update(sizes[i])

        return results

    def close(self) -> None:
        """Shut down the pool if this context created it."""
        if not self._owns_client:
            return
        if self.client is not None:
            self.client.close()
            self.client = None
        if self._cluster is not None:
            self._cluster.close()
            self._cluster = None
            logger.info("Stopped worker pool")

    def __enter__(self) -> "ExecutionContext":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def chunk_frame(frame: pd.DataFrame, chunk_size: int) -> List[pd.DataFrame]:
    """Split a frame into disjoint, ordered row chunks of at most ``chunk_size``."""
    if chunk_size < 1:
        raise ValueError("Chunk size must be at least 1")
    return [frame.iloc[start:start + chunk_size] for start in range(0, len(frame), chunk_size)]
