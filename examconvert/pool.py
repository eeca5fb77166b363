"""Thread pool running whole conversion requests concurrently."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Iterable, List, Optional

from .engine import ConversionEngine
from .types import ConversionRequest, ConversionResponse
from .utils import get_logger

LOGGER = get_logger("examconvert.pool")

DEFAULT_MAX_WORKERS = 4


class ConversionWorkerPool:
    """Runs :meth:`ConversionEngine.run` on a fixed set of worker threads.

    Each worker claims one request and processes it end to end; the engine's
    store is the only state shared between workers.

    Example:
        >>> with ConversionWorkerPool(ConversionEngine(), max_workers=2) as pool:
        ...     future = pool.submit(request)
        ...     response = future.result()
    """

    def __init__(self, engine: Optional[ConversionEngine] = None, max_workers: int = DEFAULT_MAX_WORKERS) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.engine = engine or ConversionEngine()
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="examconvert")

    def submit(self, request: ConversionRequest) -> "Future[ConversionResponse]":
        LOGGER.debug("Queueing request with %s documents", len(request.documents))
        return self._executor.submit(self.engine.run, request)

    def map(self, requests: Iterable[ConversionRequest]) -> List[ConversionResponse]:
        """Run ``requests`` concurrently and return responses in input order."""

        futures = [self.submit(request) for request in requests]
        return [future.result() for future in futures]

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "ConversionWorkerPool":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.shutdown(wait=True)


__all__ = ["ConversionWorkerPool", "DEFAULT_MAX_WORKERS"]
