"""Worker pool - concurrent execution of benchmark phases.

Usage::

    from s3bench.runner import WorkerPool

    with WorkerPool(config, content) as pool:
        write_report = pool.run_phase(Operation.WRITE)
        read_report = pool.run_phase(Operation.READ)

Every worker owns one S3 client bound to ``endpoints[i % len]`` and
loops over a shared request queue, pushing one response per request
onto a shared response queue. Responses are aggregated in completion
order by the thread that called ``run_phase``.
"""

from __future__ import annotations

import queue
import threading
from concurrent.futures import Future, ThreadPoolExecutor, as_completed

from s3bench.config import BenchConfig
from s3bench.content import ContentSource
from s3bench.logging_setup import get_logger
from s3bench.models import (
    Operation,
    ReadRequest,
    Request,
    Response,
    WriteRequest,
)
from s3bench.report import PhaseAggregator, Report
from s3bench.s3_client import ClientFactory, S3Client
from s3bench.s3_ops import execute

# Submission blocks once this many requests wait for a free worker
REQUEST_QUEUE_DEPTH = 1

# Seconds between checks for exited workers while stopping the pool
STOP_POLL_INTERVAL = 0.1


class WorkerStartupError(RuntimeError):
    """Raised when one or more workers could not create their client."""

    def __init__(self, failures: dict[int, Exception]) -> None:
        details = "; ".join(
            f"worker {idx}: {exc}" for idx, exc in sorted(failures.items())
        )
        super().__init__(
            f"{len(failures)} worker(s) failed to start: {details}"
        )
        self.failures = failures


class WorkerPool:
    """Fixed set of worker threads executing storage requests."""

    def __init__(
        self,
        config: BenchConfig,
        content: ContentSource,
        client_factory: ClientFactory = S3Client,
    ) -> None:
        self.config = config
        self.content = content
        self.client_factory = client_factory
        self.logger = get_logger()
        self._requests: queue.Queue[Request | None] = queue.Queue(
            maxsize=REQUEST_QUEUE_DEPTH,
        )
        self._responses: queue.Queue[Response] = queue.Queue()
        self._ready: queue.Queue[tuple[int, Exception | None]] = (
            queue.Queue()
        )
        self._executor: ThreadPoolExecutor | None = None
        self._futures: list[Future] = []

    def __enter__(self) -> WorkerPool:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def start(self) -> None:
        """Start all workers and wait until each has a client.

        Raises:
            WorkerStartupError: If any worker failed to build its
                client. The pool is shut down before raising.
        """
        workers = self.config.workers
        self._executor = ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="s3bench-worker",
        )
        self._futures = [
            self._executor.submit(self._worker_loop, idx)
            for idx in range(workers)
        ]

        failures: dict[int, Exception] = {}
        for _ in range(workers):
            idx, exc = self._ready.get()
            if exc is not None:
                failures[idx] = exc

        if failures:
            self.close()
            raise WorkerStartupError(failures)

        self.logger.debug(
            f"Started {workers} workers across "
            f"{len(self.config.endpoints)} endpoint(s)"
        )

    def close(self) -> None:
        """Stop all workers and wait for them to exit."""
        if self._executor is None:
            return
        self._stop_workers()

        crashed = 0
        for future in as_completed(self._futures):
            try:
                future.result()
            except Exception as exc:
                crashed += 1
                self.logger.error(f"Worker thread error: {exc}")
        self._executor.shutdown(wait=True)
        self._executor = None
        self._futures = []
        if crashed:
            raise RuntimeError(
                f"{crashed}/{self.config.workers} worker threads failed"
            )

    def _stop_workers(self) -> None:
        """Send one stop sentinel to every worker still running.

        A worker that already exited never takes its sentinel, so the
        count of running workers is refreshed whenever the queue stays
        full.
        """
        pending = sum(not f.done() for f in self._futures)
        while pending:
            try:
                self._requests.put(None, timeout=STOP_POLL_INTERVAL)
            except queue.Full:
                pending = min(
                    pending, sum(not f.done() for f in self._futures),
                )
                continue
            pending -= 1

    def _worker_loop(self, idx: int) -> None:
        endpoint = self.config.endpoint_for(idx)
        logger = get_logger(worker_id=idx, endpoint=endpoint)
        try:
            client = self.client_factory(self.config, endpoint)
        except Exception as exc:
            logger.error(f"Could not create client for {endpoint}: {exc}")
            self._ready.put((idx, exc))
            return
        self._ready.put((idx, None))
        logger.debug(f"Worker bound to {endpoint}")

        try:
            while True:
                request = self._requests.get()
                if request is None:
                    break
                self._responses.put(
                    execute(
                        client,
                        request,
                        object_size=self.config.object_size,
                        part_size=self.config.multipart_size,
                    )
                )
        finally:
            close = getattr(client, "close", None)
            if close is not None:
                close()

    def _submit(self, operation: Operation) -> None:
        for key in self.config.object_keys():
            if operation is Operation.WRITE:
                request: Request = WriteRequest(key, self.content.open())
            else:
                request = ReadRequest(key)
            self._requests.put(request)

    def run_phase(self, operation: Operation) -> Report:
        """Submit one request per object and aggregate every response.

        Args:
            operation: Kind of operation to drive.

        Returns:
            Report for the completed phase.
        """
        if self._executor is None:
            raise RuntimeError("WorkerPool.start() has not been called")

        logger = get_logger(phase=operation)
        logger.info(f"Running {operation} test...")

        expected = self.config.object_count
        aggregator = PhaseAggregator(
            operation,
            expected=expected,
            object_size=self.config.object_size,
            logger=logger,
            verbose=self.config.verbose,
        )
        submitter = threading.Thread(
            target=self._submit,
            args=(operation,),
            name=f"s3bench-submit-{operation.value.lower()}",
            daemon=True,
        )
        submitter.start()

        for _ in range(expected):
            aggregator.add(self._responses.get())

        submitter.join()
        report = aggregator.finish()
        logger.info(
            f"{operation} phase done: "
            f"{report.success_count}/{expected} succeeded, "
            f"{report.error_count} errors"
        )
        return report
