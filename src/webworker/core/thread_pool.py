"""
=============================================================================
THREAD POOL IMPLEMENTATION
=============================================================================

A bounded pool of worker threads that run ConnectionWorkers. This is the
admission limit on how many connections are served at once.

=============================================================================
WHY A BOUNDED POOL?
=============================================================================

The simplest design spawns a thread per connection:

    for conn in accept_connections():
        threading.Thread(target=ConnectionWorker(conn, config).run).start()

Nothing caps the thread count, so a flood of slow clients means
unbounded threads, unbounded memory, and eventually a crash.

With a pool:

    pool = ThreadPool(min_workers=4, max_workers=16, queue_size=100)
    pool.start()

    for conn in accept_connections():
        if not pool.submit(ConnectionWorker(conn, config).run, queue_timeout=5.0):
            conn.close()        # Over capacity: drop, don't crash

At most max_workers connections are served at once. Up to queue_size
more wait their turn. Beyond that, the acceptor drops the connection.

=============================================================================
ARCHITECTURE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        Thread Pool                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   submit() ──► [Task][Task][Task] ...   (queue.Queue, bounded)      │
    │                          │                                           │
    │                          │ get()  (blocks while empty)              │
    │                          ▼                                           │
    │   ┌──────────┐ ┌──────────┐ ┌──────────┐ ┌──────────┐              │
    │   │ Worker 0 │ │ Worker 1 │ │ Worker 2 │ │ Worker 3 │  ...→ max    │
    │   │ (idle)   │ │ (busy)   │ │ (busy)   │ │ (idle)   │              │
    │   └──────────┘ └──────────┘ └──────────┘ └──────────┘              │
    │                                                                      │
    │   • min_workers threads start immediately                           │
    │   • More are added (up to max_workers) when all are busy           │
    │   • None in the queue is a "poison pill": the worker exits         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Tasks share nothing but the queue. A task that raises is logged and the
worker thread carries on with the next one.

=============================================================================
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    """
    Worker thread states.

    Used for monitoring and scaling decisions.
    """
    IDLE = "idle"        # Waiting for task
    BUSY = "busy"        # Executing task
    STOPPED = "stopped"  # Thread exited


@dataclass
class Task:
    """
    A deferred function call: "call func(*args, **kwargs) later".

    Attributes:
        func: The function to execute.
        args: Positional arguments.
        kwargs: Keyword arguments.
        submitted_at: When the task was queued (for queue-wait logging).
        on_discard: Called instead of func if the pool shuts down before
                    the task runs (e.g. to close its connection).
    """
    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    submitted_at: float = field(default_factory=time.time)
    on_discard: Optional[Callable[[], Any]] = None


class Worker(threading.Thread):
    """
    Worker thread that processes tasks from the queue.

    Loop:
        1. Wait for a task (blocking, with idle_timeout)
        2. None → poison pill, exit
        3. Run the task, catching everything it raises
        4. Mark the task done, go to 1
    """

    def __init__(
        self,
        task_queue: queue.Queue,
        worker_id: int,
        idle_timeout: float = 60.0
    ):
        """
        Args:
            task_queue: Queue to pull tasks from.
            worker_id: Identifier for log lines and the thread name.
            idle_timeout: Seconds to wait for a task before re-checking
                          the shutdown flag.
        """
        super().__init__(name=f"Worker-{worker_id}", daemon=True)

        self.task_queue = task_queue
        self.worker_id = worker_id
        self.idle_timeout = idle_timeout

        self.state = WorkerState.IDLE
        self._shutdown = threading.Event()

        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while not self._shutdown.is_set():
            try:
                task = self.task_queue.get(timeout=self.idle_timeout)
            except queue.Empty:
                continue

            if task is None:
                # Poison pill
                self.task_queue.task_done()
                break

            try:
                self._execute_task(task)
            finally:
                self.task_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        """
        Execute a single task with state tracking, timing and error
        isolation. A failing task never takes the thread down with it.
        """
        self.state = WorkerState.BUSY
        start_time = time.time()

        waited = start_time - task.submitted_at
        if waited > 1.0:
            logger.debug(f"Worker {self.worker_id} picked up task after {waited:.2f}s in queue")

        try:
            task.func(*task.args, **task.kwargs)
            elapsed = time.time() - start_time
            logger.debug(f"Worker {self.worker_id} completed task in {elapsed:.3f}s")
            self.tasks_completed += 1
        except Exception as e:
            elapsed = time.time() - start_time
            logger.exception(
                f"Worker {self.worker_id} task failed after {elapsed:.3f}s: {e}"
            )
            self.tasks_failed += 1
        finally:
            self.state = WorkerState.IDLE

    def shutdown(self):
        """Signal the worker to stop."""
        self._shutdown.set()


class ThreadPool:
    """
    Bounded thread pool for running ConnectionWorkers.

    Features:
    - min_workers threads at start, scaling up to max_workers
    - Bounded task queue (the admission limit)
    - Graceful shutdown with poison pills
    - Counters for monitoring (stats)
    """

    def __init__(
        self,
        min_workers: int = 4,
        max_workers: int = 16,
        queue_size: int = 100,
        idle_timeout: float = 60.0
    ):
        """
        Args:
            min_workers: Threads created at startup and always running.
            max_workers: Upper bound on threads, i.e. on concurrently
                         served connections.
            queue_size: Tasks allowed to wait for a free thread.
            idle_timeout: Seconds before an idle worker re-checks shutdown.
        """
        self.min_workers = min_workers
        self.max_workers = max_workers
        self.queue_size = queue_size
        self.idle_timeout = idle_timeout

        self._task_queue: "queue.Queue[Optional[Task]]" = queue.Queue(maxsize=queue_size)
        self._workers: list[Worker] = []
        self._lock = threading.Lock()  # Protects _workers

        self._started = False
        self._shutdown = False
        self._next_worker_id = 0
        self.tasks_rejected = 0
        self.tasks_discarded = 0

    def start(self):
        """Start the pool with min_workers threads."""
        if self._started:
            return

        logger.info(f"Starting thread pool with {self.min_workers}-{self.max_workers} workers")

        for _ in range(self.min_workers):
            self._add_worker()

        self._started = True
        self._shutdown = False

    def _add_worker(self) -> Worker:
        with self._lock:
            if len(self._workers) >= self.max_workers:
                raise RuntimeError("Maximum workers reached")
            return self._spawn_locked()

    def _spawn_locked(self) -> Worker:
        worker = Worker(
            task_queue=self._task_queue,
            worker_id=self._next_worker_id,
            idle_timeout=self.idle_timeout,
        )
        self._next_worker_id += 1
        self._workers.append(worker)
        worker.start()
        return worker

    def submit(
        self,
        func: Callable[..., Any],
        args: tuple = (),
        kwargs: Optional[dict] = None,
        block: bool = True,
        queue_timeout: Optional[float] = None,
        on_discard: Optional[Callable[[], Any]] = None
    ) -> bool:
        """
        Submit a task for execution.

        Args:
            func: The function to execute.
            args: Positional arguments.
            kwargs: Keyword arguments.
            block: Wait for room if the queue is full.
            queue_timeout: Longest wait for room (None = forever).
            on_discard: Cleanup to run if the task is dropped at shutdown.

        Returns:
            True if queued, False if the queue stayed full.

        Raises:
            RuntimeError: If the pool is not started or is shutting down.
        """
        if not self._started:
            raise RuntimeError("Thread pool not started")
        if self._shutdown:
            raise RuntimeError("Thread pool is shutting down")

        task = Task(func=func, args=args, kwargs=kwargs or {}, on_discard=on_discard)

        try:
            self._task_queue.put(task, block=block, timeout=queue_timeout)
        except queue.Full:
            self.tasks_rejected += 1
            return False

        self._maybe_scale_up()
        return True

    def _maybe_scale_up(self):
        """Add a worker if every worker is busy and tasks are waiting."""
        with self._lock:
            if len(self._workers) >= self.max_workers:
                return
            busy_count = sum(1 for w in self._workers if w.state == WorkerState.BUSY)
            if busy_count == len(self._workers) and self._task_queue.qsize() > 0:
                logger.debug(
                    f"Scaling up: {len(self._workers)} -> {len(self._workers) + 1} workers"
                )
                self._spawn_locked()

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Shutdown the thread pool.

        Args:
            wait: Let queued tasks finish before stopping workers.
            timeout: Longest time to wait for the queue to empty.
        """
        if not self._started:
            return

        logger.info("Shutting down thread pool...")
        self._shutdown = True

        if wait:
            deadline = time.time() + timeout if timeout else None
            while not self._task_queue.empty():
                if deadline and time.time() > deadline:
                    logger.warning("Shutdown timeout, forcing stop")
                    break
                time.sleep(0.05)

        self._discard_pending()

        for _ in self._workers:
            try:
                self._task_queue.put(None, block=False)
            except queue.Full:
                pass  # Workers also check the shutdown flag

        for worker in self._workers:
            worker.shutdown()
            worker.join(timeout=2.0)

        self._workers.clear()
        self._started = False

        logger.info("Thread pool shutdown complete")

    def _discard_pending(self):
        """Drop tasks that never started, running their on_discard cleanup."""
        discarded = 0

        while True:
            try:
                task = self._task_queue.get_nowait()
            except queue.Empty:
                break

            try:
                if task is not None and task.on_discard is not None:
                    task.on_discard()
            except Exception:
                logger.exception("Cleanup of discarded task failed")
            finally:
                self._task_queue.task_done()

            if task is not None:
                discarded += 1

        if discarded:
            logger.warning(f"Discarded {discarded} queued task(s) at shutdown")
        self.tasks_discarded += discarded

    # =========================================================================
    # MONITORING
    # =========================================================================

    @property
    def active_workers(self) -> int:
        """Count of non-stopped workers."""
        return sum(1 for w in self._workers if w.state != WorkerState.STOPPED)

    @property
    def busy_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

    @property
    def idle_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.IDLE)

    @property
    def queue_depth(self) -> int:
        """Tasks currently waiting."""
        return self._task_queue.qsize()

    @property
    def stats(self) -> dict:
        """Worker and task counters, for the shutdown log and tests."""
        return {
            "workers": {
                "total": len(self._workers),
                "active": self.active_workers,
                "busy": self.busy_workers,
                "idle": self.idle_workers,
            },
            "tasks": {
                "queued": self._task_queue.qsize(),
                "completed": sum(w.tasks_completed for w in self._workers),
                "failed": sum(w.tasks_failed for w in self._workers),
                "rejected": self.tasks_rejected,
                "discarded": self.tasks_discarded,
            },
        }
