"""Bounded-concurrency scheduler for independent fetch tasks.

Tasks run in batches of at most ``max_concurrent`` short-lived worker threads.
Each worker pushes its position onto the batch's completion channel when it
finishes, whether or not it succeeded. The driver takes from the channel once
per launched worker, each take bounded by ``task_timeout``; a worker that is
still running after its wait times out is abandoned, not killed. Workers only
write to their own task's quote, so no locking is needed.
"""

import logging
import queue
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from ticker_feed.config import Settings
from ticker_feed.models.market_data import AssetQuote


logger = logging.getLogger(__name__)


@dataclass
class FetchTask:
    """One unit of work; owns exactly one output quote for a single batch."""

    symbol: str
    quote: AssetQuote
    success: bool = False


@dataclass
class ScheduleReport:
    """What happened during one scheduler run."""

    successes: list[bool] = field(default_factory=list)
    batches: int = 0
    launched: int = 0
    signals: int = 0
    timed_out: int = 0
    launch_failures: int = 0
    sequential: bool = False

    @property
    def succeeded(self) -> int:
        return sum(self.successes)


Work = Callable[[FetchTask], bool]


class BoundedFetchScheduler:
    """Runs fetch tasks with a hard cap on concurrent workers."""

    def __init__(
        self,
        max_concurrent: int = 2,
        task_timeout: float = 15.0,
        batch_cooldown: float = 0.1,
        channel_factory: Callable[[], queue.SimpleQueue] = queue.SimpleQueue,
        thread_factory: Callable[..., threading.Thread] = threading.Thread,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.max_concurrent = max_concurrent
        self.task_timeout = task_timeout
        self.batch_cooldown = batch_cooldown
        self.channel_factory = channel_factory
        self.thread_factory = thread_factory
        self.sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings) -> "BoundedFetchScheduler":
        return cls(
            max_concurrent=settings.max_concurrent_tasks,
            task_timeout=settings.task_timeout,
            batch_cooldown=settings.batch_cooldown,
        )

    @staticmethod
    def _execute(task: FetchTask, work: Work) -> None:
        try:
            task.success = bool(work(task))
        except Exception:
            logger.exception(f"  Task for {task.symbol} raised")
            task.success = False

    def _worker(
        self, position: int, task: FetchTask, work: Work, channel: queue.SimpleQueue
    ) -> None:
        try:
            self._execute(task, work)
        finally:
            channel.put(position)

    def _run_batch(
        self,
        tasks: Sequence[FetchTask],
        start: int,
        stop: int,
        work: Work,
        channel: queue.SimpleQueue,
        report: ScheduleReport,
    ) -> None:
        logger.info(f"  Launching batch of {stop - start} tasks...")

        for position in range(start, stop):
            task = tasks[position]
            report.launched += 1
            thread = self.thread_factory(
                target=self._worker,
                args=(position, task, work, channel),
                name=f"fetch-{position}",
                daemon=True,
            )
            try:
                thread.start()
            except RuntimeError as e:
                logger.error(f"  Failed to start task {position} ({task.symbol}): {e}")
                report.launch_failures += 1
                task.success = False
                # Signal anyway so the driver does not wait on a worker that never ran
                channel.put(position)

        pending = set(range(start, stop))
        for _ in range(start, stop):
            try:
                position = channel.get(timeout=self.task_timeout)
            except queue.Empty:
                report.timed_out += 1
                continue
            report.signals += 1
            pending.discard(position)
            report.successes[position] = tasks[position].success

        for position in sorted(pending):
            logger.warning(
                f"  Task {position} ({tasks[position].symbol}) timed out "
                f"after {self.task_timeout}s"
            )

    def _run_sequential(
        self, tasks: Sequence[FetchTask], start: int, work: Work, report: ScheduleReport
    ) -> None:
        report.sequential = True
        for position in range(start, len(tasks)):
            self._execute(tasks[position], work)
            report.successes[position] = tasks[position].success

    def run(self, tasks: Sequence[FetchTask], work: Work) -> ScheduleReport:
        """
        Run every task, at most ``max_concurrent`` at a time.

        Args:
            tasks: Tasks with disjoint output quotes
            work: Fetch + normalize unit; returns True on success

        Returns:
            ScheduleReport; ``successes[i]`` is True only if task i signalled
            completion in time and its work succeeded
        """
        count = len(tasks)
        report = ScheduleReport(successes=[False] * count)
        logger.info(f"  Starting parallel fetch with {count} assets...")

        start = 0
        while start < count:
            try:
                channel = self.channel_factory()
            except (MemoryError, OSError, RuntimeError) as e:
                logger.error(
                    f"  Failed to create completion channel ({e}), "
                    "falling back to sequential"
                )
                self._run_sequential(tasks, start, work, report)
                break

            stop = min(start + self.max_concurrent, count)
            report.batches += 1
            self._run_batch(tasks, start, stop, work, channel, report)
            start = stop

            # Cooldown between batches, never after the last one
            if start < count:
                self.sleep(self.batch_cooldown)

        logger.info(f"  Parallel fetch complete: {report.succeeded}/{count} succeeded")
        return report
