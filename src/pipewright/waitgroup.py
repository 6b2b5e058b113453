# waitgroup.py
from __future__ import annotations

import time
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Callable, Dict, List, Optional, Tuple

from .context import Context
from .errors import BatchTimeoutError, ExecutionError
from .model import ActionOpts, Step

Task = Callable[[Context], None]


class WaitGroup:
    """
    Runs one batch of tasks concurrently, bounded by a deadline.

    wait() returns once every task has finished. If any task raises,
    or the deadline passes first, the context given to the tasks is
    cancelled and the error is raised without waiting for the rest.
    A timeout of None means no deadline.
    """

    def __init__(self, timeout: Optional[float], max_workers: Optional[int] = None):
        self.timeout = timeout
        self.max_workers = max_workers
        self._tasks: List[Tuple[str, Task]] = []

    def __len__(self) -> int:
        return len(self._tasks)

    def add(self, name: str, task: Task) -> None:
        self._tasks.append((name, task))

    def add_step(self, step: Step, opts: ActionOpts) -> None:
        action = step.action
        if action is None:
            return
        self.add(step.name, lambda ctx: action(ctx, opts))

    def wait(self, ctx: Context) -> None:
        if not self._tasks:
            return

        child = ctx.with_cancel()
        deadline = None if self.timeout is None else time.monotonic() + self.timeout
        pool = ThreadPoolExecutor(
            max_workers=self.max_workers or len(self._tasks),
            thread_name_prefix="pipewright",
        )
        futures: Dict[Future, str] = {
            pool.submit(task, child): name for name, task in self._tasks
        }

        try:
            pending = set(futures)
            while pending:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    child.cancel()
                    raise BatchTimeoutError(self.timeout, sorted(futures[f] for f in pending))

                done, pending = wait(pending, timeout=remaining, return_when=FIRST_EXCEPTION)
                for fut in done:
                    exc = fut.exception()
                    if exc is not None:
                        child.cancel()
                        if isinstance(exc, (ExecutionError, BatchTimeoutError)):
                            raise exc
                        raise ExecutionError(str(exc), step=futures[fut]) from exc
        finally:
            # in-flight tasks observe the cancelled context; don't block on them
            pool.shutdown(wait=False, cancel_futures=True)
            child.detach()
