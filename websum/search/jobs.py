"""
Purpose:
- Background job registry: one asyncio task per search id.
- Submit returns immediately; callers observe completion by polling the search row.
- cancel() stops a running search, e.g. when its row is deleted.
"""

from __future__ import annotations
import asyncio
import logging
from typing import Any, Coroutine, Dict

logger = logging.getLogger(__name__)

class SearchJobs:
    def __init__(self):
        self._tasks: Dict[int, asyncio.Task] = {}

    def submit(self, search_id: int, work: Coroutine[Any, Any, None]) -> asyncio.Task:
        if search_id in self._tasks:
            work.close()
            raise ValueError(f"Search {search_id} already has a running job")

        task = asyncio.create_task(work, name=f"search-{search_id}")
        self._tasks[search_id] = task
        task.add_done_callback(lambda t: self._tasks.pop(search_id, None))
        logger.info("Started search job %d", search_id)
        return task

    def is_running(self, search_id: int) -> bool:
        task = self._tasks.get(search_id)
        return task is not None and not task.done()

    def cancel(self, search_id: int) -> bool:
        task = self._tasks.get(search_id)
        if task is None or task.done():
            return False
        task.cancel()
        logger.info("Cancelled search job %d", search_id)
        return True

    async def wait(self, search_id: int) -> None:
        """Block until the job for search_id (if any) finishes."""
        task = self._tasks.get(search_id)
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    async def shutdown(self) -> None:
        pending = [t for t in self._tasks.values() if not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._tasks.clear()

    def __len__(self) -> int:
        return len(self._tasks)
