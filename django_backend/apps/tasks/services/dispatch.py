import asyncio
import logging
from typing import Any, Awaitable, Callable, Set

logger = logging.getLogger(__name__)


class BackgroundDispatcher:
    """
    Runs side effects as detached asyncio tasks.

    The caller never awaits a spawned unit of work and never sees its failure:
    exceptions are logged and swallowed here. Spawned tasks are tracked so they
    are not garbage collected mid-flight and so the owner of the event loop can
    wait for them before closing it (see ``drain``).
    """

    def __init__(self):
        self._pending: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def spawn(self, label: str, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> asyncio.Task:
        task = asyncio.ensure_future(self._run(label, func, *args, **kwargs))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _run(self, label, func, *args, **kwargs):
        try:
            await func(*args, **kwargs)
        except Exception:
            logger.exception(f"Background side effect failed: {label}")

    async def drain(self) -> None:
        """Wait until every spawned side effect has finished"""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
