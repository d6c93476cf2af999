"""
Render scheduling for the preview pane.

Renderers themselves live outside this package; they only need to provide
`async render(code) -> str` and raise on failure. The scheduler sits between
text edits and a renderer:
- Rapid edits are coalesced into one call after a quiet period
- Every request gets a monotonically increasing sequence number
- In-flight renders are never cancelled, but a result whose number is not
  the latest issued is discarded, so a slow old render cannot overwrite a
  newer one
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from .config import DEFAULT_RENDER_DELAY

logger = logging.getLogger(__name__)


class Renderer(Protocol):
    """Renders diagram text to SVG markup or an image URL."""

    async def render(self, code: str) -> str:
        ...


@dataclass
class RenderResult:
    """Outcome of one render request; exactly one of output/error is set."""
    sequence: int
    output: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RenderScheduler:
    """
    Debounced, sequence-numbered front end for a Renderer.

    `request` must be called from inside a running event loop.
    `on_result` only ever sees the result of the latest request.
    """

    def __init__(
        self,
        renderer: Renderer,
        on_result: Callable[[RenderResult], None],
        delay: float = DEFAULT_RENDER_DELAY,
    ):
        self._renderer = renderer
        self._on_result = on_result
        self._delay = delay
        self._sequence = 0
        self._pending: Optional[asyncio.Task] = None
        self._in_flight: set[asyncio.Task] = set()

    @property
    def latest(self) -> int:
        """Sequence number of the most recent request."""
        return self._sequence

    def request(self, code: str) -> int:
        """
        Schedule a render of `code` after the quiet period.

        Returns:
            The sequence number assigned to this request
        """
        self._sequence += 1
        sequence = self._sequence

        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

        if not code.strip():
            # Nothing to draw; the new number still invalidates older renders
            return sequence

        self._pending = asyncio.get_running_loop().create_task(self._debounce(sequence, code))
        return sequence

    async def _debounce(self, sequence: int, code: str):
        await asyncio.sleep(self._delay)
        task = asyncio.create_task(self._dispatch(sequence, code))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _dispatch(self, sequence: int, code: str):
        try:
            output = await self._renderer.render(code)
            result = RenderResult(sequence=sequence, output=output)
        except Exception as e:
            logger.warning("Render #%d failed: %s", sequence, e)
            result = RenderResult(sequence=sequence, error=str(e) or e.__class__.__name__)

        if sequence != self._sequence:
            logger.debug("Discarding stale render #%d (latest is #%d)", sequence, self._sequence)
            return
        self._on_result(result)

    async def drain(self):
        """Wait until no render is pending or in flight."""
        while True:
            tasks = list(self._in_flight)
            if self._pending is not None and not self._pending.done():
                tasks.append(self._pending)
            if not tasks:
                return
            await asyncio.gather(*tasks, return_exceptions=True)

    def cancel(self):
        """Drop the pending render and every in-flight one."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        for task in self._in_flight:
            task.cancel()
