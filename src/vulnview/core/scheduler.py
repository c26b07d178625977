"""
Trailing-edge debounce for render passes.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

RENDER_DELAY_MS = 120


class RenderScheduler:
    """Collapse rapid ``schedule_render`` calls into one call of ``render``.

    Every call cancels the pending pass and restarts the quiet period; only
    the last payload is rendered.
    """

    def __init__(
        self,
        render: Callable[[Any], None],
        delay_ms: float = RENDER_DELAY_MS,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self.render = render
        self.delay_ms = delay_ms
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None
        self._payload: Any = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule_render(self, payload: Any = None) -> None:
        self.cancel()
        self._payload = payload
        loop = self._loop or asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay_ms / 1000, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def flush(self) -> None:
        """Run a pending pass immediately."""
        if self._handle is not None:
            self.cancel()
            self._fire()

    def _fire(self) -> None:
        self._handle = None
        payload, self._payload = self._payload, None
        try:
            self.render(payload)
        except Exception:
            logger.warning("Scheduled render failed", exc_info=True)
