"""
Virtualized windowing: which slice of an ordered row list to materialize.

Only rows in ``[start_index, end_index)`` are built; the caller offsets them
by ``translate_y`` so each row keeps its absolute position inside a spacer of
``total_rows * row_height``.
"""

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_ROW_HEIGHT = 44
DEFAULT_OVERSCAN = 6
FRAME_INTERVAL = 1 / 60


@dataclass(frozen=True)
class Window:
    start_index: int
    end_index: int
    translate_y: float

    def __len__(self) -> int:
        return max(0, self.end_index - self.start_index)

    def __contains__(self, index: int) -> bool:
        return self.start_index <= index < self.end_index


def compute_window(
    total_rows: int,
    row_height: float,
    scroll_top: float,
    viewport_height: float,
    overscan_rows: int = DEFAULT_OVERSCAN,
) -> Window:
    if row_height <= 0:
        raise ValueError(f"row_height must be positive, got {row_height}")
    scroll_top = max(0, scroll_top)
    start = max(0, math.floor(scroll_top / row_height) - overscan_rows)
    visible_count = math.ceil(viewport_height / row_height) + 2 * overscan_rows
    end = min(total_rows, start + visible_count)
    return Window(start_index=start, end_index=end, translate_y=start * row_height)


class VirtualViewport:
    """Scroll metrics carried from one render pass to the next.

    Row height is measured at the start of every full pass; the previous
    first visible row is re-applied at the new height so the same logical
    row stays near the top when filters or sort order change.
    """

    def __init__(
        self,
        row_height_fallback: float = DEFAULT_ROW_HEIGHT,
        overscan_rows: int = DEFAULT_OVERSCAN,
        min_row_height: float = 1,
    ):
        self.row_height_fallback = row_height_fallback
        self.overscan_rows = overscan_rows
        self.min_row_height = min_row_height
        self.row_height: Optional[float] = None
        self.scroll_top: float = 0
        self.viewport_height: float = 0
        self.total_rows: int = 0

    @property
    def first_visible_index(self) -> int:
        if not self.row_height:
            return 0
        return max(0, math.floor(self.scroll_top / self.row_height))

    @property
    def content_height(self) -> float:
        return self.total_rows * (self.row_height or self.row_height_fallback)

    @property
    def max_scroll_top(self) -> float:
        return max(0, self.content_height - self.viewport_height)

    def _measure(self, measure: Optional[Callable[[int], Optional[float]]], index: int) -> float:
        if measure is None or self.total_rows == 0:
            return self.row_height_fallback
        try:
            height = measure(index)
        except Exception as e:
            logger.debug(f"Row height measurement failed, using fallback: {e}")
            return self.row_height_fallback
        if not height or not math.isfinite(height):
            return self.row_height_fallback
        return max(self.min_row_height, round(height))

    def begin_pass(
        self,
        total_rows: int,
        measure: Optional[Callable[[int], Optional[float]]] = None,
    ) -> float:
        """Start a full render pass over ``total_rows`` rows.

        ``measure(index)`` renders the row at ``index`` off-screen and returns
        its height. Returns the restored scroll offset.
        """
        prev_first = self.first_visible_index
        self.total_rows = total_rows
        sample = min(prev_first, max(0, total_rows - 1))
        self.row_height = self._measure(measure, sample)
        self.scroll_top = min(self.max_scroll_top, prev_first * self.row_height)
        return self.scroll_top

    def on_scroll(self, scroll_top: float) -> None:
        self.scroll_top = max(0, scroll_top)

    def on_resize(self, viewport_height: float) -> None:
        self.viewport_height = max(0, viewport_height)

    def window(self) -> Window:
        return compute_window(
            self.total_rows,
            self.row_height or self.row_height_fallback,
            self.scroll_top,
            self.viewport_height,
            self.overscan_rows,
        )

    def scroll_to_index(self, index: int) -> float:
        """Adjust the scroll offset just enough to bring ``index`` into view."""
        height = self.row_height or self.row_height_fallback
        top = index * height
        bottom = top + height
        if top < self.scroll_top:
            self.scroll_top = top
        elif bottom > self.scroll_top + self.viewport_height:
            self.scroll_top = max(0, bottom - self.viewport_height)
        return self.scroll_top


class FrameThrottle:
    """Coalesce bursts of requests into at most one callback per frame."""

    def __init__(
        self,
        callback: Callable[[], None],
        frame_interval: float = FRAME_INTERVAL,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self.callback = callback
        self.frame_interval = frame_interval
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def request(self) -> None:
        if self._handle is not None:
            return
        loop = self._loop or asyncio.get_running_loop()
        self._handle = loop.call_later(self.frame_interval, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        try:
            self.callback()
        except Exception:
            logger.warning("Window render failed", exc_info=True)
