import asyncio

import pytest

from vulnview.core.window import FrameThrottle, VirtualViewport, Window, compute_window


def test_compute_window_example():
    window = compute_window(1000, 44, 880, 300, 6)
    assert window == Window(start_index=14, end_index=33, translate_y=616)
    assert len(window) == 19


def test_compute_window_at_top():
    window = compute_window(1000, 44, 0, 300, 6)
    assert (window.start_index, window.end_index, window.translate_y) == (0, 19, 0)


def test_compute_window_clamps_to_total():
    window = compute_window(10, 1, 500, 20, 6)
    assert window.end_index == 10
    assert len(window) == 0
    assert compute_window(0, 44, 0, 300).end_index == 0


def test_compute_window_negative_scroll():
    assert compute_window(100, 1, -5, 10, 2).start_index == 0


def test_compute_window_rejects_bad_row_height():
    with pytest.raises(ValueError):
        compute_window(10, 0, 0, 100)


@pytest.mark.parametrize("scroll_top", [0, 43, 44, 880, 5000, 43956])
def test_window_covers_the_viewport(scroll_top):
    window = compute_window(1000, 44, scroll_top, 300, 6)
    first_visible = scroll_top // 44
    last_visible = min(999, (scroll_top + 300) // 44)
    assert first_visible in window or window.end_index == 1000
    assert last_visible in window


def test_window_contains():
    window = Window(5, 8, 5)
    assert 5 in window
    assert 7 in window
    assert 8 not in window


def test_viewport_keeps_first_visible_row_across_height_change():
    viewport = VirtualViewport(row_height_fallback=44, overscan_rows=6)
    viewport.on_resize(300)
    assert viewport.begin_pass(1000, lambda i: 44) == 0
    viewport.on_scroll(880)
    assert viewport.first_visible_index == 20

    assert viewport.begin_pass(1000, lambda i: 22) == 440
    assert viewport.first_visible_index == 20
    assert viewport.window().start_index == 14


def test_viewport_clamps_scroll_when_rows_shrink():
    viewport = VirtualViewport(row_height_fallback=22)
    viewport.on_resize(300)
    viewport.begin_pass(1000, lambda i: 22)
    viewport.on_scroll(440)
    # 30 rows of 22 leave at most 360 of scroll
    assert viewport.begin_pass(30, lambda i: 22) == 360


def test_viewport_measures_row_at_previous_first_visible():
    seen = []

    def measure(index):
        seen.append(index)
        return 10

    viewport = VirtualViewport()
    viewport.on_resize(100)
    viewport.begin_pass(1000, measure)
    viewport.on_scroll(250)
    viewport.begin_pass(1000, measure)
    viewport.begin_pass(5, measure)
    assert seen == [0, 25, 4]


@pytest.mark.parametrize(
    "measure",
    [None, lambda i: 0, lambda i: None, lambda i: float("nan"), lambda i: 1 / 0],
)
def test_viewport_measurement_fallback(measure):
    viewport = VirtualViewport(row_height_fallback=44)
    viewport.begin_pass(100, measure)
    assert viewport.row_height == 44


def test_viewport_without_rows_uses_fallback():
    viewport = VirtualViewport(row_height_fallback=3)
    viewport.begin_pass(0, lambda i: 10)
    assert viewport.row_height == 3
    assert viewport.window().end_index == 0


def test_viewport_rounds_and_floors_measurement():
    viewport = VirtualViewport(min_row_height=1)
    viewport.begin_pass(10, lambda i: 0.2)
    assert viewport.row_height == 1
    viewport.begin_pass(10, lambda i: 2.6)
    assert viewport.row_height == 3


def test_scroll_to_index():
    viewport = VirtualViewport(row_height_fallback=1)
    viewport.on_resize(10)
    viewport.begin_pass(100, lambda i: 1)
    assert viewport.scroll_to_index(5) == 0
    assert viewport.scroll_to_index(20) == 11
    assert viewport.scroll_to_index(3) == 3


@pytest.mark.asyncio
async def test_frame_throttle_coalesces_requests():
    calls = []
    throttle = FrameThrottle(lambda: calls.append(1), frame_interval=0.01)
    for _ in range(50):
        throttle.request()
    assert throttle.pending
    await asyncio.sleep(0.05)
    assert calls == [1]
    assert not throttle.pending

    throttle.request()
    await asyncio.sleep(0.05)
    assert calls == [1, 1]


@pytest.mark.asyncio
async def test_frame_throttle_cancel():
    calls = []
    throttle = FrameThrottle(lambda: calls.append(1), frame_interval=0.01)
    throttle.request()
    throttle.cancel()
    await asyncio.sleep(0.03)
    assert calls == []


@pytest.mark.asyncio
async def test_frame_throttle_survives_callback_errors():
    def explode():
        raise RuntimeError("render failed")

    throttle = FrameThrottle(explode, frame_interval=0.001)
    throttle.request()
    await asyncio.sleep(0.02)
    assert not throttle.pending
