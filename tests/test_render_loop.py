from __future__ import annotations

import asyncio

from termweb.converter import HALF_BLOCK
from termweb.render_loop import RenderLoop, RenderState


class FrameSink:
    def __init__(self):
        self.frames = []

    def __call__(self, grid, columns, rows):
        self.frames.append((grid, columns, rows))


async def _settle(loop: RenderLoop):
    while loop.busy:
        await asyncio.sleep(0.001)


def _loop(session, sink, size=(4, 2), interval=1.0):
    return RenderLoop(session, sink, lambda: size, interval=interval, scale_factor=4)


def test_one_cycle_captures_at_source_size_and_displays(session):
    sink = FrameSink()

    async def scenario():
        loop = _loop(session, sink)
        assert loop.tick()
        await _settle(loop)
        return loop

    loop = asyncio.run(scenario())

    assert session.calls == [("capture", 16, 16)]
    grid, columns, rows = sink.frames[0]
    assert (columns, rows) == (4, 2)
    assert len(grid) == 2 and len(grid[0]) == 4
    assert grid[1][3].glyph == HALF_BLOCK
    assert grid[0][0].fg == (10, 20, 30)
    assert loop.state is RenderState.DISPLAYED
    assert loop.frames == 1


def test_tick_while_busy_is_skipped(session):
    session.capture_delay = 0.05
    sink = FrameSink()

    async def scenario():
        loop = _loop(session, sink)
        assert loop.tick()
        assert not loop.tick()
        assert not loop.tick()
        await _settle(loop)
        return loop

    loop = asyncio.run(scenario())

    assert loop.skipped == 2
    assert session.names() == ["capture"]
    assert len(sink.frames) == 1


def test_refresh_during_cycle_runs_exactly_one_more(session):
    session.capture_delay = 0.02
    sink = FrameSink()

    async def scenario():
        loop = _loop(session, sink)
        loop.tick()
        loop.request_refresh()
        loop.request_refresh()
        await _settle(loop)

    asyncio.run(scenario())

    assert session.names() == ["capture", "capture"]
    assert len(sink.frames) == 2


def test_refresh_when_idle_runs_immediately(session):
    sink = FrameSink()

    async def scenario():
        loop = _loop(session, sink)
        loop.request_refresh()
        assert loop.busy
        await _settle(loop)

    asyncio.run(scenario())
    assert len(sink.frames) == 1


def test_failed_cycle_keeps_last_frame_and_retries(session, caplog):
    sink = FrameSink()

    async def scenario():
        loop = _loop(session, sink)
        loop.tick()
        await _settle(loop)

        session.capture_error = RuntimeError("page crashed")
        loop.tick()
        await _settle(loop)
        failed_state = loop.state

        session.capture_error = None
        loop.tick()
        await _settle(loop)
        return loop, failed_state

    with caplog.at_level("ERROR", logger="termweb"):
        loop, failed_state = asyncio.run(scenario())

    assert failed_state is RenderState.IDLE
    assert loop.failures == 1
    assert len(sink.frames) == 2
    assert "render tick failed" in caplog.text


def test_stop_cancels_timer_and_no_capture_follows(session):
    sink = FrameSink()

    async def scenario():
        loop = _loop(session, sink, interval=0.01)
        loop.start()
        assert loop.running
        await asyncio.sleep(0.05)
        await loop.stop()
        await session.close()
        captures = len(session.names()) - 1
        await asyncio.sleep(0.05)
        return loop, captures

    loop, captures = asyncio.run(scenario())

    assert captures >= 1
    assert not loop.running
    assert loop.state is RenderState.IDLE
    assert session.names()[-1] == "close"
    assert not loop.tick()


def test_stop_during_capture_does_not_display(session):
    session.capture_delay = 0.5
    sink = FrameSink()

    async def scenario():
        loop = _loop(session, sink)
        loop.tick()
        await asyncio.sleep(0.01)
        await loop.stop()
        return loop

    loop = asyncio.run(scenario())

    assert sink.frames == []
    assert not loop.busy
