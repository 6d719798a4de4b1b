import asyncio
import logging

from tovalley_chat.utils.background import BackgroundPublisher, best_effort


async def test_best_effort_reports_success():
    async def ok():
        return "done"

    assert await best_effort("ok", ok()) is True


async def test_best_effort_logs_and_suppresses(caplog):
    async def boom():
        raise ValueError("kaput")

    with caplog.at_level(logging.ERROR):
        assert await best_effort("exploding side effect", boom()) is False

    assert "exploding side effect failed" in caplog.text


async def test_publisher_drops_when_full():
    publisher = BackgroundPublisher(limit=1, timeout=1.0)
    gate = asyncio.Event()
    ran = []

    async def slow():
        await gate.wait()
        ran.append("slow")

    async def fast():
        ran.append("fast")

    assert publisher.submit("slow", slow()) is True
    assert publisher.submit("fast", fast()) is False
    assert publisher.pending == 1

    gate.set()
    await publisher.drain()

    assert ran == ["slow"]
    assert publisher.pending == 0


async def test_publisher_times_out_stuck_publishes(caplog):
    publisher = BackgroundPublisher(limit=10, timeout=0.01)

    async def stuck():
        await asyncio.Event().wait()

    with caplog.at_level(logging.ERROR):
        publisher.submit("stuck publish", stuck())
        await publisher.drain()

    assert "stuck publish failed" in caplog.text
