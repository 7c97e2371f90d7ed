import asyncio
import logging
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from eventwire.broadcasters import (
    AsyncBroadcaster,
    BroadcasterRegistry,
    LoggerBroadcaster,
    SendBroadcaster,
    configure,
    get_broadcasters,
)
from eventwire.errors import UnknownBroadcasterError
from eventwire.publisher import Publisher
from eventwire.submitters import LoopSubmitter, default_submitter


class Shop(Publisher):
    pass


class Listener:
    def __init__(self):
        self.calls = []
        self.done = threading.Event()
        self.threads = []

    def order_placed(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        self.threads.append(threading.current_thread().name)
        self.done.set()


class InlineSubmitter:
    def __init__(self):
        self.thunks = []

    def submit(self, fn):
        self.thunks.append(fn)


def test_send_broadcaster_calls_method():
    listener = Listener()
    SendBroadcaster().broadcast(listener, Shop(), "order_placed", 1, total=2)
    assert listener.calls == [((1,), {"total": 2})]


def test_async_broadcaster_hands_bound_call_to_submitter():
    submitter = InlineSubmitter()
    listener = Listener()
    AsyncBroadcaster(submitter).broadcast(listener, Shop(), "order_placed", 1)
    assert listener.calls == []
    submitter.thunks[0]()
    assert listener.calls == [((1,), {})]


def test_async_subscription_runs_on_default_pool():
    listener = Listener()
    shop = Shop().subscribe(listener, async_=True)
    shop.broadcast("order_placed", 5)
    assert listener.done.wait(timeout=5)
    assert listener.calls == [((5,), {})]
    assert listener.threads[0].startswith("eventwire")
    assert default_submitter() is default_submitter()


def test_async_failures_are_logged_not_raised(caplog):
    class Failing:
        def order_placed(self):
            raise RuntimeError("boom")

    with ThreadPoolExecutor(max_workers=1) as pool:
        broadcaster = AsyncBroadcaster(pool)
        with caplog.at_level(logging.ERROR):
            Shop().subscribe(Failing(), broadcaster=broadcaster).broadcast("order_placed")
            pool.shutdown(wait=True)
    assert any(getattr(rec, "error_category", None) == "delivery" for rec in caplog.records)


def test_loop_submitter_runs_plain_and_async_methods():
    async def main():
        received = []

        class Mixed:
            def order_placed(self, order_id):
                received.append(("sync", order_id))

            async def order_shipped(self, order_id):
                await asyncio.sleep(0)
                received.append(("async", order_id))

        submitter = LoopSubmitter(asyncio.get_running_loop())
        shop = Shop().subscribe(Mixed(), async_=AsyncBroadcaster(submitter))
        shop.broadcast("order_placed", 1)
        shop.broadcast("order_shipped", 2)
        assert received == []
        await submitter.drain()
        assert received == [("sync", 1), ("async", 2)]

    asyncio.run(main())


def test_logger_broadcaster_logs_then_delegates(caplog):
    listener = Listener()
    broadcaster = LoggerBroadcaster(SendBroadcaster())
    with caplog.at_level(logging.INFO):
        Shop().subscribe(listener, broadcaster=broadcaster).broadcast("order_placed", 3)
    assert listener.calls == [((3,), {})]
    record = next(r for r in caplog.records if r.name == "eventwire.broadcasters")
    assert record.method == "order_placed"
    assert "Shop#" in record.getMessage()
    assert "with 3" in record.getMessage()


def test_log_deliveries_setting_wraps_default(monkeypatch):
    monkeypatch.setenv("EVENTWIRE_LOG_DELIVERIES", "true")
    assert isinstance(get_broadcasters().fetch("default"), LoggerBroadcaster)


def test_registry_resolution():
    registry = BroadcasterRegistry()
    assert isinstance(registry.resolve(None), SendBroadcaster)
    assert isinstance(registry.resolve(False), SendBroadcaster)
    assert isinstance(registry.resolve(True), AsyncBroadcaster)
    custom = SendBroadcaster()
    assert registry.resolve(custom) is custom
    with pytest.raises(UnknownBroadcasterError):
        registry.resolve("missing")
    with pytest.raises(UnknownBroadcasterError):
        registry.resolve(3)


def test_configure_registers_named_broadcaster():
    submitter = InlineSubmitter()
    configure(queue=AsyncBroadcaster(submitter))
    assert "queue" in get_broadcasters().names()
    listener = Listener()
    Shop().subscribe(listener, broadcaster="queue").broadcast("order_placed")
    assert len(submitter.thunks) == 1
