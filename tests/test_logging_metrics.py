import json
import logging

from eventwire.logging import configure_logging
from eventwire.metrics import Counter, Gauge, Timer, deliveries_total
from eventwire.publisher import Publisher


def test_json_logging_structure(monkeypatch, capsys):
    monkeypatch.setenv("LOG_FORMAT", "json")
    configure_logging()
    logging.getLogger(__name__).info(
        "sample",
        extra={
            "event_name": "order_placed",
            "listener": "Audit",
            "publisher": "Shop",
            "method": "order_placed",
            "broadcaster": "SendBroadcaster",
            "error_category": "routing",
        },
    )
    captured = capsys.readouterr().err.strip().splitlines()[-1]
    data = json.loads(captured)
    for key in [
        "event_name",
        "listener",
        "publisher",
        "method",
        "broadcaster",
        "error_category",
    ]:
        assert key in data
    assert data["message"] == "sample"


def test_counter_gauge_and_timer_update():
    counter = Counter()
    counter.inc()
    counter.inc(2)
    assert counter.value == 3
    gauge = Gauge()
    gauge.set(4)
    assert gauge.value == 4
    timer = Timer()
    with timer.time():
        sum(range(1000))
    assert timer.last_ms is not None and timer.last_ms >= 0
    assert Timer().stop() is None


def test_sync_delivery_counts_deliveries():
    class Shop(Publisher):
        pass

    before = deliveries_total.value
    Shop().on("ping", lambda: None).broadcast("ping")
    assert deliveries_total.value == before + 1
