import itertools
import threading

from conftest import make_batch

from telemetry_relay.aggregator import CentralAggregator
from telemetry_relay.models import Message


def ticking_clock(start=1000.0, step=0.01):
    counter = itertools.count()
    return lambda: start + next(counter) * step


def test_complete_batch_is_reported_and_reset():
    agg = CentralAggregator(clock=ticking_clock())
    reports = [agg.receive(m, sender="fu-1") for m in make_batch([1.0, 2.0, 3.0, 4.0, 5.0])]
    assert reports[:4] == [None] * 4
    report = reports[4]
    assert report.complete
    assert report.expected == 5
    assert report.received == 5
    assert report.missing == []
    assert report.missing_count == 0
    assert report.first_arrival == 1000.0
    assert report.duration_ms == 40
    assert agg.pending("fu-1") == 0
    assert agg.reports() == [report]


def test_incomplete_batch_reported_when_next_one_starts():
    agg = CentralAggregator(clock=ticking_clock())
    for m in make_batch([1.0, 2.0, 3.0, 4.0, 5.0], order=[1, 2, 4, 5]):
        assert agg.receive(m) is None
    assert agg.pending() == 4

    assert agg.receive(Message(total_count=2, seq_num=1, value=1.0)) is None
    abandoned = agg.reports()[0]
    assert not abandoned.complete
    assert abandoned.missing == [3]
    assert abandoned.missing_count == 1
    assert agg.pending() == 1


def test_batch_missing_its_start_is_not_completed_by_the_next_one():
    agg = CentralAggregator()
    for m in make_batch([1.0, 2.0, 3.0, 4.0, 5.0], order=[2, 3, 4, 5]):
        assert agg.receive(m, sender="fu") is None
    out = [agg.receive(m, sender="fu") for m in make_batch([6.0, 7.0, 8.0, 9.0, 10.0])]

    first, second = agg.reports()
    assert not first.complete
    assert first.missing == [1]
    assert first.received == 4
    assert second.complete
    assert second.missing == []
    assert second.received == 5
    assert out[-1] == second
    assert agg.pending("fu") == 0


def test_same_total_start_restarts_partial_batch():
    agg = CentralAggregator()
    for m in make_batch([1.0, 2.0, 3.0, 4.0, 5.0], order=[1, 2, 3]):
        agg.receive(m)
    assert agg.receive(Message(total_count=5, seq_num=1, value=9.0)) is None
    abandoned = agg.reports()[0]
    assert abandoned.missing == [4, 5]
    assert not abandoned.complete
    assert agg.pending() == 1


def test_completed_sender_is_forgotten():
    agg = CentralAggregator()
    for m in make_batch([1.0, 2.0]):
        agg.receive(m, sender="fu-1")
    assert agg.open_senders() == []


def test_open_senders_are_capped():
    agg = CentralAggregator(max_senders=2)
    for name in ("a", "b", "c"):
        agg.receive(Message(total_count=3, seq_num=1, value=1.0), sender=name)
    assert agg.open_senders() == ["b", "c"]
    evicted = agg.reports()[0]
    assert evicted.sender == "a"
    assert not evicted.complete
    assert evicted.missing == [2, 3]


def test_senders_do_not_share_batches():
    agg = CentralAggregator()
    a = make_batch([1.0, 2.0, 3.0])
    b = make_batch([9.0, 8.0])
    agg.receive(a[0], sender="a")
    agg.receive(b[0], sender="b")
    agg.receive(a[1], sender="a")
    done_b = agg.receive(b[1], sender="b")
    done_a = agg.receive(a[2], sender="a")
    assert done_b.sender == "b" and done_b.received == 2
    assert done_a.sender == "a" and done_a.received == 3


def test_concurrent_senders():
    agg = CentralAggregator(history=50)

    def feed(name):
        for _ in range(5):
            for m in make_batch([float(i) for i in range(20)]):
                agg.receive(m, sender=name)

    threads = [threading.Thread(target=feed, args=(f"fu-{i}",)) for i in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    reports = agg.reports()
    assert len(reports) == 20
    assert all(r.complete and r.missing_count == 0 for r in reports)


def test_history_is_bounded():
    agg = CentralAggregator(history=2)
    for _ in range(3):
        for m in make_batch([1.0]):
            agg.receive(m)
    assert len(agg.reports()) == 2
