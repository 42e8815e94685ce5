"""
Central server side aggregation.

Every relayed message lands here. Field units are kept apart by a sender key
so two units reporting at once each get their own BatchTracker, and a single
lock serializes all mutations since the web server calls in from a pool.
"""
from __future__ import annotations

import logging
import threading
import time
from collections import deque
from datetime import datetime
from typing import Callable, Deque, Dict, List, Optional

from .batch import BatchTracker
from .config import REPORT_HISTORY
from .gaps import detect_gaps
from .models import BatchReport, Message

logger = logging.getLogger(__name__)

DEFAULT_SENDER = "default"
MAX_SENDERS = 64


def _clock(ts: Optional[float]) -> str:
    if ts is None:
        return "-"
    return datetime.fromtimestamp(ts).strftime("%H:%M:%S.%f")[:-3]


def build_report(sender: str, tracker: BatchTracker) -> BatchReport:
    gaps = detect_gaps(tracker.total_count, tracker.sequence_numbers())
    return BatchReport(
        sender=sender,
        expected=gaps.expected,
        received=gaps.received_count,
        missing=gaps.missing,
        missing_count=gaps.missing_count,
        first_arrival=tracker.first_arrival,
        last_arrival=tracker.last_arrival,
        duration_ms=tracker.duration_ms(),
        complete=tracker.is_complete(),
    )


def log_report(report: BatchReport, tag: str = "[central]") -> None:
    logger.info("%s %s: total missing messages = %d out of %d",
                tag, report.sender, report.missing_count, report.expected)
    if report.missing:
        logger.info("%s %s: missing sequence numbers: %s",
                    tag, report.sender, " ".join(str(n) for n in report.missing))
    if report.first_arrival is not None:
        logger.info("%s first received: %s", tag, _clock(report.first_arrival))
        logger.info("%s last received : %s", tag, _clock(report.last_arrival))
        logger.info("%s duration      : %s ms", tag, report.duration_ms)


class CentralAggregator:
    def __init__(self, history: int = REPORT_HISTORY, clock: Callable[[], float] = time.time,
                 max_senders: int = MAX_SENDERS):
        self._lock = threading.Lock()
        self._max_senders = max_senders
        self._trackers: Dict[str, BatchTracker] = {}
        self._reports: Deque[BatchReport] = deque(maxlen=history)
        self._clock = clock

    def receive(self, msg: Message, sender: str = DEFAULT_SENDER) -> Optional[BatchReport]:
        """Record one relayed message; returns the report if it closed a batch."""
        now = self._clock()
        with self._lock:
            tracker = self._tracker_for(sender)

            # a new start while the last batch is still open: report what we had
            if tracker.starts_new_batch(msg) and not tracker.is_complete():
                self._close(sender, tracker)

            logger.info("[central] %s: received message %d out of %d. measure = %s | time=%s",
                        sender, msg.seq_num, msg.total_count, msg.value, _clock(now))
            tracker.add(msg, now=now)

            if tracker.is_complete():
                report = self._close(sender, tracker)
                # closed batches leave nothing behind for this sender
                del self._trackers[sender]
                return report
        return None

    def _tracker_for(self, sender: str) -> BatchTracker:
        tracker = self._trackers.get(sender)
        if tracker is None:
            # sender ids come from the client; evict the oldest open batch at the cap
            while len(self._trackers) >= self._max_senders:
                oldest = next(iter(self._trackers))
                logger.warning("[central] too many open batches, dropping sender %s", oldest)
                self._close(oldest, self._trackers.pop(oldest))
            tracker = self._trackers[sender] = BatchTracker()
        return tracker

    def _close(self, sender: str, tracker: BatchTracker) -> BatchReport:
        report = build_report(sender, tracker)
        if not report.complete:
            logger.warning("[central] %s: batch abandoned before completion", sender)
        log_report(report)
        self._reports.append(report)
        tracker.reset()
        return report

    def reports(self) -> List[BatchReport]:
        with self._lock:
            return list(self._reports)

    def pending(self, sender: str = DEFAULT_SENDER) -> int:
        with self._lock:
            tracker = self._trackers.get(sender)
            return tracker.size() if tracker else 0

    def open_senders(self) -> List[str]:
        with self._lock:
            return list(self._trackers)
