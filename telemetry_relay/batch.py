"""
Batch tracking shared by the field unit and the central server.

A batch is one numbered transmission 1..total_count. There is no explicit
"begin" message: seq_num == 1 is the only start signal, and a restarted
sequence always wins over whatever was being collected before.
"""
from __future__ import annotations

import logging
import time
from typing import List, Optional

from .models import Message

logger = logging.getLogger(__name__)


def is_batch_start(msg: Message) -> bool:
    return msg.seq_num == 1


class BatchTracker:
    def __init__(self, allow_late_start: bool = False):
        # udp can reorder, so the field unit lets a late seq 1 join its batch
        self.allow_late_start = allow_late_start
        self.messages: List[Message] = []  # arrival order
        self.total_count = 0
        self.first_arrival: Optional[float] = None
        self.last_arrival: Optional[float] = None
        self._seen: set[int] = set()

    def reset(self) -> None:
        self.messages = []
        self.total_count = 0
        self.first_arrival = None
        self.last_arrival = None
        self._seen = set()

    # kept on the instance too so callers don't need the module function
    is_batch_start = staticmethod(is_batch_start)

    def starts_new_batch(self, msg: Message) -> bool:
        if not is_batch_start(msg) or not self.messages:
            return False
        if not self.allow_late_start:
            return True
        # a late seq 1 that fills this batch's own hole is not a restart
        return msg.seq_num in self._seen or msg.total_count != self.total_count

    def add(self, msg: Message, now: Optional[float] = None) -> bool:
        """Store msg in the current batch and return whether it was accepted.

        A start message discards the current batch first. With
        allow_late_start, only a start that repeats seq 1 or declares a
        different total does; a first seq 1 arriving late joins the batch.
        The declared total comes from the first message to reach an empty
        tracker, which is the start message unless that one was lost or
        reordered. Messages that disagree with the declared total, and
        repeated sequence numbers, are logged and dropped.
        """
        if self.starts_new_batch(msg):
            if not self.is_complete():
                logger.info(
                    "[batch] restart at seq 1 drops %d/%d collected messages",
                    len(self.messages), self.total_count,
                )
            self.reset()
        if not self.messages:
            self.total_count = msg.total_count
        elif msg.total_count != self.total_count:
            logger.warning(
                "[batch] dropping seq %d: total %d does not match batch total %d",
                msg.seq_num, msg.total_count, self.total_count,
            )
            return False

        if msg.seq_num in self._seen:
            logger.warning("[batch] dropping duplicate seq %d", msg.seq_num)
            return False

        if now is None:
            now = time.time()
        if self.first_arrival is None:
            self.first_arrival = now
        self.last_arrival = now

        self.messages.append(msg)
        self._seen.add(msg.seq_num)
        return True

    def is_complete(self) -> bool:
        return self.total_count > 0 and len(self.messages) >= self.total_count

    def size(self) -> int:
        return len(self.messages)

    def __len__(self) -> int:
        return len(self.messages)

    def is_empty(self) -> bool:
        return not self.messages

    def sequence_numbers(self) -> List[int]:
        return [m.seq_num for m in self.messages]

    def sorted_messages(self) -> List[Message]:
        return sorted(self.messages, key=lambda m: m.seq_num)

    def duration_ms(self) -> Optional[int]:
        if self.first_arrival is None or self.last_arrival is None:
            return None
        return int(round((self.last_arrival - self.first_arrival) * 1000))
