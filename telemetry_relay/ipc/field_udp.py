"""
Field unit ingestion: collect one transmission of sensor datagrams.

    IDLE -> RECEIVING -> COMPLETE    every declared message arrived
                      -> TIMED_OUT   no datagram for `timeout` seconds

A timeout is how a transmission ends when packets were lost, so it is a
normal terminal state and the partial batch still goes downstream.
"""
from __future__ import annotations

import logging
import socket
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from ..batch import BatchTracker
from ..codec import decode
from ..config import BUFSIZE
from ..errors import MalformedMessage

logger = logging.getLogger(__name__)


class ReceiveState(Enum):
    IDLE = auto()
    RECEIVING = auto()
    COMPLETE = auto()
    TIMED_OUT = auto()


@dataclass
class ReceiveOutcome:
    state: ReceiveState
    tracker: BatchTracker
    malformed: int = 0

    @property
    def timed_out(self) -> bool:
        return self.state is ReceiveState.TIMED_OUT

    @property
    def empty(self) -> bool:
        return self.tracker.is_empty()


class DatagramReceiver:
    def __init__(self, host: str = "0.0.0.0", port: int = 0, timeout: float = 5.0,
                 bufsize: int = BUFSIZE):
        self.host = host
        self.port = int(port)
        self.timeout = timeout
        self.bufsize = bufsize
        self.state = ReceiveState.IDLE
        self._sock: Optional[socket.socket] = None

    def open(self) -> "DatagramReceiver":
        # bind errors are transport errors; let them reach the caller
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            s.bind((self.host, self.port))
            s.settimeout(self.timeout)
        except OSError:
            s.close()
            raise
        self._sock = s
        logger.info("[field] listening on %s:%d", *self.address)
        return self

    def close(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def address(self):
        if self._sock is None:
            raise RuntimeError("receiver is not bound")
        return self._sock.getsockname()

    def receive_batch(self, tracker: Optional[BatchTracker] = None) -> ReceiveOutcome:
        if self._sock is None:
            raise RuntimeError("receiver is not bound")
        tracker = tracker if tracker is not None else BatchTracker(allow_late_start=True)
        malformed = 0
        self.state = ReceiveState.RECEIVING

        while self.state is ReceiveState.RECEIVING:
            try:
                data, addr = self._sock.recvfrom(self.bufsize)
            except socket.timeout:
                logger.info("[field] socket timed out waiting for messages (%d collected)",
                            tracker.size())
                self.state = ReceiveState.TIMED_OUT
                break

            try:
                msg = decode(data)
            except MalformedMessage as e:
                malformed += 1
                logger.warning("[field] skipping packet from %s: %s", addr, e)
                continue

            logger.info("[field] message %d out of %d received. value = %s",
                        msg.seq_num, msg.total_count, msg.value)
            # add() resets the tracker itself when msg is a batch start
            tracker.add(msg)

            if tracker.is_complete():
                self.state = ReceiveState.COMPLETE

        return ReceiveOutcome(state=self.state, tracker=tracker, malformed=malformed)


def receive_measures(port: int, timeout: float, host: str = "0.0.0.0",
                     bufsize: int = BUFSIZE) -> ReceiveOutcome:
    # one receive cycle; the socket is released before anything is relayed
    with DatagramReceiver(host, port, timeout, bufsize) as rx:
        return rx.receive_batch()
