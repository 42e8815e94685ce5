"""
Field unit: receive a transmission over udp, smooth it, relay it.

Each cycle is strictly sequential (receive -> smooth -> report -> relay) and
the udp socket is released before any remote call is made.
"""
from __future__ import annotations

import argparse
import logging
import socket
from dataclasses import dataclass
from typing import List, Optional

from .aggregator import build_report, log_report
from .config import BUFSIZE, configure_logging, get_settings
from .ipc.field_udp import ReceiveOutcome, receive_measures
from .models import BatchReport
from .remote.client_rest import CentralClient, Relay, central_url
from .smoothing import moving_average

logger = logging.getLogger(__name__)


@dataclass
class CycleResult:
    outcome: ReceiveOutcome
    report: Optional[BatchReport] = None
    averages: Optional[List[float]] = None
    delivered: int = 0


class FieldUnit:
    def __init__(self, relay: Relay, name: str = "field-unit", window: int = 7,
                 timeout: float = 5.0, host: str = "0.0.0.0", bufsize: int = BUFSIZE):
        if not isinstance(window, int) or window <= 0:
            raise ValueError(f"window must be a positive integer, got {window!r}")
        self.relay = relay
        self.name = name
        self.window = window
        self.timeout = timeout
        self.host = host
        self.bufsize = bufsize

    def process(self, outcome: ReceiveOutcome) -> CycleResult:
        tracker = outcome.tracker
        if tracker.is_empty():
            logger.info("[field] no messages received, waiting again...")
            return CycleResult(outcome=outcome)

        logger.info("[field] computing SMAs (k=%d) over %d messages", self.window, tracker.size())
        averages = moving_average(tracker.messages, self.window)

        report = build_report(self.name, tracker)
        log_report(report, tag="[field]")
        tracker.reset()

        logger.info("[field] sending SMAs to central server")
        delivered = self.relay.send(averages)
        return CycleResult(outcome=outcome, report=report, averages=averages, delivered=delivered)

    def run_once(self, port: int) -> CycleResult:
        return self.process(receive_measures(port, self.timeout, host=self.host, bufsize=self.bufsize))

    def run_forever(self, port: int) -> None:
        while True:
            try:
                self.run_once(port)
            except OSError as e:
                logger.error("[field] socket error on port %d: %s", port, e)
                break


def build_parser(settings) -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="receive udp measurements, smooth them, relay to the central server")
    ap.add_argument("port", type=int, help="local udp port to listen on")
    ap.add_argument("central", nargs="?", default=settings.central_url,
                    help="central server address (host, host:port or url); "
                         "defaults to RELAY_CENTRAL_HOST:RELAY_CENTRAL_PORT")
    ap.add_argument("--timeout", type=float, default=settings.field_timeout,
                    help="seconds of silence that end a transmission")
    ap.add_argument("--window", type=int, default=settings.sma_window, help="moving average window")
    ap.add_argument("--name", default=socket.gethostname(), help="sender id reported to the central server")
    return ap


def main():
    settings = get_settings()
    configure_logging(settings.log_level)

    ap = build_parser(settings)
    args = ap.parse_args()
    if args.window <= 0:
        ap.error("--window must be positive")

    base = central_url(args.central, settings.central_port)
    client = CentralClient(base, sender=args.name, timeout=settings.request_timeout)
    logger.info("[field] relaying to central server at %s", base)

    unit = FieldUnit(Relay(client), name=args.name, window=args.window, timeout=args.timeout,
                     bufsize=settings.bufsize)
    try:
        unit.run_forever(args.port)
    except KeyboardInterrupt:
        pass
    finally:
        client.close()


if __name__ == "__main__":
    main()
