#sends N random measurements to a field unit over udp, one datagram each

import argparse
import logging
import random
import socket
import time
from datetime import datetime

from ..codec import encode
from ..config import BUFSIZE, configure_logging, get_settings
from ..models import Message

logger = logging.getLogger(__name__)

MIN_MEASURE, MAX_MEASURE = 10.0, 50.0


def get_measurement() -> float:
    return random.uniform(MIN_MEASURE, MAX_MEASURE)


def _clock(ts: float) -> str:
    return datetime.fromtimestamp(ts).strftime("%H:%M:%S.%f")[:-3]


class Sensor:
    def __init__(self, address: str, port: int, total: int, interval: float = 0.0):
        self.dest = (address, int(port))
        self.total = int(total)
        self.interval = interval  # pause between sends; 0 means as fast as possible
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)

    def send_message(self, msg: Message) -> bool:
        data = encode(msg)
        if len(data) > BUFSIZE:
            logger.error("[sensor] message size %d exceeds buffer size %d", len(data), BUFSIZE)
            return False
        try:
            self.sock.sendto(data, self.dest)
        except OSError as e:
            logger.error("[sensor] error sending message %d: %s", msg.seq_num, e)
            return False
        return True

    def run(self, n: int | None = None, measure=get_measurement) -> int:
        n = self.total if n is None else n
        first_sent = last_sent = None
        sent = 0
        try:
            for i in range(1, n + 1):
                value = measure()
                msg = Message(total_count=n, seq_num=i, value=value)
                if self.send_message(msg):
                    sent += 1
                now = time.time()
                if first_sent is None:
                    first_sent = now
                last_sent = now
                logger.info("[sensor] sending message %d out of %d. measure = %.4f | time=%s",
                            i, n, value, _clock(now))
                if self.interval:
                    time.sleep(self.interval)
        finally:
            self.sock.close()

        if first_sent is not None:
            logger.info("[sensor] first sent : %s", _clock(first_sent))
            logger.info("[sensor] last sent  : %s", _clock(last_sent))
            logger.info("[sensor] duration   : %d ms", int((last_sent - first_sent) * 1000))
        return sent


def main():
    settings = get_settings()
    configure_logging(settings.log_level)

    ap = argparse.ArgumentParser(description="send N measurements to a field unit over udp")
    ap.add_argument("address", help="field unit host name or ip")
    ap.add_argument("port", type=int, help="field unit udp port")
    ap.add_argument("count", type=int, help="number of measurements to send")
    ap.add_argument("--interval", type=float, default=0.0, help="seconds between sends")
    args = ap.parse_args()
    if args.count <= 0:
        ap.error("count must be positive")

    Sensor(args.address, args.port, args.count, interval=args.interval).run()


if __name__ == "__main__":
    main()
