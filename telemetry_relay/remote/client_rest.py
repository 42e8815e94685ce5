#field unit side of the remote call: push smoothed values to the central server
import logging
from typing import Sequence

import requests

from ..config import REQUEST_TIMEOUT
from ..models import Message

logger = logging.getLogger(__name__)


class CentralClient:
    def __init__(self, base_url: str, sender: str | None = None,
                 timeout: float = REQUEST_TIMEOUT, session=None):
        self.base_url = base_url.rstrip("/")
        self.sender = sender
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

    def receive(self, msg: Message) -> None:
        headers = {"content-type": "application/json"}
        if self.sender:
            headers["X-Field-Unit"] = self.sender
        r = self.session.post(f"{self.base_url}/receive", json=msg.to_json(),
                              headers=headers, timeout=self.timeout)
        r.raise_for_status()

    def close(self) -> None:
        self.session.close()


class Relay:
    def __init__(self, client: CentralClient):
        self.client = client

    def send(self, series: Sequence[float]) -> int:
        """Deliver every value, one call each; returns how many got through.

        A failed call is logged and skipped, never retried.
        """
        total = len(series)
        delivered = 0
        for i, value in enumerate(series):
            try:
                msg = Message(total_count=total, seq_num=i + 1, value=value)
                self.client.receive(msg)
            except (requests.RequestException, ValueError) as e:
                logger.error("[field] send error for message %d: %s", i + 1, e)
                continue
            delivered += 1
        logger.info("[field] relayed %d/%d values", delivered, total)
        return delivered


def central_url(address: str, default_port: int) -> str:
    # accepts "host", "host:port" or a full url
    if address.startswith(("http://", "https://")):
        return address.rstrip("/")
    if ":" in address:
        return f"http://{address}"
    return f"http://{address}:{default_port}"
