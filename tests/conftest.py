import socket

import pytest
from fastapi.testclient import TestClient

from telemetry_relay.aggregator import CentralAggregator
from telemetry_relay.ipc.field_udp import DatagramReceiver
from telemetry_relay.models import Message
from telemetry_relay.remote.server_rest import create_app


def make_batch(values, order=None, total=None):
    # messages for values[0..n-1]; `order` lists 1-based seq numbers to emit
    total = total if total is not None else len(values)
    order = order if order is not None else range(1, len(values) + 1)
    return [Message(total_count=total, seq_num=s, value=values[s - 1]) for s in order]


@pytest.fixture
def receiver():
    # bound to an ephemeral loopback port; datagrams sent before receive_batch() are queued by the kernel
    with DatagramReceiver(host="127.0.0.1", port=0, timeout=0.3) as rx:
        yield rx


@pytest.fixture
def udp_send(receiver):
    s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)

    def send(payload: bytes):
        s.sendto(payload, receiver.address)

    yield send
    s.close()


@pytest.fixture
def aggregator():
    return CentralAggregator(history=10)


@pytest.fixture
def api(aggregator):
    with TestClient(create_app(aggregator)) as client:
        yield client
