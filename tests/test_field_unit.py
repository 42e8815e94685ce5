from unittest.mock import MagicMock, patch

import pytest

from telemetry_relay.batch import BatchTracker
from telemetry_relay.config import get_settings
from telemetry_relay.field_unit import FieldUnit, build_parser
from telemetry_relay.ipc.field_udp import ReceiveOutcome, ReceiveState
from telemetry_relay.models import Message
from telemetry_relay.remote.client_rest import central_url


def test_rejects_bad_window():
    with pytest.raises(ValueError):
        FieldUnit(MagicMock(), window=0)


def test_run_forever_stops_on_socket_error():
    unit = FieldUnit(MagicMock(), timeout=0.1)
    empty = ReceiveOutcome(state=ReceiveState.TIMED_OUT, tracker=BatchTracker())
    with patch("telemetry_relay.field_unit.receive_measures",
               side_effect=[empty, empty, OSError("address in use")]) as rx:
        unit.run_forever(5000)
    assert rx.call_count == 3
    unit.relay.send.assert_not_called()


def test_process_uses_configured_window():
    relay = MagicMock()
    relay.send.return_value = 3
    tracker = BatchTracker()
    for seq, v in enumerate([3.0, 6.0, 9.0], start=1):
        tracker.add(Message(total_count=3, seq_num=seq, value=v))
    result = FieldUnit(relay, window=3).process(
        ReceiveOutcome(state=ReceiveState.COMPLETE, tracker=tracker))
    relay.send.assert_called_once_with([3.0, 6.0, 6.0])
    assert result.delivered == 3


def test_central_address_defaults_to_settings(monkeypatch, tmp_path):
    monkeypatch.setenv("RELAY_ENV_FILE", str(tmp_path / "missing.env"))
    monkeypatch.setenv("RELAY_CENTRAL_HOST", "central.local")
    monkeypatch.setenv("RELAY_CENTRAL_PORT", "9100")
    settings = get_settings()

    args = build_parser(settings).parse_args(["5000"])
    assert args.central == "http://central.local:9100"
    assert central_url(args.central, settings.central_port) == "http://central.local:9100"

    args = build_parser(settings).parse_args(["5000", "other:8081"])
    assert central_url(args.central, settings.central_port) == "http://other:8081"
