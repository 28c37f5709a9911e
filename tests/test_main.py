"""Tests for the command line entry point."""

import json

import pytest

from ha_price_history.main import main
from tests.helpers import DummyResponse, ha_state

REQUESTS_GET = "ha_price_history.interfaces.homeassistant_price.requests.get"


def _write_config(directory, log_level="info"):
    (directory / "config.yaml").write_text(
        "price:\n"
        "  source: homeassistant\n"
        "  url: http://homeassistant:8123\n"
        "  access_token: abc123\n"
        "  entity_id: sensor.electricity_price\n"
        "  lookback_days: 7\n"
        "time_zone: UTC\n"
        f"log_level: {log_level}\n",
        encoding="utf-8",
    )
    return str(directory)


@pytest.fixture
def config_dir(tmp_path):
    return _write_config(tmp_path)


def _patch_payload(monkeypatch, payload):
    monkeypatch.setattr(
        REQUESTS_GET,
        lambda url, params=None, headers=None, timeout=None: DummyResponse(payload),
    )


def test_main_prints_intervals_and_events(monkeypatch, capsys, config_dir):
    _patch_payload(monkeypatch, [[ha_state(0, "0.30"), ha_state(1, "unknown")]])

    exit_code = main(
        [
            config_dir,
            "--start",
            "2024-05-01T00:00:00Z",
            "--end",
            "2024-05-01T03:00:00Z",
            "--events",
        ]
    )

    assert exit_code == 0
    decoder = json.JSONDecoder()
    out = capsys.readouterr().out
    intervals, offset = decoder.raw_decode(out)
    events, _ = decoder.raw_decode(out[offset:].lstrip())
    assert intervals == [
        {
            "value": "0.30",
            "valid_from": "2024-05-01T00:00:00+00:00",
            "valid_to": "2024-05-01T01:00:00+00:00",
        },
        {
            "value": "0.30",
            "valid_from": "2024-05-01T01:00:00+00:00",
            "valid_to": "2024-05-01T03:00:00+00:00",
        },
    ]
    assert [event["event"] for event in events] == [
        "gap_detected",
        "gap_resolved_by_carry_forward",
    ]


def test_main_returns_error_code_on_price_error(monkeypatch, capsys, config_dir):
    _patch_payload(monkeypatch, [[ha_state(1, "0.30")]])

    exit_code = main(
        [config_dir, "--start", "2024-05-01T00:00:00Z", "--end", "2024-05-01T03:00:00Z"]
    )

    assert exit_code == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "DataCompletenessError" in captured.err


def test_main_rejects_invalid_timestamp(config_dir):
    with pytest.raises(SystemExit) as excinfo:
        main([config_dir, "--start", "yesterday", "--end", "2024-05-01T03:00:00Z"])
    assert excinfo.value.code == 2


def test_events_are_recorded_below_console_log_level(monkeypatch, capsys, tmp_path):
    """INFO gap events are printed even when the console only shows warnings."""
    config_dir = _write_config(tmp_path, log_level="warning")
    _patch_payload(
        monkeypatch,
        [[ha_state(0, "unknown"), ha_state(1, "0.30"), ha_state(2, "unknown")]],
    )

    exit_code = main(
        [
            config_dir,
            "--start",
            "2024-05-01T00:00:00Z",
            "--end",
            "2024-05-01T03:00:00Z",
            "--events",
        ]
    )

    assert exit_code == 0
    captured = capsys.readouterr()
    decoder = json.JSONDecoder()
    _, offset = decoder.raw_decode(captured.out)
    events, _ = decoder.raw_decode(captured.out[offset:].lstrip())
    assert [event["event"] for event in events] == [
        "gap_detected",
        "gap_resolved_by_lookahead",
        "gap_detected",
        "gap_resolved_by_carry_forward",
    ]
    # the console stays at the configured level
    assert "Carrying forward" not in captured.err
    assert "Unavailable price" in captured.err
