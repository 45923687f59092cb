import pytest, requests
from unittest.mock import patch

from breathpacer.adapters.clock_adapter import MonotonicClock
from breathpacer.utils.models import Regime
from tools.simulate_session import DEFAULT_REGIMES, _call, load_regimes, run_local, run_remote

PROGRAM = [Regime(duration_ms=10000, breaths_per_minute=10)]


def test_load_regimes_defaults_and_csv(tmp_path, regimes_csv_data):
    assert load_regimes(None) == DEFAULT_REGIMES
    path = tmp_path / "regimes.csv"
    path.write_text(regimes_csv_data)
    assert len(load_regimes(str(path))) == 4

@patch("requests.request")
def test_call_returns_none_for_an_empty_body(mock_request, make_response):
    mock_request.return_value = make_response(204, None)
    assert _call("DELETE", "http://pacer/sessions/abc") is None

@patch("time.sleep")
@patch("requests.request")
def test_run_remote_ticks_until_complete(mock_request, mock_sleep, make_response):
    """The simulator creates, starts, ticks and finally deletes a session."""
    guide = {"elapsedMs": 0, "height": 0, "phase": "inhale", "fired": [], "completed": False}
    mock_request.side_effect = [
        make_response(201, {"sessionId": "abc", "durationMs": 12000}),
        make_response(200, {"state": "running"}),
        make_response(200, dict(guide, fired=[{"elapsedMs": 0, "regime": {"durationMs": 10000}}])),
        make_response(200, dict(guide, elapsedMs=12100, completed=True)),
        make_response(204, None),
    ]

    run_remote(PROGRAM, "http://pacer", 100)

    methods = [c.args[0] for c in mock_request.call_args_list]
    urls = [c.args[1] for c in mock_request.call_args_list]
    assert methods == ["POST", "POST", "POST", "POST", "DELETE"]
    assert urls[0] == "http://pacer/sessions"
    assert urls[-1] == "http://pacer/sessions/abc"
    assert mock_request.call_args_list[0].kwargs["json"]["regimes"][0]["breathsPerMinute"] == 10
    mock_sleep.assert_called_once_with(0.1)

@patch("time.sleep")
@patch("requests.request")
def test_run_remote_retries_transient_failures(mock_request, mock_sleep, make_response):
    mock_request.side_effect = [
        requests.exceptions.ConnectionError("server starting"),
        make_response(201, {"sessionId": "abc", "durationMs": 12000}),
        make_response(200, {"state": "running"}),
        make_response(200, {"elapsedMs": 12100, "height": 0, "phase": "idle", "fired": [], "completed": True}),
        make_response(204, None),
    ]

    run_remote(PROGRAM, "http://pacer", 100)

    assert mock_request.call_count == 5

@patch("time.sleep")
@patch("requests.request")
def test_run_remote_gives_up_after_three_attempts(mock_request, mock_sleep):
    mock_request.side_effect = requests.exceptions.ConnectionError("server down")
    with pytest.raises(requests.exceptions.ConnectionError):
        run_remote(PROGRAM, "http://pacer", 100)
    assert mock_request.call_count == 3

@patch("time.sleep")
def test_run_local_plays_to_completion(mock_sleep):
    readings = iter(range(0, 100000, 500))
    with patch.object(MonotonicClock, "now_ms", side_effect=lambda: float(next(readings))):
        run_local(PROGRAM, 500)
    # 12000 ms of track at 500 ms frames: the baseline tick plus 25 more to pass the end
    assert mock_sleep.call_count == 26
