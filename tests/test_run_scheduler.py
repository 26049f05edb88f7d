"""Tests for the long-running scheduler entry point."""
import os
from unittest.mock import Mock, patch

import run_scheduler


def test_exits_when_mail_identity_missing():
    with patch.dict(os.environ, {'EMAIL_USER': '', 'EMAIL_PASS': ''}):
        assert run_scheduler.main([]) == 1


@patch('run_scheduler.signal.signal')
@patch('run_scheduler.threading.Event')
@patch('run_scheduler.SweepScheduler')
@patch('run_scheduler.build_sweep')
@patch('run_scheduler.setup_logging')
def test_starts_and_stops_scheduler(
    mock_setup_logging, mock_build_sweep, mock_scheduler_class, mock_event_class, mock_signal
):
    env_vars = {
        'EMAIL_USER': 'planner@example.edu',
        'EMAIL_PASS': 'secret',
        'SWEEP_INTERVAL_SECONDS': '1800'
    }
    mock_event_class.return_value = Mock()

    with patch.dict(os.environ, env_vars):
        exit_code = run_scheduler.main(['--run-now'])

    assert exit_code == 0
    mock_scheduler_class.assert_called_once_with(
        mock_build_sweep.return_value,
        interval_seconds=1800,
        run_immediately=True
    )
    scheduler = mock_scheduler_class.return_value
    scheduler.start.assert_called_once()
    scheduler.stop.assert_called_once_with(timeout=5)
    assert mock_signal.call_count == 2


@patch('run_scheduler.SweepScheduler')
def test_exits_when_display_timezone_unknown(mock_scheduler_class):
    env_vars = {
        'EMAIL_USER': 'planner@example.edu',
        'EMAIL_PASS': 'secret',
        'DISPLAY_TIMEZONE': 'Mars/Olympus'
    }
    with patch.dict(os.environ, env_vars):
        assert run_scheduler.main([]) == 1

    mock_scheduler_class.assert_not_called()
