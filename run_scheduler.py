"""Run the reminder sweep hourly inside a long-lived process.

Usage:
    python run_scheduler.py            # first tick after one interval
    python run_scheduler.py --run-now  # also run a tick at startup

Configuration comes from the same environment variables as the Lambda
handler (see notifier/config.py).
"""
import argparse
import logging
import signal
import sys
import threading

from lambda_function import build_sweep
from notifier.config import ConfigurationError, NotifierConfig
from notifier.log_config import setup_logging
from notifier.scheduler import SweepScheduler

logger = logging.getLogger('run_scheduler')


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Hourly upcoming-event reminder sweep')
    parser.add_argument('--run-now', action='store_true',
                        help='run a sweep tick immediately on startup')
    args = parser.parse_args(argv)

    try:
        config = NotifierConfig.from_env()
    except ConfigurationError as e:
        setup_logging()
        logger.error(f"Cannot start reminder scheduler: {e}")
        return 1

    setup_logging(config.log_level)

    scheduler = SweepScheduler(
        build_sweep(config),
        interval_seconds=config.sweep_interval_seconds,
        run_immediately=args.run_now
    )

    shutdown = threading.Event()

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, shutting down")
        shutdown.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    scheduler.start()
    shutdown.wait()
    scheduler.stop(timeout=5)
    return 0


if __name__ == '__main__':
    sys.exit(main())
