"""AWS Lambda handler for the hourly upcoming-event reminder sweep."""
import json
import logging
import time
from typing import Any, Dict, Optional

from mailer.factory import build_mailer
from notifier.config import ConfigurationError, NotifierConfig
from notifier.log_config import setup_logging
from notifier.sweep import NotificationSweep
from storage.event_store import EventStore
from storage.user_store import UserStore

# Built on first invocation and reused while the container stays warm
_sweep: Optional[NotificationSweep] = None


def build_sweep(config: NotifierConfig) -> NotificationSweep:
    """
    Wire the sweep to its stores and mail sender.

    Args:
        config: Loaded NotifierConfig

    Returns:
        NotificationSweep ready to run
    """
    return NotificationSweep(
        event_store=EventStore(table_name=config.events_table_name),
        user_store=UserStore(table_name=config.users_table_name),
        mailer=build_mailer(config),
        display_tz=config.display_tz
    )


def _error_response(message: str, error: Exception, start_time: float) -> Dict[str, Any]:
    duration = time.time() - start_time
    return {
        'statusCode': 500,
        'body': json.dumps({
            'message': message,
            'error': str(error),
            'error_type': type(error).__name__,
            'duration_seconds': round(duration, 2)
        })
    }


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Run one notification sweep tick.

    Triggered by an EventBridge rate(1 hour) schedule.

    Args:
        event: EventBridge event payload
        context: Lambda context object

    Returns:
        Response dict with statusCode and summary statistics
    """
    global _sweep

    start_time = time.time()
    logger = logging.getLogger(__name__)

    try:
        config = NotifierConfig.from_env()
    except ConfigurationError as e:
        setup_logging()
        logger.error(f"Notification sweep is not configured: {e}")
        return _error_response('Notification sweep is not configured', e, start_time)

    setup_logging(config.log_level)
    logger.info(
        "Notification sweep started",
        extra={
            'events_table': config.events_table_name,
            'users_table': config.users_table_name,
            'mail_transport': config.mail_transport
        }
    )

    try:
        if _sweep is None:
            _sweep = build_sweep(config)
        sweep = _sweep

        try:
            result = sweep.run_once()
        except Exception as e:
            # Query failures abort the tick; the next scheduled run retries
            logger.error(
                f"Failed to query events due for notification: {str(e)}",
                extra={'error_type': type(e).__name__},
                exc_info=True
            )
            return _error_response('Failed to query due events', e, start_time)

        duration = time.time() - start_time
        logger.info(
            "Notification sweep completed",
            extra={
                'duration_seconds': round(duration, 2),
                'events_selected': result.selected,
                'notifications_sent': result.sent,
                'notifications_failed': result.failed
            }
        )

        return {
            'statusCode': 200,
            'body': json.dumps({
                'message': 'Notification sweep completed',
                'statistics': {
                    'window_start': result.window_start.isoformat(),
                    'window_end': result.window_end.isoformat(),
                    'events_selected': result.selected,
                    'notifications_sent': result.sent,
                    'notifications_failed': result.failed,
                    'duration_seconds': round(duration, 2)
                },
                'errors': result.errors
            })
        }

    except Exception as e:
        duration = time.time() - start_time
        logger.error(
            f"Notification sweep failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )
        return _error_response('Notification sweep failed', e, start_time)
