"""Upcoming-event notification sweep."""
import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional, Tuple

from notifier.models import Event, SweepResult
from notifier.templates import render_reminder

logger = logging.getLogger(__name__)

LEAD_TIME = timedelta(days=2)
WINDOW_LENGTH = timedelta(hours=24)


def compute_window(now: datetime) -> Tuple[datetime, datetime]:
    """
    Compute the 24-hour window starting exactly two days after now.

    Args:
        now: Moment the sweep runs; naive values are taken as UTC

    Returns:
        Tuple of (window_start, window_end), end exclusive
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    window_start = now + LEAD_TIME
    return window_start, window_start + WINDOW_LENGTH


class NotificationSweep:
    """Emails each owner once about events starting two days from now."""

    def __init__(self, event_store, user_store, mailer, display_tz: Optional[tzinfo] = None):
        """
        Initialize the sweep with its collaborators.

        Args:
            event_store: EventStore providing find_due_events and
                mark_notification_sent
            user_store: UserStore providing get_owner
            mailer: Mail sender with a send(MailMessage) method
            display_tz: Timezone for dates and times in the email
        """
        self.event_store = event_store
        self.user_store = user_store
        self.mailer = mailer
        self.display_tz = display_tz or timezone.utc

    def run_once(self, now: Optional[datetime] = None) -> SweepResult:
        """
        Run one sweep tick.

        A failure for one event is logged and does not stop the others.
        Errors from the due-events query propagate to the caller.

        Args:
            now: Moment to compute the window from (default: current UTC time)

        Returns:
            SweepResult with counts for this tick
        """
        now = now or datetime.now(timezone.utc)
        window_start, window_end = compute_window(now)
        result = SweepResult(window_start=window_start, window_end=window_end)

        events = self.event_store.find_due_events(window_start, window_end)
        result.selected = len(events)

        for event in events:
            if self._notify(event, result):
                result.sent += 1
            else:
                result.failed += 1

        logger.info(
            f"Notification sweep finished: {result.sent} sent, "
            f"{result.failed} failed of {result.selected} due",
            extra={
                'window_start': window_start.isoformat(),
                'window_end': window_end.isoformat()
            }
        )
        return result

    def _notify(self, event: Event, result: SweepResult) -> bool:
        """
        Deliver the reminder for one event and mark it notified.

        Returns:
            True if the email was sent
        """
        try:
            owner = self.user_store.get_owner(event.owner_id)
        except Exception as e:
            return self._record_failure(
                result, event, f"owner lookup for {event.owner_id} failed: {e}"
            )

        if owner is None or not owner.email:
            return self._record_failure(
                result, event, f"owner {event.owner_id} has no email address"
            )

        try:
            message = render_reminder(event, owner.email, self.display_tz)
            self.mailer.send(message)
        except Exception as e:
            return self._record_failure(result, event, str(e))

        try:
            self.event_store.mark_notification_sent(event.event_id)
        except Exception as e:
            # Email already went out; the event stays due and may be sent again
            error_msg = f"Event {event.event_id}: reminder sent but flag not saved: {e}"
            logger.error(error_msg)
            result.errors.append(error_msg)

        return True

    def _record_failure(self, result: SweepResult, event: Event, reason: str) -> bool:
        error_msg = f"Event {event.event_id}: {reason}"
        logger.error(f"Failed to send reminder. {error_msg}")
        result.errors.append(error_msg)
        return False
