"""Reminder email rendering."""
from datetime import datetime, timezone, tzinfo
from html import escape
from typing import Optional

from notifier.models import Event, MailMessage

LOCATION_PLACEHOLDER = 'Not specified'
DATE_FORMAT = '%A, %B %d, %Y'
TIME_FORMAT = '%I:%M %p'

REMINDER_TEMPLATE = """\
<h2>Upcoming Event Reminder</h2>
<p>You have an upcoming event in 2 days:</p>
<h3>{title}</h3>
<p><strong>Description:</strong> {description}</p>
<p><strong>Date:</strong> {date}</p>
<p><strong>Time:</strong> {time}</p>
<p><strong>Location:</strong> {location}</p>
"""


def render_reminder(event: Event, to: str, tz: Optional[tzinfo] = None) -> MailMessage:
    """
    Render the two-day reminder email for an event.

    Args:
        event: Event being reminded about
        to: Recipient email address
        tz: Timezone the date and time are shown in (default: UTC)

    Returns:
        MailMessage addressed to the recipient
    """
    start = event.start_date
    if start.tzinfo is None:
        start = start.replace(tzinfo=timezone.utc)
    local_start = start.astimezone(tz or timezone.utc)

    html_body = REMINDER_TEMPLATE.format(
        title=escape(event.title),
        description=escape(event.description or ''),
        date=format_date(local_start),
        time=format_time(local_start),
        location=escape(event.location or LOCATION_PLACEHOLDER)
    )

    return MailMessage(
        to=to,
        subject=f"Upcoming Event: {event.title}",
        html_body=html_body
    )


def format_date(value: datetime) -> str:
    return value.strftime(DATE_FORMAT)


def format_time(value: datetime) -> str:
    return value.strftime(TIME_FORMAT)
