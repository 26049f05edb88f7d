"""Data models for events, owners and reminder delivery."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class Event:
    """Calendar event owned by a single user."""
    event_id: str
    owner_id: str
    title: str
    start_date: datetime
    end_date: Optional[datetime] = None
    description: str = ''
    location: str = ''
    event_type: str = 'meeting'
    notification_sent: bool = False


@dataclass
class Owner:
    """User who receives reminders for their events."""
    user_id: str
    email: str
    name: str = ''


@dataclass
class MailMessage:
    """Rendered email ready for a mail sender."""
    to: str
    subject: str
    html_body: str


@dataclass
class SweepResult:
    """Result of a single notification sweep tick."""
    window_start: datetime
    window_end: datetime
    selected: int = 0
    sent: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)
