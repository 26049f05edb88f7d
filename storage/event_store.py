"""DynamoDB store for calendar events."""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from notifier.models import Event

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = '%Y-%m-%dT%H:%M:%SZ'

# Fields an owner may change through update_event
EDITABLE_FIELDS = (
    'title', 'description', 'location', 'event_type', 'start_date', 'end_date'
)


class EventNotFoundError(Exception):
    """Raised when an event does not exist or belongs to another owner."""


def to_timestamp(value: datetime) -> str:
    """
    Serialize a datetime as a sortable UTC timestamp string.

    Naive datetimes are taken to be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Accepts a trailing 'Z' and fractional seconds; naive values are UTC.

    Raises:
        ValueError: If the string is not ISO-8601
    """
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class EventStore:
    """Events table access: sweep queries plus owner-scoped CRUD."""

    def __init__(self, table_name: str):
        """
        Initialize DynamoDB client and table reference.

        Args:
            table_name: Name of the events DynamoDB table
        """
        self.table_name = table_name
        self.dynamodb = boto3.resource('dynamodb')
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized EventStore for table: {table_name}")

    def find_due_events(self, window_start: datetime, window_end: datetime) -> List[Event]:
        """
        Find events starting in [window_start, window_end) not yet notified.

        Args:
            window_start: Inclusive lower bound on start_date
            window_end: Exclusive upper bound on start_date

        Returns:
            List of matching Event objects, in no particular order
        """
        # Stored start dates have whole-second precision, so rounding both
        # bounds up keeps the same half-open interval
        start = to_timestamp(_ceil_to_second(window_start))
        end = to_timestamp(_ceil_to_second(window_end))
        logger.info(f"Scanning for unnotified events starting in [{start}, {end})")

        filter_expression = (
            Attr('start_date').gte(start)
            & Attr('start_date').lt(end)
            & Attr('notification_sent').eq(False)
        )
        items = self._scan(filter_expression)

        events = [event for event in map(self._item_to_event, items) if event]
        logger.info(f"Found {len(events)} events due for notification")
        return events

    def mark_notification_sent(self, event_id: str) -> None:
        """
        Set notification_sent on a single event.

        Args:
            event_id: Event to mark

        Raises:
            EventNotFoundError: If the event was deleted in the meantime
        """
        try:
            self.table.update_item(
                Key={'event_id': event_id},
                UpdateExpression='SET notification_sent = :sent',
                ConditionExpression='attribute_exists(event_id)',
                ExpressionAttributeValues={':sent': True}
            )
        except ClientError as e:
            if _is_condition_failure(e):
                raise EventNotFoundError(event_id) from e
            raise

    def list_events(self, owner_id: str) -> List[Event]:
        """
        Retrieve all events belonging to an owner.

        Args:
            owner_id: Owner identity

        Returns:
            Owner's events sorted by start_date
        """
        items = self._scan(Attr('owner_id').eq(owner_id))
        events = [event for event in map(self._item_to_event, items) if event]
        events.sort(key=lambda event: event.start_date)
        return events

    def get_event(self, owner_id: str, event_id: str) -> Event:
        """
        Retrieve one of an owner's events.

        Raises:
            EventNotFoundError: If missing or owned by someone else
        """
        response = self.table.get_item(Key={'event_id': event_id})
        item = response.get('Item')
        if not item or item.get('owner_id') != owner_id:
            raise EventNotFoundError(event_id)
        return self._item_to_event(item)

    def create_event(
        self,
        owner_id: str,
        title: str,
        start_date: datetime,
        end_date: Optional[datetime] = None,
        description: str = '',
        location: str = '',
        event_type: str = 'meeting'
    ) -> Event:
        """
        Create an event for an owner with notification_sent unset.

        Returns:
            The stored Event with its generated event_id
        """
        event = Event(
            event_id=uuid.uuid4().hex,
            owner_id=owner_id,
            title=title,
            start_date=start_date,
            end_date=end_date,
            description=description,
            location=location,
            event_type=event_type,
            notification_sent=False
        )
        self.table.put_item(
            Item=self._event_to_item(event),
            ConditionExpression='attribute_not_exists(event_id)'
        )
        logger.info(f"Created event {event.event_id} for owner {owner_id}")
        return event

    def update_event(self, owner_id: str, event_id: str, changes: Dict[str, Any]) -> Event:
        """
        Apply changes to one of an owner's events.

        Only EDITABLE_FIELDS are applied; notification_sent, owner_id and
        event_id are ignored. Changing start_date does not reset
        notification_sent.

        Args:
            owner_id: Owner identity
            event_id: Event to update
            changes: Field name to new value (datetimes for date fields)

        Returns:
            The updated Event

        Raises:
            EventNotFoundError: If missing or owned by someone else
        """
        updates = {
            name: value for name, value in changes.items()
            if name in EDITABLE_FIELDS
        }
        if not updates:
            return self.get_event(owner_id, event_id)

        set_clauses = []
        remove_clauses = []
        names = {}
        values = {':owner': owner_id}
        for index, (name, value) in enumerate(updates.items()):
            names[f'#f{index}'] = name
            if value is None and name == 'end_date':
                remove_clauses.append(f'#f{index}')
                continue
            if isinstance(value, datetime):
                value = to_timestamp(value)
            values[f':v{index}'] = value
            set_clauses.append(f'#f{index} = :v{index}')

        update_expression = ''
        if set_clauses:
            update_expression += 'SET ' + ', '.join(set_clauses)
        if remove_clauses:
            update_expression += ' REMOVE ' + ', '.join(remove_clauses)

        try:
            response = self.table.update_item(
                Key={'event_id': event_id},
                UpdateExpression=update_expression.strip(),
                ConditionExpression='attribute_exists(event_id) AND owner_id = :owner',
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ReturnValues='ALL_NEW'
            )
        except ClientError as e:
            if _is_condition_failure(e):
                raise EventNotFoundError(event_id) from e
            raise

        logger.info(f"Updated event {event_id} fields: {', '.join(updates)}")
        return self._item_to_event(response['Attributes'])

    def delete_event(self, owner_id: str, event_id: str) -> None:
        """
        Delete one of an owner's events.

        Raises:
            EventNotFoundError: If missing or owned by someone else
        """
        try:
            self.table.delete_item(
                Key={'event_id': event_id},
                ConditionExpression='attribute_exists(event_id) AND owner_id = :owner',
                ExpressionAttributeValues={':owner': owner_id}
            )
        except ClientError as e:
            if _is_condition_failure(e):
                raise EventNotFoundError(event_id) from e
            raise
        logger.info(f"Deleted event {event_id} for owner {owner_id}")

    def _scan(self, filter_expression) -> List[dict]:
        """Scan the table with a filter, following pagination."""
        try:
            response = self.table.scan(FilterExpression=filter_expression)
            items = response.get('Items', [])

            while 'LastEvaluatedKey' in response:
                response = self.table.scan(
                    FilterExpression=filter_expression,
                    ExclusiveStartKey=response['LastEvaluatedKey']
                )
                items.extend(response.get('Items', []))

            return items

        except ClientError as e:
            logger.error(f"Error scanning DynamoDB table {self.table_name}: {e}")
            raise

    def _item_to_event(self, item: dict) -> Optional[Event]:
        """
        Convert DynamoDB item to Event object.

        Returns:
            Event object or None if conversion fails
        """
        try:
            end_date = item.get('end_date')
            return Event(
                event_id=item['event_id'],
                owner_id=item['owner_id'],
                title=item['title'],
                start_date=parse_timestamp(item['start_date']),
                end_date=parse_timestamp(end_date) if end_date else None,
                description=item.get('description', ''),
                location=item.get('location', ''),
                event_type=item.get('event_type', 'meeting'),
                notification_sent=bool(item.get('notification_sent', False))
            )
        except (KeyError, ValueError) as e:
            logger.warning(f"Failed to convert item to Event: {e}")
            return None

    def _event_to_item(self, event: Event) -> dict:
        item = {
            'event_id': event.event_id,
            'owner_id': event.owner_id,
            'title': event.title,
            'description': event.description,
            'location': event.location,
            'event_type': event.event_type,
            'start_date': to_timestamp(event.start_date),
            'notification_sent': event.notification_sent
        }
        if event.end_date:
            item['end_date'] = to_timestamp(event.end_date)
        return item


def _ceil_to_second(value: datetime) -> datetime:
    if value.microsecond:
        value = value.replace(microsecond=0) + timedelta(seconds=1)
    return value


def _is_condition_failure(error: ClientError) -> bool:
    return error.response.get('Error', {}).get('Code') == 'ConditionalCheckFailedException'
