"""AWS Lambda handler for the owner-scoped Events REST API (API Gateway proxy)."""
import json
import logging
import os
from typing import Any, Dict, Optional

from botocore.exceptions import ClientError

from notifier.log_config import setup_logging
from notifier.models import Event
from storage.event_store import EventNotFoundError, EventStore, parse_timestamp, to_timestamp

logger = logging.getLogger(__name__)

_store: Optional[EventStore] = None

# Request body keys to Event field names
BODY_FIELDS = {
    'title': 'title',
    'description': 'description',
    'location': 'location',
    'type': 'event_type',
    'startDate': 'start_date',
    'endDate': 'end_date'
}
DATE_FIELDS = ('start_date', 'end_date')


class BadRequest(Exception):
    """Raised for malformed request bodies."""


def get_store() -> EventStore:
    global _store
    if _store is None:
        _store = EventStore(table_name=os.environ.get('EVENTS_TABLE_NAME', 'planner-events'))
    return _store


def _response(status_code: int, body: Any) -> Dict[str, Any]:
    return {
        'statusCode': status_code,
        'headers': {'Content-Type': 'application/json'},
        'body': json.dumps(body)
    }


def event_to_json(event: Event) -> Dict[str, Any]:
    """Serialize an Event in the shape the frontend expects."""
    return {
        'id': event.event_id,
        'user': event.owner_id,
        'title': event.title,
        'description': event.description,
        'location': event.location,
        'type': event.event_type,
        'startDate': to_timestamp(event.start_date),
        'endDate': to_timestamp(event.end_date) if event.end_date else None,
        'notificationSent': event.notification_sent
    }


def get_owner_id(event: Dict[str, Any]) -> Optional[str]:
    """
    Extract the caller's identity from the API Gateway authorizer context.

    Supports Cognito user pool authorizers (claims.sub) and Lambda
    authorizers (principalId).
    """
    authorizer = (event.get('requestContext') or {}).get('authorizer') or {}
    claims = authorizer.get('claims') or {}
    return claims.get('sub') or authorizer.get('principalId')


def parse_body(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Parse a JSON request body into Event field values.

    Raises:
        BadRequest: If the body is not a JSON object or a date is invalid
    """
    raw = event.get('body') or '{}'
    try:
        body = json.loads(raw)
    except ValueError:
        raise BadRequest('Request body must be valid JSON')
    if not isinstance(body, dict):
        raise BadRequest('Request body must be a JSON object')

    fields = {}
    for key, name in BODY_FIELDS.items():
        if key not in body:
            continue
        value = body[key]
        if name in DATE_FIELDS and value is not None:
            try:
                value = parse_timestamp(str(value))
            except ValueError:
                raise BadRequest(f"{key} must be an ISO-8601 timestamp")
        fields[name] = value
    return fields


def list_events(owner_id: str) -> Dict[str, Any]:
    try:
        events = get_store().list_events(owner_id)
    except ClientError as e:
        logger.error(f"Error fetching events for {owner_id}: {e}")
        return _response(500, {'message': 'Error fetching events', 'error': str(e)})
    return _response(200, [event_to_json(event) for event in events])


def create_event(owner_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    if not fields.get('title') or not fields.get('start_date'):
        return _response(400, {'message': 'title and startDate are required'})
    try:
        created = get_store().create_event(
            owner_id=owner_id,
            title=fields['title'],
            start_date=fields['start_date'],
            end_date=fields.get('end_date'),
            description=fields.get('description') or '',
            location=fields.get('location') or '',
            event_type=fields.get('event_type') or 'meeting'
        )
    except ClientError as e:
        logger.error(f"Error creating event for {owner_id}: {e}")
        return _response(500, {'message': 'Error creating event', 'error': str(e)})
    return _response(201, event_to_json(created))


def update_event(owner_id: str, event_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
    if 'title' in fields and not fields['title']:
        return _response(400, {'message': 'title cannot be empty'})
    if 'start_date' in fields and fields['start_date'] is None:
        return _response(400, {'message': 'startDate cannot be empty'})
    try:
        updated = get_store().update_event(owner_id, event_id, fields)
    except EventNotFoundError:
        return _response(404, {'message': 'Event not found'})
    except ClientError as e:
        logger.error(f"Error updating event {event_id}: {e}")
        return _response(500, {'message': 'Error updating event', 'error': str(e)})
    return _response(200, event_to_json(updated))


def delete_event(owner_id: str, event_id: str) -> Dict[str, Any]:
    try:
        get_store().delete_event(owner_id, event_id)
    except EventNotFoundError:
        return _response(404, {'message': 'Event not found'})
    except ClientError as e:
        logger.error(f"Error deleting event {event_id}: {e}")
        return _response(500, {'message': 'Error deleting event', 'error': str(e)})
    return _response(200, {'message': 'Event deleted successfully'})


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Route an API Gateway proxy request to the matching events operation.

    Routes:
        GET /events, POST /events, PUT /events/{id}, DELETE /events/{id}

    Args:
        event: API Gateway proxy event
        context: Lambda context object

    Returns:
        API Gateway proxy response
    """
    setup_logging(os.environ.get('LOG_LEVEL', 'INFO'))

    owner_id = get_owner_id(event)
    if not owner_id:
        return _response(401, {'message': 'Authentication required'})

    method = event.get('httpMethod', '')
    event_id = (event.get('pathParameters') or {}).get('id')
    logger.info(f"{method} events request", extra={'owner_id': owner_id, 'event_id': event_id})

    try:
        if method == 'GET' and not event_id:
            return list_events(owner_id)
        if method == 'POST' and not event_id:
            return create_event(owner_id, parse_body(event))
        if method == 'PUT' and event_id:
            return update_event(owner_id, event_id, parse_body(event))
        if method == 'DELETE' and event_id:
            return delete_event(owner_id, event_id)
    except BadRequest as e:
        return _response(400, {'message': str(e)})

    return _response(405, {'message': f"Method {method} not allowed"})
