"""DynamoDB store for users who receive reminders."""
import logging
from typing import Optional

import boto3

from notifier.models import Owner

logger = logging.getLogger(__name__)


class UserStore:
    """Resolves event owners to their contact details."""

    def __init__(self, table_name: str):
        self.table_name = table_name
        self.dynamodb = boto3.resource('dynamodb')
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized UserStore for table: {table_name}")

    def get_owner(self, user_id: str) -> Optional[Owner]:
        """
        Look up a user by id.

        Args:
            user_id: User identity stored on events as owner_id

        Returns:
            Owner, or None if no such user exists
        """
        response = self.table.get_item(Key={'user_id': user_id})
        item = response.get('Item')
        if not item:
            return None
        return Owner(
            user_id=item['user_id'],
            email=item.get('email', ''),
            name=item.get('name', '')
        )

    def put_owner(self, owner: Owner) -> None:
        self.table.put_item(Item={
            'user_id': owner.user_id,
            'email': owner.email,
            'name': owner.name
        })
