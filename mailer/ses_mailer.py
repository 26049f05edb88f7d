"""Amazon SES mail sender."""
import logging
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from mailer.errors import MailDeliveryError
from notifier.models import MailMessage

logger = logging.getLogger(__name__)


class SesMailer:
    """Sends HTML email from a verified SES identity."""

    def __init__(self, sender: str, region_name: Optional[str] = None, timeout: int = 30):
        """
        Initialize the SES client.

        Args:
            sender: Verified SES identity used as the From address
            region_name: AWS region of the SES endpoint (default: boto3 default)
            timeout: Connect and read timeout in seconds for each send
        """
        self.sender = sender
        self.timeout = timeout
        # Single attempt per send; the next sweep tick is the retry
        client_config = Config(
            connect_timeout=timeout,
            read_timeout=timeout,
            retries={'max_attempts': 1, 'mode': 'standard'}
        )
        self.client = boto3.client('ses', region_name=region_name, config=client_config)
        logger.info(f"Initialized SesMailer for {sender}")

    def send(self, message: MailMessage) -> str:
        """
        Send a message through SES.

        Args:
            message: Rendered MailMessage

        Returns:
            SES message id

        Raises:
            MailDeliveryError: If SES rejects the message or the call fails
        """
        try:
            response = self.client.send_email(
                Source=self.sender,
                Destination={'ToAddresses': [message.to]},
                Message={
                    'Subject': {'Data': message.subject, 'Charset': 'UTF-8'},
                    'Body': {
                        'Html': {'Data': message.html_body, 'Charset': 'UTF-8'}
                    }
                }
            )
        except (ClientError, BotoCoreError) as e:
            raise MailDeliveryError(
                f"SES delivery to {message.to} failed: {e}"
            ) from e

        message_id = response['MessageId']
        logger.info(f"Sent '{message.subject}' to {message.to} via SES ({message_id})")
        return message_id
