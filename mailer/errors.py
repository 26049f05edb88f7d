"""Mail delivery errors."""


class MailDeliveryError(Exception):
    """Raised when a mail transport rejects or fails to deliver a message."""
