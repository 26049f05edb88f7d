"""Builds the configured mail sender."""
from typing import Union

from mailer.ses_mailer import SesMailer
from mailer.smtp_mailer import SmtpMailer
from notifier.config import NotifierConfig


def build_mailer(config: NotifierConfig) -> Union[SmtpMailer, SesMailer]:
    """
    Create the mail sender selected by MAIL_TRANSPORT.

    Args:
        config: Loaded NotifierConfig

    Returns:
        SmtpMailer or SesMailer
    """
    if config.mail_transport == 'ses':
        return SesMailer(
            sender=config.email_user,
            region_name=config.ses_region,
            timeout=config.mail_timeout_seconds
        )

    return SmtpMailer(
        host=config.smtp_host,
        port=config.smtp_port,
        username=config.email_user,
        password=config.email_pass,
        timeout=config.mail_timeout_seconds,
        use_starttls=config.smtp_starttls
    )
