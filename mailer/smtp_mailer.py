"""SMTP mail sender for an authenticated mailbox (e.g. Gmail)."""
import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from mailer.errors import MailDeliveryError
from notifier.models import MailMessage

logger = logging.getLogger(__name__)


class SmtpMailer:
    """Sends HTML email through an SMTP server using login credentials."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        sender: str = None,
        timeout: int = 30,
        use_starttls: bool = False
    ):
        """
        Initialize the SMTP mailer.

        Args:
            host: SMTP server hostname
            port: SMTP server port (465 for implicit TLS, 587 for STARTTLS)
            username: Login name of the sending mailbox
            password: Login credential of the sending mailbox
            sender: From address (default: username)
            timeout: Socket timeout in seconds for each send (default: 30)
            use_starttls: Upgrade a plain connection with STARTTLS instead of
                connecting with implicit TLS
        """
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender or username
        self.timeout = timeout
        self.use_starttls = use_starttls
        logger.info(f"Initialized SmtpMailer for {self.sender} via {host}:{port}")

    def send(self, message: MailMessage) -> None:
        """
        Send a message, opening one connection for it.

        Args:
            message: Rendered MailMessage

        Raises:
            MailDeliveryError: If connecting, logging in or sending fails
        """
        msg = MIMEMultipart('alternative')
        msg['Subject'] = message.subject
        msg['From'] = self.sender
        msg['To'] = message.to
        msg.attach(MIMEText(message.html_body, 'html'))

        context = ssl.create_default_context()

        try:
            if self.use_starttls:
                server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
            else:
                server = smtplib.SMTP_SSL(
                    self.host, self.port, context=context, timeout=self.timeout
                )
            with server:
                if self.use_starttls:
                    server.starttls(context=context)
                server.login(self.username, self.password)
                server.sendmail(self.sender, [message.to], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            raise MailDeliveryError(
                f"SMTP delivery to {message.to} failed: {e}"
            ) from e

        logger.info(f"Sent '{message.subject}' to {message.to} via SMTP")
