"""Unit tests for the SMTP and SES mail senders."""
import smtplib
import socket
from unittest.mock import MagicMock, patch

import boto3
import pytest

from mailer.errors import MailDeliveryError
from mailer.factory import build_mailer
from mailer.ses_mailer import SesMailer
from mailer.smtp_mailer import SmtpMailer
from notifier.config import NotifierConfig
from notifier.models import MailMessage


@pytest.fixture
def message():
    return MailMessage(
        to='prof@example.edu',
        subject='Upcoming Event: Seminar',
        html_body='<h2>Upcoming Event Reminder</h2>'
    )


class TestSmtpMailer:
    """Test cases for SmtpMailer."""

    @patch('mailer.smtp_mailer.smtplib.SMTP_SSL')
    def test_send_success(self, mock_smtp_class, message):
        server = MagicMock()
        mock_smtp_class.return_value = server
        server.__enter__.return_value = server

        mailer = SmtpMailer('smtp.gmail.com', 465, 'planner@example.edu', 'secret', timeout=12)
        mailer.send(message)

        args, kwargs = mock_smtp_class.call_args
        assert args == ('smtp.gmail.com', 465)
        assert kwargs['timeout'] == 12
        server.login.assert_called_once_with('planner@example.edu', 'secret')
        from_addr, to_addrs, body = server.sendmail.call_args[0]
        assert from_addr == 'planner@example.edu'
        assert to_addrs == ['prof@example.edu']
        assert 'Subject: Upcoming Event: Seminar' in body

    @patch('mailer.smtp_mailer.smtplib.SMTP')
    def test_send_starttls(self, mock_smtp_class, message):
        server = MagicMock()
        mock_smtp_class.return_value = server
        server.__enter__.return_value = server

        mailer = SmtpMailer('smtp.example.edu', 587, 'planner@example.edu', 'secret',
                            use_starttls=True)
        mailer.send(message)

        server.starttls.assert_called_once()
        server.login.assert_called_once()

    @patch('mailer.smtp_mailer.smtplib.SMTP_SSL')
    def test_auth_failure_raises(self, mock_smtp_class, message):
        server = MagicMock()
        mock_smtp_class.return_value = server
        server.__enter__.return_value = server
        server.login.side_effect = smtplib.SMTPAuthenticationError(535, b'bad credentials')

        mailer = SmtpMailer('smtp.gmail.com', 465, 'planner@example.edu', 'wrong')

        with pytest.raises(MailDeliveryError, match='prof@example.edu'):
            mailer.send(message)

    @patch('mailer.smtp_mailer.smtplib.SMTP_SSL')
    def test_timeout_raises(self, mock_smtp_class, message):
        mock_smtp_class.side_effect = socket.timeout('timed out')

        mailer = SmtpMailer('smtp.gmail.com', 465, 'planner@example.edu', 'secret', timeout=1)

        with pytest.raises(MailDeliveryError):
            mailer.send(message)

    def test_sender_defaults_to_username(self):
        mailer = SmtpMailer('smtp.gmail.com', 465, 'planner@example.edu', 'secret')
        assert mailer.sender == 'planner@example.edu'


class TestSesMailer:
    """Test cases for SesMailer using moto."""

    def test_send_from_verified_identity(self, aws, message):
        ses = boto3.client('ses', region_name='us-east-1')
        ses.verify_email_identity(EmailAddress='planner@example.edu')

        mailer = SesMailer('planner@example.edu', region_name='us-east-1')
        message_id = mailer.send(message)

        assert message_id

    def test_unverified_identity_raises(self, aws, message):
        mailer = SesMailer('nobody@example.edu', region_name='us-east-1')

        with pytest.raises(MailDeliveryError, match='SES delivery'):
            mailer.send(message)

    def test_client_timeouts(self, aws):
        mailer = SesMailer('planner@example.edu', region_name='us-east-1', timeout=7)

        config = mailer.client.meta.config
        assert config.connect_timeout == 7
        assert config.read_timeout == 7


class TestBuildMailer:
    """Test cases for mailer selection."""

    def test_build_smtp(self):
        config = NotifierConfig.from_env({
            'EMAIL_USER': 'planner@example.edu',
            'EMAIL_PASS': 'secret',
            'MAIL_TIMEOUT_SECONDS': '15'
        })

        mailer = build_mailer(config)

        assert isinstance(mailer, SmtpMailer)
        assert mailer.timeout == 15
        assert mailer.password == 'secret'

    def test_build_ses(self, aws):
        config = NotifierConfig.from_env({
            'MAIL_TRANSPORT': 'ses',
            'EMAIL_USER': 'planner@example.edu',
            'SES_REGION': 'us-east-1'
        })

        mailer = build_mailer(config)

        assert isinstance(mailer, SesMailer)
        assert mailer.sender == 'planner@example.edu'
