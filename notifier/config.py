"""Environment configuration for the reminder service."""
import os
from dataclasses import dataclass
from datetime import tzinfo
from typing import Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""


TRANSPORTS = ('smtp', 'ses')


@dataclass
class NotifierConfig:
    """Settings shared by the Lambda handlers and the scheduler process."""
    events_table_name: str
    users_table_name: str
    mail_transport: str
    email_user: str
    email_pass: Optional[str]
    smtp_host: str
    smtp_port: int
    smtp_starttls: bool
    ses_region: Optional[str]
    mail_timeout_seconds: int
    sweep_interval_seconds: int
    display_timezone: str
    display_tz: tzinfo
    log_level: str

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'NotifierConfig':
        """
        Build configuration from environment variables.

        Args:
            environ: Mapping to read from (default: os.environ)

        Returns:
            NotifierConfig instance

        Raises:
            ConfigurationError: If the sending identity is incomplete or a
                numeric or timezone setting cannot be parsed
        """
        env = os.environ if environ is None else environ

        transport = env.get('MAIL_TRANSPORT', 'smtp').strip().lower()
        if transport not in TRANSPORTS:
            raise ConfigurationError(
                f"MAIL_TRANSPORT must be one of {', '.join(TRANSPORTS)}, "
                f"got '{transport}'"
            )

        email_user = env.get('EMAIL_USER', '').strip()
        email_pass = env.get('EMAIL_PASS') or None

        missing = []
        if not email_user:
            missing.append('EMAIL_USER')
        if transport == 'smtp' and not email_pass:
            missing.append('EMAIL_PASS')
        if missing:
            raise ConfigurationError(
                f"Mail sending identity is not configured: missing "
                f"{', '.join(missing)}. Reminder emails cannot be sent."
            )

        display_timezone = env.get('DISPLAY_TIMEZONE') or 'UTC'

        return cls(
            events_table_name=env.get('EVENTS_TABLE_NAME', 'planner-events'),
            users_table_name=env.get('USERS_TABLE_NAME', 'planner-users'),
            mail_transport=transport,
            email_user=email_user,
            email_pass=email_pass,
            smtp_host=env.get('SMTP_HOST', 'smtp.gmail.com'),
            smtp_port=_int_setting(env, 'SMTP_PORT', 465),
            smtp_starttls=env.get('SMTP_STARTTLS', 'false').lower() == 'true',
            ses_region=env.get('SES_REGION') or None,
            mail_timeout_seconds=_int_setting(env, 'MAIL_TIMEOUT_SECONDS', 30),
            sweep_interval_seconds=_int_setting(env, 'SWEEP_INTERVAL_SECONDS', 3600),
            display_timezone=display_timezone,
            display_tz=_timezone_setting(display_timezone),
            log_level=env.get('LOG_LEVEL', 'INFO')
        )


def _int_setting(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == '':
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'")
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")
    return value


def _timezone_setting(name: str) -> tzinfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ConfigurationError(
            f"DISPLAY_TIMEZONE must be an IANA timezone name, got '{name}'"
        )
