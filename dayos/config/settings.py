# dayos/config/settings.py
# Runtime configuration for the reminder engine, read from the environment

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


def _bool_env(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Settings:
    """Application settings grouped by concern"""

    DATABASE = {
        'url': os.getenv('DATABASE_URL', 'sqlite:///./dayos.db'),
    }

    AUTH = {
        'secret_key': os.getenv('SECRET_KEY', 'change-me'),
        'algorithm': os.getenv('ALGORITHM', 'HS256'),
    }

    APP = {
        'url': os.getenv('APP_URL', 'https://dayos.app').rstrip('/'),
        'cron_secret': os.getenv('CRON_SECRET'),
    }

    PUSH = {
        'vapid_public_key': os.getenv('VAPID_PUBLIC_KEY'),
        'vapid_private_key': os.getenv('VAPID_PRIVATE_KEY'),
        'vapid_subject': os.getenv('VAPID_SUBJECT', 'mailto:' + os.getenv('EMAIL_FROM', 'admin@example.com')),
        'ttl_seconds': int(os.getenv('PUSH_TTL_SECONDS', 3600)),
    }

    EMAIL = {
        'smtp_host': os.getenv('SMTP_HOST'),
        'smtp_port': int(os.getenv('SMTP_PORT', 587)),
        'smtp_user': os.getenv('SMTP_USER'),
        'smtp_password': os.getenv('SMTP_PASSWORD'),
        'email_from': os.getenv('EMAIL_FROM'),
    }

    ENGINE = {
        'dispatch_concurrency': int(os.getenv('DISPATCH_CONCURRENCY', 8)),
        'due_batch_size': int(os.getenv('DUE_BATCH_SIZE', 200)),
        'digest_timezone': os.getenv('DIGEST_TIMEZONE', 'UTC'),
        'delivery_log_retention_days': int(os.getenv('DELIVERY_LOG_RETENTION_DAYS', 30)),
    }

    SCHEDULER = {
        'enabled': _bool_env('ENABLE_SCHEDULER'),
        'reminder_poll_minutes': int(os.getenv('REMINDER_POLL_MINUTES', 1)),
        'digest_hour': int(os.getenv('DIGEST_HOUR', 18)),
    }


class ChannelConfig(BaseModel):
    """Credentials and limits handed to the channel dispatcher at construction"""

    app_url: str = 'https://dayos.app'
    vapid_public_key: Optional[str] = None
    vapid_private_key: Optional[str] = None
    vapid_subject: str = 'mailto:admin@example.com'
    push_ttl_seconds: int = 3600
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    email_from: Optional[str] = None
    dispatch_concurrency: int = 8

    @property
    def push_configured(self) -> bool:
        return bool(self.vapid_public_key and self.vapid_private_key)

    @property
    def email_configured(self) -> bool:
        return bool(self.smtp_host and self.email_from)

    @classmethod
    def from_settings(cls, settings=Settings) -> "ChannelConfig":
        return cls(
            app_url=settings.APP['url'],
            vapid_public_key=settings.PUSH['vapid_public_key'],
            vapid_private_key=settings.PUSH['vapid_private_key'],
            vapid_subject=settings.PUSH['vapid_subject'],
            push_ttl_seconds=settings.PUSH['ttl_seconds'],
            smtp_host=settings.EMAIL['smtp_host'],
            smtp_port=settings.EMAIL['smtp_port'],
            smtp_user=settings.EMAIL['smtp_user'],
            smtp_password=settings.EMAIL['smtp_password'],
            email_from=settings.EMAIL['email_from'],
            dispatch_concurrency=settings.ENGINE['dispatch_concurrency'],
        )
