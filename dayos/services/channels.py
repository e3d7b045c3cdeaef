# dayos/services/channels.py
"""
Transport wrappers for the two delivery channels. Each call makes exactly one
attempt and raises on failure; callers decide what a failure means.
"""

import json
import smtplib
from email.mime.text import MIMEText
from typing import Any, Dict, Optional

from pywebpush import webpush, WebPushException

from dayos.config.settings import ChannelConfig


class DeliveryError(Exception):
    """A single delivery attempt failed"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class WebPushSender:
    """Sends one Web Push message with VAPID credentials"""

    def __init__(self, config: ChannelConfig):
        self.private_key = config.vapid_private_key
        self.subject = config.vapid_subject
        self.ttl = config.push_ttl_seconds

    def send(self, subscription_info: Dict[str, Any], payload: Dict[str, Any]) -> Optional[int]:
        try:
            response = webpush(
                subscription_info=subscription_info,
                data=json.dumps(payload),
                vapid_private_key=self.private_key,
                # webpush() fills in aud/exp, so hand it a fresh dict each time
                vapid_claims={"sub": self.subject},
                ttl=self.ttl,
            )
        except WebPushException as e:
            status_code = e.response.status_code if e.response is not None else None
            raise DeliveryError(str(e), status_code=status_code) from e
        return getattr(response, "status_code", None)


class SmtpEmailSender:
    """Sends one email through the configured SMTP relay"""

    def __init__(self, config: ChannelConfig):
        self.host = config.smtp_host
        self.port = config.smtp_port
        self.user = config.smtp_user
        self.password = config.smtp_password
        self.sender = config.email_from

    def send(self, to_addr: str, subject: str, body: str) -> None:
        msg = MIMEText(body, "plain")
        msg["Subject"] = subject
        msg["From"] = f"DayOS <{self.sender}>"
        msg["To"] = to_addr

        try:
            with smtplib.SMTP(self.host, self.port, timeout=30) as server:
                server.starttls()
                if self.user and self.password:
                    server.login(self.user, self.password)
                server.sendmail(self.sender, [to_addr], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(f"SMTP send failed: {e}") from e
