#!/usr/bin/env python3
"""
Run the DayOS reminder engine behind uvicorn and report which delivery
channels and trigger mode this process will use.
"""

import os

import uvicorn

from dayos.config.settings import ChannelConfig, Settings


def describe_startup() -> list:
    channels = ChannelConfig.from_settings()
    lines = [
        f"Database: {Settings.DATABASE['url']}",
        f"Push: {'configured' if channels.push_configured else 'disabled (VAPID keys missing)'}",
        f"Email: {'configured' if channels.email_configured else 'disabled (SMTP_HOST/EMAIL_FROM missing)'}",
    ]
    if Settings.SCHEDULER['enabled']:
        lines.append(
            f"Triggers: in-process, due reminders every {Settings.SCHEDULER['reminder_poll_minutes']} min, "
            f"digest at {Settings.SCHEDULER['digest_hour']:02d}:00 {Settings.ENGINE['digest_timezone']}"
        )
    else:
        secured = "secret required" if Settings.APP['cron_secret'] else "no secret set"
        lines.append(f"Triggers: external cron via /cron/* ({secured})")
    return lines


def main():
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    reload = os.getenv("RELOAD", "false").lower() == "true"

    print(f"Starting DayOS reminder engine on {host}:{port}")
    for line in describe_startup():
        print(f"  {line}")
    print("=" * 50)

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info"
    )

if __name__ == "__main__":
    main()
