"""Notification dispatchers for triggered alerts."""
from crypto_alerts.config import Settings
from crypto_alerts.notify.log import LogNotifier
from crypto_alerts.notify.smtp import EmailNotifier, SmtpConfig


def build_notifier(settings: Settings) -> EmailNotifier | LogNotifier:
    """EmailNotifier when SMTP_HOST is set, otherwise LogNotifier."""
    if not settings.SMTP_HOST:
        return LogNotifier()
    return EmailNotifier(
        SmtpConfig(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            use_tls=settings.SMTP_USE_TLS,
            from_address=settings.ALERT_FROM_ADDRESS,
        )
    )


__all__ = ["EmailNotifier", "LogNotifier", "SmtpConfig", "build_notifier"]
