from __future__ import annotations

import smtplib
from email.message import EmailMessage

from bloodbooking.core.config import get_settings


def send_email(to_email: str, subject: str, body: str, html_body: str | None = None) -> None:
    """Send an email via SMTP.

    ``body`` is the plain-text part; ``html_body`` is attached as an HTML
    alternative when given. For development, MailHog on localhost:1025 works.
    """
    settings = get_settings()

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = settings.email_from
    msg["To"] = to_email
    msg.set_content(body)
    if html_body:
        msg.add_alternative(html_body, subtype="html")

    if settings.smtp_use_tls:
        server = smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port)
    else:
        server = smtplib.SMTP(settings.smtp_host, settings.smtp_port)

    try:
        if settings.smtp_username:
            server.login(settings.smtp_username, settings.smtp_password)
        server.send_message(msg)
    finally:
        try:
            server.quit()
        except smtplib.SMTPException:
            pass
