"""
Email Service - welcome email once an assistant has a phone number.

Sends over SMTP (Gmail app password by default). Missing configuration
raises NotificationError; the orchestrator logs and swallows it.
"""

import html
import logging
import os
import smtplib
from email.message import EmailMessage
from typing import Optional

from engine.phone import format_for_display

from .errors import NotificationError

logger = logging.getLogger(__name__)

WELCOME_SUBJECT = "MyKendall Phone Number is Ready!"

WELCOME_TEXT = """Hi {full_name},

Your Kendall is live at:

{phone}

You can edit your Kendall's personality and settings anytime:
{edit_link}

Chat with your Kendall:
{chat_link}

This link allows you to update your Kendall's personality, voice, and settings as many times as you'd like."""

WELCOME_HTML = """<!DOCTYPE html>
<html>
  <body style="font-family: -apple-system, 'Segoe UI', Roboto, Arial, sans-serif; background-color: #f5f5f5;">
    <div style="max-width: 600px; margin: 40px auto; padding: 40px 30px; background: #ffffff; border-radius: 8px;">
      <h1 style="font-size: 24px; color: #1a1a1a;">Hi {full_name},</h1>
      <div style="margin: 30px 0; padding: 20px; background: #f9f9f9; border-radius: 6px; text-align: center;">
        <p style="margin: 0; font-size: 32px; font-weight: 700; color: #1a1a1a;">{phone}</p>
      </div>
      <p style="font-size: 16px; color: #666666;">You can edit your Kendall's personality and settings anytime:</p>
      <p style="text-align: center;">
        <a href="{edit_link}" style="display: inline-block; padding: 14px 32px; background: #a855f7; color: #ffffff; text-decoration: none; border-radius: 6px;">Edit My Kendall</a>
        <a href="{chat_link}" style="display: inline-block; padding: 14px 32px; margin-left: 8px; background: #1a1a1a; color: #ffffff; text-decoration: none; border-radius: 6px;">Chat with Kendall</a>
      </p>
      <p style="font-size: 14px; color: #999999; border-top: 1px solid #eeeeee; padding-top: 20px;">
        This link allows you to update your Kendall's personality, voice, and settings as many times as you'd like.
      </p>
    </div>
  </body>
</html>"""


class EmailService:
    """SMTP sender for transactional emails."""

    def __init__(self):
        self.host = os.getenv("SMTP_HOST", "smtp.gmail.com")
        self.port = int(os.getenv("SMTP_PORT", "465"))
        self.user = os.getenv("SMTP_USER") or os.getenv("GMAIL_USER")
        self.password = os.getenv("SMTP_PASSWORD") or os.getenv("GMAIL_APP_PASSWORD")
        self.sender = os.getenv("EMAIL_FROM") or (f'"My Kendall" <{self.user}>' if self.user else None)
        self.base_url = os.getenv("PUBLIC_BASE_URL", "http://localhost:3000").rstrip("/")

        if not self.is_configured:
            logger.warning("EmailService: SMTP credentials not configured - welcome emails will not be sent")

    @property
    def is_configured(self) -> bool:
        return bool(self.user and self.password)

    def absolute_url(self, link: str) -> str:
        return link if link.startswith("http") else f"{self.base_url}{link}"

    def build_welcome_message(self, to: str, full_name: str, phone_number: str,
                              edit_link: str, chat_link: str) -> EmailMessage:
        values = {
            "full_name": full_name,
            "phone": format_for_display(phone_number),
            "edit_link": self.absolute_url(edit_link),
            "chat_link": self.absolute_url(chat_link),
        }
        message = EmailMessage()
        message["Subject"] = WELCOME_SUBJECT
        message["From"] = self.sender or ""
        message["To"] = to
        message.set_content(WELCOME_TEXT.format(**values))
        html_values = {key: html.escape(value) for key, value in values.items()}
        message.add_alternative(WELCOME_HTML.format(**html_values), subtype="html")
        return message

    def send_welcome_email(self, to: str, full_name: str, phone_number: str,
                           edit_link: str, chat_link: str) -> None:
        """
        Send the welcome email.

        Raises:
            NotificationError: not configured or SMTP failure
        """
        if not self.is_configured:
            raise NotificationError("SMTP_USER and SMTP_PASSWORD are required to send email")

        message = self.build_welcome_message(to, full_name, phone_number, edit_link, chat_link)
        try:
            with smtplib.SMTP_SSL(self.host, self.port, timeout=30) as smtp:
                smtp.login(self.user, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"Failed to send welcome email: {e}") from e

        logger.info(f"Welcome email sent to {to}")


# Singleton instance
_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Get or create the email service singleton."""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
