"""Outbound notifications (invite + welcome emails).

Learn: Notifications are best-effort. The business operation (create an
invite, register a user) is already committed by the time we notify, so
a mail server outage must never turn a 201 into a 500. Callers go through
dispatch_notification(), which awaits the send for logging purposes and
swallows any exception.

EmailNotifier has two modes:
1. SMTP configured → send via smtplib on a worker thread
2. Not configured   → log the rendered message (local development)
"""

import asyncio
import smtplib
from email.message import EmailMessage
from typing import Any, Awaitable, Protocol

import structlog

from nexusadmin.config import Settings

logger = structlog.get_logger()


class Notifier(Protocol):
    async def send_invite(self, email: str, token: str, role: str, link: str) -> None: ...

    async def send_welcome(self, email: str, name: str) -> None: ...


async def dispatch_notification(send: Awaitable[Any], kind: str, **context) -> bool:
    """Await a notification; log and swallow failures. Returns success."""
    try:
        await send
    except Exception as e:
        logger.warning("notify.failed", kind=kind, error=str(e), **context)
        return False
    logger.info("notify.sent", kind=kind, **context)
    return True


# ══════════════════════════════════════════════════════════════
# Templates
# ══════════════════════════════════════════════════════════════

TEMPLATES = {
    "invite": {
        "subject": "You're invited to join {app_name} as {role}",
        "html": """
        <html>
        <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
            <h1 style="color: #333;">You're invited to {app_name}</h1>
            <p>You have been invited to join {app_name} with the <strong>{role}</strong> role.</p>
            <p style="text-align: center; margin: 30px 0;">
                <a href="{link}" style="background: #4F46E5; color: white; padding: 12px 30px; text-decoration: none; border-radius: 6px; display: inline-block;">
                    Accept Invitation
                </a>
            </p>
            <p style="color: #666; font-size: 14px;">Or copy this link: {link}</p>
            <p style="color: #666; font-size: 14px;">This invitation expires in {expires_hours} hours.</p>
        </body>
        </html>
        """,
        "text": """
You're invited to {app_name} as {role}.

Accept the invitation by visiting:
{link}

This invitation expires in {expires_hours} hours.
        """,
    },
    "welcome": {
        "subject": "Welcome to {app_name}!",
        "html": """
        <html>
        <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
            <h1 style="color: #333;">Welcome to {app_name}, {name}!</h1>
            <p>Your account is ready. You can sign in at any time:</p>
            <p style="text-align: center; margin: 30px 0;">
                <a href="{login_url}" style="background: #4F46E5; color: white; padding: 12px 30px; text-decoration: none; border-radius: 6px; display: inline-block;">
                    Sign In
                </a>
            </p>
        </body>
        </html>
        """,
        "text": """
Welcome to {app_name}, {name}!

Your account is ready. Sign in at:
{login_url}
        """,
    },
}


def render(template: str, **values) -> dict[str, str]:
    """Render subject/html/text for a template name."""
    spec = TEMPLATES[template]
    return {
        "subject": spec["subject"].format(**values),
        "html": spec["html"].format(**values).strip(),
        "text": spec["text"].format(**values).strip(),
    }


# ══════════════════════════════════════════════════════════════
# Email transport
# ══════════════════════════════════════════════════════════════


class EmailNotifier:
    """Notifier that renders templates and delivers over SMTP."""

    def __init__(self, settings: Settings):
        self.settings = settings
        if not settings.smtp_configured:
            logger.warning("notify.smtp_unconfigured", detail="emails will be logged, not sent")

    async def send_invite(self, email: str, token: str, role: str, link: str) -> None:
        message = render(
            "invite",
            app_name=self.settings.smtp_from_name,
            role=role,
            link=link,
            expires_hours=self.settings.invite_token_expire_hours,
        )
        await self._send(email, message)

    async def send_welcome(self, email: str, name: str) -> None:
        message = render(
            "welcome",
            app_name=self.settings.smtp_from_name,
            name=name,
            login_url=f"{self.settings.frontend_url.rstrip('/')}/login",
        )
        await self._send(email, message)

    async def _send(self, to: str, message: dict[str, str]) -> None:
        if not self.settings.smtp_configured:
            logger.info(
                "notify.email_logged",
                to=to,
                subject=message["subject"],
                body=message["text"],
            )
            return
        await asyncio.to_thread(self._send_smtp, to, message)

    def _build_message(self, to: str, message: dict[str, str]) -> EmailMessage:
        s = self.settings
        msg = EmailMessage()
        msg["Subject"] = message["subject"]
        msg["From"] = f'"{s.smtp_from_name}" <{s.smtp_from_email or s.smtp_user}>'
        msg["To"] = to
        msg.set_content(message["text"])
        msg.add_alternative(message["html"], subtype="html")
        return msg

    def _send_smtp(self, to: str, message: dict[str, str]) -> None:
        s = self.settings
        msg = self._build_message(to, message)
        if s.smtp_secure:
            with smtplib.SMTP_SSL(s.smtp_host, s.smtp_port, timeout=30) as smtp:
                smtp.login(s.smtp_user, s.smtp_password)
                smtp.send_message(msg)
        else:
            with smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=30) as smtp:
                smtp.starttls()
                smtp.login(s.smtp_user, s.smtp_password)
                smtp.send_message(msg)
