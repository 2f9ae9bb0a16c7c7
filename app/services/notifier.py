"""Transactional email delivery through Resend."""
from __future__ import annotations

import html
import logging
import re
from typing import Any, Callable, Mapping

import resend

from app.core.config import settings
from app.core.logging_config import fingerprint_email

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@<>\s]+@[^@<>\s]+\.[^@<>\s]+$")
NAME_EMAIL_RE = re.compile(r"^.+ <[^@<>\s]+@[^@<>\s]+\.[^@<>\s]+>$")

TEMPLATE_WELCOME = "welcome"
TEMPLATE_LOGIN_NOTIFICATION = "login_notification"
TEMPLATE_PASSWORD_RESET = "password_reset"
TEMPLATE_PASSWORD_CHANGED = "password_changed"


def _welcome(params: Mapping[str, Any]) -> tuple[str, str]:
    name = html.escape(str(params.get("name") or "there"))
    return (
        f"Welcome to {settings.APP_NAME}!",
        f"""
        <html>
            <body>
                <h1>Welcome, {name}!</h1>
                <p>Your {settings.APP_NAME} account is ready. We created a default income
                and expense category so you can start tracking right away.</p>
            </body>
        </html>
        """,
    )


def _login_notification(params: Mapping[str, Any]) -> tuple[str, str]:
    name = html.escape(str(params.get("name") or ""))
    ip = html.escape(str(params.get("ip") or "unknown"))
    device = html.escape(str(params.get("device") or "unknown device"))
    return (
        f"New Login Detected - {settings.APP_NAME}",
        f"""
        <html>
            <body>
                <h1>Hi {name},</h1>
                <p>We noticed a new login to your {settings.APP_NAME} account.</p>
                <p>IP address: {ip}<br>Device: {device}</p>
                <p>If this wasn't you, please change your password.</p>
            </body>
        </html>
        """,
    )


def _password_reset(params: Mapping[str, Any]) -> tuple[str, str]:
    name = html.escape(str(params.get("name") or "there"))
    link = html.escape(str(params.get("link") or ""), quote=True)
    minutes = int(params.get("expires_minutes") or settings.PASSWORD_RESET_EXPIRY_MINUTES)
    return (
        f"Reset your {settings.APP_NAME} password",
        f"""
        <html>
            <body>
                <h1>Hi {name},</h1>
                <p>We received a request to reset your password.</p>
                <p><a href="{link}">Choose a new password</a></p>
                <p>The link expires in {minutes} minutes. If you did not ask for it,
                you can ignore this email.</p>
            </body>
        </html>
        """,
    )


def _password_changed(params: Mapping[str, Any]) -> tuple[str, str]:
    name = html.escape(str(params.get("name") or ""))
    return (
        f"Your {settings.APP_NAME} password was changed",
        f"""
        <html>
            <body>
                <h1>Hi {name},</h1>
                <p>The password for your {settings.APP_NAME} account was just changed.</p>
                <p>If this wasn't you, reset your password right away.</p>
            </body>
        </html>
        """,
    )


TEMPLATES: dict[str, Callable[[Mapping[str, Any]], tuple[str, str]]] = {
    TEMPLATE_WELCOME: _welcome,
    TEMPLATE_LOGIN_NOTIFICATION: _login_notification,
    TEMPLATE_PASSWORD_RESET: _password_reset,
    TEMPLATE_PASSWORD_CHANGED: _password_changed,
}


def _from_field() -> str:
    # Accept plain email (user@example.com) or display name format (Name <user@example.com>).
    from_raw = (settings.RESEND_FROM_EMAIL or "").strip()
    if EMAIL_RE.match(from_raw):
        return f"{settings.APP_NAME} <{from_raw}>"
    if NAME_EMAIL_RE.match(from_raw):
        return from_raw
    logger.warning("RESEND_FROM_EMAIL value '%s' is invalid; falling back to noreply", from_raw)
    return f"{settings.APP_NAME} <noreply@example.com>"


class Notifier:
    """Fire-and-forget email sender; failures are logged and never re-raised."""

    def __init__(self, api_key: str | None = None) -> None:
        self.api_key = api_key if api_key is not None else settings.RESEND_API_KEY

    def send(self, address: str, template_kind: str, params: Mapping[str, Any] | None = None) -> bool:
        """Render and send a template; return True when the provider accepted it."""
        email_hash = fingerprint_email(address)
        render = TEMPLATES.get(template_kind)
        if render is None:
            logger.error("Unknown email template %s [email_hash=%s]", template_kind, email_hash)
            return False

        if not self.api_key:
            logger.info("Email delivery disabled; skipped %s [email_hash=%s]", template_kind, email_hash)
            return False

        subject, body = render(params or {})
        try:
            resend.api_key = self.api_key
            resend.Emails.send(
                {
                    "from": _from_field(),
                    "to": address,
                    "subject": subject,
                    "html": body,
                }
            )
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Failed to send %s email [email_hash=%s]", template_kind, email_hash, exc_info=exc
            )
            return False

        logger.info("Sent %s email [email_hash=%s]", template_kind, email_hash)
        return True


notifier = Notifier()


def get_notifier() -> Notifier:
    """Dependency returning the shared notifier."""
    return notifier
