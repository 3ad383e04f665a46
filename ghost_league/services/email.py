"""Outgoing email: verification codes and welcome messages (Mailgun, or console in development)."""
from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from ghost_league.config import Settings, get_settings

logger = logging.getLogger(__name__)

MAILGUN_US_BASE = "https://api.mailgun.net"
MAILGUN_EU_BASE = "https://api.eu.mailgun.net"


@dataclass
class EmailResult:
    sent: bool
    message_id: str | None = None
    preview_url: str | None = None
    error: str | None = None


def send_email(to_email: str, subject: str, html_content: str, text_content: str | None = None) -> EmailResult:
    """Send one email through the configured backend. Never raises; check ``EmailResult.sent``."""
    settings = get_settings()
    if settings.email_backend == "mailgun":
        if not (settings.mailgun_api_key and settings.mailgun_domain):
            logger.error("Mailgun backend selected but MAILGUN_API_KEY / MAILGUN_DOMAIN are missing; not sent to %s", to_email)
            return EmailResult(sent=False, error="mailgun_not_configured")
        return _send_email_mailgun(to_email, subject, html_content, text_content, settings)
    return _send_email_console(to_email, subject, text_content or html_content, settings)


def _send_email_console(to_email: str, subject: str, body: str, settings: Settings) -> EmailResult:
    if settings.debug:
        logger.info("[console email] to=%s subject=%s\n%s", to_email, subject, body)
    else:
        logger.info("[console email] to=%s subject=%s (body hidden outside debug)", to_email, subject)
    return EmailResult(sent=True, message_id="console")


def _mailgun_from(settings: Settings) -> str:
    domain = settings.mailgun_domain.lower()
    from_addr = settings.mailgun_from_email
    from_domain = from_addr.split("@")[-1].lower() if "@" in from_addr else ""
    if domain and from_domain != domain:
        # Mailgun drops mail whose sender domain does not match the sending domain
        from_addr = f"noreply@{domain}"
    return f"{settings.mail_from_name} <{from_addr}>"


def _send_email_mailgun(
    to_email: str,
    subject: str,
    html_content: str,
    text_content: str | None,
    settings: Settings,
) -> EmailResult:
    base = (settings.mailgun_base_url or MAILGUN_US_BASE).rstrip("/")
    domain = settings.mailgun_domain.lower()
    data = {
        "from": _mailgun_from(settings),
        "to": to_email,
        "subject": subject,
        "text": text_content or "",
        "html": html_content or "",
    }
    try:
        with httpx.Client(timeout=10.0) as client:
            r = client.post(f"{base}/v3/{domain}/messages", auth=("api", settings.mailgun_api_key), data=data)
            if r.status_code == 401 and base == MAILGUN_US_BASE:
                logger.warning("Mailgun returned 401 on the US endpoint, retrying on the EU endpoint")
                r = client.post(f"{MAILGUN_EU_BASE}/v3/{domain}/messages", auth=("api", settings.mailgun_api_key), data=data)
    except httpx.HTTPError as e:
        logger.error("Mailgun request failed: to=%s error=%s: %s", to_email, type(e).__name__, e)
        return EmailResult(sent=False, error=str(e))

    if 200 <= r.status_code < 300:
        try:
            msg_id = (r.json() or {}).get("id")
        except ValueError:
            msg_id = None
        logger.info("Mailgun accepted message: to=%s id=%s", to_email, msg_id)
        return EmailResult(sent=True, message_id=msg_id)
    logger.error("Mailgun rejected message: status=%s to=%s body=%s", r.status_code, to_email, r.text[:500])
    return EmailResult(sent=False, error=f"mailgun_status_{r.status_code}")


def send_verification_email(to_email: str, code: str, expires_minutes: int) -> EmailResult:
    subject = "Verify your email - Ghost League"
    text_content = f"Your Ghost League verification code is: {code}. It expires in {expires_minutes} minutes."
    html_content = f"""
    <p>Hi,</p>
    <p>Your Ghost League verification code is:</p>
    <p style="font-size:2em;font-weight:800;letter-spacing:0.4em;font-family:monospace;">{code}</p>
    <p>The code expires in <strong>{expires_minutes} minutes</strong>. If you did not create an account, ignore this email.</p>
    <p>Ghost League</p>
    """
    return send_email(to_email, subject, html_content, text_content=text_content)


def send_welcome_email(to_email: str, username: str | None = None) -> EmailResult:
    settings = get_settings()
    name = (username or "").strip() or "player"
    subject = "Welcome to Ghost League! Registration complete"
    text = f"Hi {name}! Your Ghost League registration is complete. Thanks for joining."
    html = f"""
    <p>Hi {name},</p>
    <p>Your email is verified and your Ghost League account is ready.</p>
    <p><a href="{settings.frontend_url}/tournaments">Browse tournaments</a></p>
    <p>Ghost League</p>
    """
    return send_email(to_email, subject, html, text_content=text)
