"""
Outbound email through the Resend HTTP API.

Without RESEND_API_KEY the link is logged instead of sent, which is what
local development and the test suite rely on.
"""
import html
from typing import Any, Optional

import httpx

from fomi.core.config import settings
from fomi.core.errors import TransportError
from fomi.core.logging import mail_logger

LOGIN_SUBJECT = "Your magic link to sign in to Fomi"


def render_login_email(magic_link: str, user_email: str) -> str:
    link = html.escape(magic_link, quote=True)
    return (
        "<div style=\"font-family:sans-serif\">"
        "<h2>Sign in to Fomi</h2>"
        f"<p>Hi {html.escape(user_email)}, click the button below to sign in. "
        f"The link expires in {settings.MAGIC_LINK_EXPIRATION_MINUTES} minutes.</p>"
        f"<p><a href=\"{link}\">Sign in</a></p>"
        "<p>If you did not request this email you can ignore it.</p>"
        "</div>"
    )


async def send_login_email(
    magic_link: str,
    user_email: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> dict[str, Any]:
    """Send the sign-in link. Raises TransportError when delivery fails."""
    if not settings.RESEND_API_KEY:
        mail_logger.info("Email delivery disabled, magic link logged", email=user_email, link=magic_link)
        return {"delivered": False}

    payload = {
        "from": settings.MAIL_FROM,
        "to": [user_email],
        "subject": LOGIN_SUBJECT,
        "html": render_login_email(magic_link, user_email),
    }
    headers = {"Authorization": f"Bearer {settings.RESEND_API_KEY}"}

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=10.0) as owned:
                response = await owned.post(settings.RESEND_API_URL, json=payload, headers=headers)
        else:
            response = await client.post(settings.RESEND_API_URL, json=payload, headers=headers)
    except httpx.TimeoutException as e:
        mail_logger.warning("Timeout sending magic link", error=e, email=user_email)
        raise TransportError("Email provider timed out")
    except httpx.RequestError as e:
        mail_logger.warning("Request error sending magic link", error=e, email=user_email)
        raise TransportError("Could not reach email provider")

    if response.status_code < 200 or response.status_code >= 300:
        mail_logger.warning(
            f"Email provider rejected message: HTTP {response.status_code} - {response.text[:200]}",
            email=user_email,
        )
        raise TransportError("Failed to send sign-in email")

    mail_logger.info("Magic link email sent", email=user_email)
    return {"delivered": True, "id": response.json().get("id")}
