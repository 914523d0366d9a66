"""Email message construction for the risk briefing."""

from __future__ import annotations

import re
from collections.abc import Sequence
from email.message import EmailMessage
from html import unescape

ALERT_SUBJECT = "⚠️ CRITICAL COVID-19 ALERT"

_BLOCK_END = re.compile(r"</(?:h[1-6]|p|li|ul|ol|div|tr)\s*>|<br\s*/?>", re.IGNORECASE)
_TAG = re.compile(r"<[^>]+>")
_BLANK_LINES = re.compile(r"\n\s*\n+")


def html_to_text(html_body: str) -> str:
    """Crude plain-text fallback for mail clients that refuse HTML."""
    text = _BLOCK_END.sub("\n", html_body)
    text = _TAG.sub("", text)
    text = _BLANK_LINES.sub("\n\n", unescape(text))
    return text.strip()


def build_alert_message(
    *,
    html_body: str,
    from_address: str,
    recipients: Sequence[str],
    subject: str = ALERT_SUBJECT,
) -> EmailMessage:
    """Build a multipart/alternative message whose preferred part is `html_body`."""

    if not recipients:
        raise ValueError("at least one recipient is required")

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = from_address
    msg["To"] = ", ".join(recipients)
    msg.set_content(html_to_text(html_body) or subject)
    msg.add_alternative(html_body, subtype="html")
    return msg
