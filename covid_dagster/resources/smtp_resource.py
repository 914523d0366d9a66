from __future__ import annotations

import smtplib
from typing import List, Optional

from dagster import ConfigurableResource, get_dagster_logger

from covid_risk.notifier import ALERT_SUBJECT, build_alert_message


class SmtpResource(ConfigurableResource):
    """SMTP transport for the briefing email.

    Sends exactly one message per call. SMTP errors propagate; delivery
    confirmation and retries are left to the scheduler.
    """

    host: str
    from_address: str
    recipients: List[str]
    port: int = 587
    user: Optional[str] = None
    password: Optional[str] = None
    use_tls: bool = True
    timeout_seconds: float = 30.0

    def send_html(self, html_body: str, subject: str = ALERT_SUBJECT) -> None:
        if not self.recipients:
            raise ValueError("SmtpResource.recipients is empty; configure at least one address")

        message = build_alert_message(
            html_body=html_body,
            from_address=self.from_address,
            recipients=self.recipients,
            subject=subject,
        )

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout_seconds) as server:
            if self.use_tls:
                server.starttls()
            if self.user and self.password:
                server.login(self.user, self.password)
            server.send_message(message)

        get_dagster_logger().info(
            f"Sent '{subject}' to {len(self.recipients)} recipient(s) via {self.host}:{self.port}"
        )
