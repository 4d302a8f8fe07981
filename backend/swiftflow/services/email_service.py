"""
Transactional email delivery (SendGrid v3 HTTP API)

The API key is a runtime secret: it is read from SENDGRID_API_KEY when the
client is built and is never stored in code or config defaults.
"""

from __future__ import annotations

import httpx
from flask import current_app


class ReportDeliveryError(Exception):
    """One digest could not be delivered. Isolated to that owner."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class SendGridClient:
    """
    Minimal SendGrid mail/send client.

    Pass `transport` to route requests somewhere other than the network
    (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        api_url: str = "https://api.sendgrid.com/v3/mail/send",
        from_email: str = "no-reply@swiftflow.world",
        from_name: str = "SwiftFlow Reports",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        if not api_key:
            raise ReportDeliveryError("SENDGRID_API_KEY is not configured")
        self.api_url = api_url
        self.from_email = from_email
        self.from_name = from_name
        self._client = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
        )

    @classmethod
    def from_config(cls, config=None, *, transport: httpx.BaseTransport | None = None) -> "SendGridClient":
        config = config if config is not None else current_app.config
        return cls(
            config.get("SENDGRID_API_KEY"),
            api_url=config.get("SENDGRID_API_URL", "https://api.sendgrid.com/v3/mail/send"),
            from_email=config.get("REPORT_FROM_EMAIL", "no-reply@swiftflow.world"),
            from_name=config.get("REPORT_FROM_NAME", "SwiftFlow Reports"),
            transport=transport,
        )

    def _payload(self, to: str, subject: str, html: str) -> dict:
        return {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": self.from_email, "name": self.from_name},
            "subject": subject,
            "content": [{"type": "text/html", "value": html}],
        }

    def send(self, *, to: str, subject: str, html: str) -> None:
        """Raises ReportDeliveryError on transport failure or a non-2xx response."""
        if not to:
            raise ReportDeliveryError("No recipient address")
        try:
            response = self._client.post(self.api_url, json=self._payload(to, subject, html))
        except httpx.HTTPError as exc:
            raise ReportDeliveryError(f"Email provider unreachable: {exc.__class__.__name__}") from exc

        if response.status_code >= 300:
            raise ReportDeliveryError(
                f"Email provider rejected message ({response.status_code}): {response.text[:200]}",
                status_code=response.status_code,
            )

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
