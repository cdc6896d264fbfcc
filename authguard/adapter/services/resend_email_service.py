"""
Resend Email Service

Sends verification and password reset emails through the Resend HTTP API.
Without an API key nothing is sent and the result says so.
"""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from authguard.app.services.email_service import IEmailService, SendResult

logger = logging.getLogger(__name__)

RESET_TEMPLATE = """
<div style="font-family:Arial,sans-serif;line-height:1.5;color:#0f172a;">
  <h2 style="margin:0 0 12px;">Reset your password</h2>
  <p style="margin:0 0 16px;">Use the link below to set a new password for your MetaDJ Nexus account.</p>
  <p style="margin:0 0 24px;"><a href="{url}" style="color:#7c3aed;">Reset password</a></p>
  <p style="margin:0;font-size:12px;color:#475569;">This link expires in 60 minutes.</p>
</div>
"""

VERIFY_TEMPLATE = """
<div style="font-family:Arial,sans-serif;line-height:1.5;color:#0f172a;">
  <h2 style="margin:0 0 12px;">Verify your email</h2>
  <p style="margin:0 0 16px;">Confirm your email to finish setting up your MetaDJ Nexus account.</p>
  <p style="margin:0 0 24px;"><a href="{url}" style="color:#7c3aed;">Verify email</a></p>
  <p style="margin:0;font-size:12px;color:#475569;">If you didn't create this account, you can ignore this email.</p>
</div>
"""


class ResendEmailService(IEmailService):
    def __init__(
        self,
        api_key: str,
        from_address: str,
        app_base_url: str,
        api_url: str = "https://api.resend.com/emails",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.api_key = api_key
        self.from_address = from_address
        self.app_base_url = app_base_url.rstrip("/")
        self.api_url = api_url
        self.client = client
        self.timeout = timeout

    def reset_url(self, token: str) -> str:
        return f"{self.app_base_url}/reset-password?token={quote(token, safe='')}"

    def verify_url(self, token: str) -> str:
        return f"{self.app_base_url}/auth/verify-email?token={quote(token, safe='')}"

    async def send_password_reset(self, email: str, token: str) -> SendResult:
        return await self._send(
            email,
            "Reset your MetaDJ Nexus password",
            RESET_TEMPLATE.format(url=self.reset_url(token)),
        )

    async def send_verification(self, email: str, token: str) -> SendResult:
        return await self._send(
            email,
            "Verify your MetaDJ Nexus email",
            VERIFY_TEMPLATE.format(url=self.verify_url(token)),
        )

    async def _send(self, to: str, subject: str, html: str) -> SendResult:
        if not self.api_key:
            logger.warning(f"Resend not configured; skipped email: {subject}")
            return SendResult(delivered=False, reason="not_configured")

        payload = {"from": self.from_address, "to": [to], "subject": subject, "html": html}
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            if self.client is not None:
                response = await self.client.post(self.api_url, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.api_url, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error(f"Email send failed ({subject}): {exc.__class__.__name__}")
            return SendResult(delivered=False, reason="send_failed")

        return SendResult(delivered=True)
