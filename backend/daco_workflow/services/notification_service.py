"""Notification Service - Reminder email sending via Graph API"""
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Union
import httpx

from ..domain.enums import EmailType
from ..domain.errors import NotificationSendError
from ..templates import get_email_template
from ..config.settings import settings
from ..utils.time import utc_now
from ..utils.logger import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Sends notifications through the service mailbox

    `send` is the only entry point the reminder scheduler uses. Any failure
    (token, transport, non-2xx response) surfaces as NotificationSendError.
    """

    GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None, timeout: float = 30.0):
        self._transport = transport
        self._timeout = timeout
        self._access_token: Optional[str] = None
        self._token_expiry: Optional[datetime] = None

    async def send(
        self,
        template_kind: Union[EmailType, str],
        recipient: Union[str, List[str]],
        template_data: Dict[str, Any]
    ) -> None:
        """
        Render a template and send it

        Args:
            template_kind: Email type selecting the template
            recipient: One address or a list of addresses
            template_data: Values the template renders

        Raises:
            NotificationSendError: Sending failed
        """
        recipients = [recipient] if isinstance(recipient, str) else list(recipient)
        kind = template_kind.value if isinstance(template_kind, EmailType) else template_kind
        if not recipients:
            raise NotificationSendError(f"No recipients for {kind}", details={"template": kind})

        email_content = get_email_template(
            template_key=kind,
            payload=template_data,
            app_url=settings.frontend_url
        )

        start_time = utc_now()
        try:
            await self._send_email_via_graph(
                recipients=recipients,
                subject=email_content["subject"],
                body=email_content["body"]
            )
        except httpx.HTTPError as e:
            raise NotificationSendError(
                f"Transport error sending {kind}: {e}",
                details={"template": kind, "error_type": type(e).__name__}
            ) from e

        processing_time_ms = (utc_now() - start_time).total_seconds() * 1000
        logger.info(
            f"Sent {kind} to {len(recipients)} recipient(s) in {round(processing_time_ms, 2)}ms",
            extra={
                "email_type": kind,
                "application_id": template_data.get("application_id"),
            }
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self._timeout)

    async def _send_email_via_graph(
        self,
        recipients: List[str],
        subject: str,
        body: str
    ) -> None:
        """Send email using Microsoft Graph API with service mailbox (ROPC)"""
        access_token = await self._get_access_token()

        message = {
            "message": {
                "subject": subject,
                "body": {
                    "contentType": "HTML",
                    "content": body
                },
                "toRecipients": [
                    {"emailAddress": {"address": email}}
                    for email in recipients
                ]
            },
            "saveToSentItems": False
        }

        async with self._client() as client:
            response = await client.post(
                f"{self.GRAPH_BASE_URL}/me/sendMail",
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Content-Type": "application/json"
                },
                json=message
            )

            if response.status_code not in [200, 202]:
                if response.status_code == 401:
                    # Force a fresh token next time
                    self._access_token = None
                raise NotificationSendError(
                    f"Graph API error: {response.status_code}",
                    details={"response": response.text}
                )

    async def _get_access_token(self) -> str:
        """
        Get access token for service mailbox using ROPC

        Token is cached until five minutes before expiry.
        """
        if self._access_token and self._token_expiry:
            if utc_now() < self._token_expiry:
                return self._access_token

        token_url = f"https://login.microsoftonline.com/{settings.aad_tenant_id}/oauth2/v2.0/token"

        async with self._client() as client:
            response = await client.post(
                token_url,
                data={
                    "client_id": settings.aad_client_id,
                    "client_secret": settings.aad_client_secret,
                    "scope": "https://graph.microsoft.com/.default",
                    "username": settings.service_mailbox_email,
                    "password": settings.service_mailbox_password,
                    "grant_type": "password"
                }
            )

            if response.status_code != 200:
                raise NotificationSendError(
                    f"Failed to get access token: {response.status_code}",
                    details={"response": response.text}
                )

            token_data = response.json()
            self._access_token = token_data["access_token"]

            expires_in = token_data.get("expires_in", 3600)
            self._token_expiry = utc_now() + timedelta(seconds=expires_in - 300)

            return self._access_token
