"""Tests for the Graph mail sender and reminder templates."""
import asyncio
import json

import httpx
import pytest

from daco_workflow.domain.enums import EmailType
from daco_workflow.domain.errors import NotificationSendError
from daco_workflow.services.notification_service import NotificationService
from daco_workflow.templates import EmailSubjects, TEMPLATE_REGISTRY, get_email_template

PAYLOAD = {
    "application_id": "APP-0001",
    "state": "DRAFT",
    "applicant_name": "Alice <Nguyen>",
    "rep_name": "Rob Singh",
    "project_title": "Germline variants",
    "days_stalled": 9,
}


class GraphStub:
    """Routes token and sendMail requests, recording what was sent"""

    def __init__(self, send_status: int = 202, token_status: int = 200):
        self.send_status = send_status
        self.token_status = token_status
        self.token_requests = 0
        self.messages = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if "login.microsoftonline.com" in request.url.host:
            self.token_requests += 1
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"error": "invalid_grant"})
            return httpx.Response(200, json={"access_token": "token-abc", "expires_in": 3600})

        assert request.url.path == "/v1.0/me/sendMail"
        assert request.headers["Authorization"] == "Bearer token-abc"
        self.messages.append(json.loads(request.content))
        return httpx.Response(self.send_status)


class TestNotificationService:

    def test_sends_rendered_template(self):
        graph = GraphStub()
        service = NotificationService(transport=httpx.MockTransport(graph))

        asyncio.run(service.send(EmailType.REMINDER_SUBMIT_DRAFT, "alice@uhn.ca", PAYLOAD))

        message = graph.messages[0]["message"]
        assert message["subject"] == EmailSubjects.REMINDER_SUBMIT_DRAFT
        assert message["toRecipients"] == [{"emailAddress": {"address": "alice@uhn.ca"}}]
        assert "APP-0001" in message["body"]["content"]

    def test_token_is_cached(self):
        graph = GraphStub()
        service = NotificationService(transport=httpx.MockTransport(graph))

        async def send_twice():
            await service.send(EmailType.REMINDER_SUBMIT_DRAFT, ["a@uhn.ca"], PAYLOAD)
            await service.send(EmailType.REMINDER_SUBMIT_DAC_REVIEW, ["b@uhn.ca", "c@uhn.ca"], PAYLOAD)

        asyncio.run(send_twice())

        assert graph.token_requests == 1
        assert len(graph.messages) == 2

    def test_graph_error_raises(self):
        service = NotificationService(transport=httpx.MockTransport(GraphStub(send_status=500)))

        with pytest.raises(NotificationSendError):
            asyncio.run(service.send(EmailType.REMINDER_SUBMIT_DRAFT, "a@uhn.ca", PAYLOAD))

    def test_unauthorized_clears_token(self):
        graph = GraphStub(send_status=401)
        service = NotificationService(transport=httpx.MockTransport(graph))

        with pytest.raises(NotificationSendError):
            asyncio.run(service.send(EmailType.REMINDER_SUBMIT_DRAFT, "a@uhn.ca", PAYLOAD))

        assert service._access_token is None

    def test_token_failure_raises(self):
        service = NotificationService(transport=httpx.MockTransport(GraphStub(token_status=400)))

        with pytest.raises(NotificationSendError) as exc_info:
            asyncio.run(service.send(EmailType.REMINDER_SUBMIT_DRAFT, "a@uhn.ca", PAYLOAD))

        assert "access token" in exc_info.value.message

    def test_transport_error_raises(self):
        def broken(request):
            raise httpx.ConnectError("connection refused", request=request)

        service = NotificationService(transport=httpx.MockTransport(broken))

        with pytest.raises(NotificationSendError) as exc_info:
            asyncio.run(service.send(EmailType.REMINDER_SUBMIT_DRAFT, "a@uhn.ca", PAYLOAD))

        assert exc_info.value.details["error_type"] == "ConnectError"

    def test_no_recipients(self):
        service = NotificationService(transport=httpx.MockTransport(GraphStub()))

        with pytest.raises(NotificationSendError):
            asyncio.run(service.send(EmailType.REMINDER_SUBMIT_DRAFT, [], PAYLOAD))


class TestEmailTemplates:

    def test_every_reminder_type_has_a_template(self):
        assert set(TEMPLATE_REGISTRY) == set(EmailType)

    @pytest.mark.parametrize("email_type", list(EmailType))
    def test_templates_link_to_the_application(self, email_type):
        rendered = get_email_template(email_type.value, PAYLOAD, app_url="https://daco.example.org")

        assert rendered["subject"]
        assert "https://daco.example.org/application/APP-0001" in rendered["body"]

    def test_names_are_escaped(self):
        rendered = get_email_template(EmailType.REMINDER_SUBMIT_DRAFT.value, PAYLOAD)

        assert "Alice <Nguyen>" not in rendered["body"]
        assert "Alice &lt;Nguyen&gt;" in rendered["body"]

    def test_unknown_template_falls_back(self):
        rendered = get_email_template("SOMETHING_ELSE", PAYLOAD)

        assert rendered["subject"] == "DACO Application Status Update"
