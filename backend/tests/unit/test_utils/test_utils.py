"""Tests for time, ID, logging and JWT helpers."""
import json
import logging
import time
from datetime import datetime, timezone, timedelta

import jwt
import pytest

from daco_workflow.domain.enums import ActorRole
from daco_workflow.domain.errors import AuthenticationError
from daco_workflow.utils.idgen import generate_action_id, generate_correlation_id, generate_id
from daco_workflow.utils.jwt import JWTValidator
from daco_workflow.utils.logger import JsonFormatter, correlation_id_var
from daco_workflow.utils.time import elapsed_calendar_days, format_iso, parse_iso

UTC = timezone.utc


class TestTime:

    @pytest.mark.parametrize("since,now,expected", [
        (datetime(2024, 1, 1, 23, 59, tzinfo=UTC), datetime(2024, 1, 2, 0, 1, tzinfo=UTC), 1),
        (datetime(2024, 1, 2, 0, 1, tzinfo=UTC), datetime(2024, 1, 2, 23, 59, tzinfo=UTC), 0),
        (datetime(2024, 1, 31, 12, 0, tzinfo=UTC), datetime(2024, 2, 1, 12, 0, tzinfo=UTC), 1),
        (datetime(2023, 12, 28, tzinfo=UTC), datetime(2024, 1, 4, tzinfo=UTC), 7),
        (datetime(2023, 2, 28, tzinfo=UTC), datetime(2023, 3, 1, tzinfo=UTC), 1),
        (datetime(2024, 2, 28, tzinfo=UTC), datetime(2024, 3, 1, tzinfo=UTC), 2),
    ])
    def test_elapsed_calendar_days(self, since, now, expected):
        assert elapsed_calendar_days(since, now) == expected

    def test_days_are_counted_on_utc_dates(self):
        toronto = timezone(timedelta(hours=-5))
        # 20:00 in Toronto is already the next day in UTC
        since = datetime(2024, 1, 1, 20, 0, tzinfo=toronto)

        assert elapsed_calendar_days(since, datetime(2024, 1, 2, 12, 0, tzinfo=UTC)) == 0

    def test_naive_datetimes_are_treated_as_utc(self):
        assert elapsed_calendar_days(datetime(2024, 1, 1), datetime(2024, 1, 3, tzinfo=UTC)) == 2

    def test_iso_round_trip(self):
        dt = datetime(2024, 6, 1, 8, 30, tzinfo=UTC)

        assert format_iso(dt) == "2024-06-01T08:30:00Z"
        assert parse_iso("2024-06-01T08:30:00Z") == dt


class TestIdGeneration:

    def test_prefixes(self):
        assert generate_action_id().startswith("ACT-")
        assert generate_id() != generate_id()
        assert generate_correlation_id().startswith("COR-")


class TestJsonFormatter:

    def test_includes_context_and_extra_fields(self):
        token = correlation_id_var.set("COR-test")
        try:
            record = logging.LogRecord("daco", logging.INFO, __file__, 1, "hello", None, None)
            record.application_id = "APP-1"
            record.email_type = "REMINDER_SUBMIT_DRAFT"

            payload = json.loads(JsonFormatter().format(record))
        finally:
            correlation_id_var.reset(token)

        assert payload["message"] == "hello"
        assert payload["correlation_id"] == "COR-test"
        assert payload["application_id"] == "APP-1"
        assert payload["email_type"] == "REMINDER_SUBMIT_DRAFT"


SECRET = "unit-test-secret-that-is-long-enough-for-hs256"


def _token(**claims):
    base = {"sub": "user-1", "email": "alice@uhn.ca", "role": "applicant", "exp": int(time.time()) + 600}
    base.update(claims)
    return jwt.encode(base, SECRET, algorithm="HS256")


class TestJWTValidator:

    @pytest.fixture
    def validator(self):
        return JWTValidator(secret=SECRET, algorithm="HS256")

    def test_actor_from_bearer_token(self, validator):
        actor = validator.get_actor_context("Bearer " + _token(name="Alice"))

        assert actor.user_id == "user-1"
        assert actor.role == ActorRole.APPLICANT
        assert actor.display_name == "Alice"

    def test_expired_token(self, validator):
        with pytest.raises(AuthenticationError, match="expired"):
            validator.validate_token(_token(exp=int(time.time()) - 10))

    def test_wrong_secret(self, validator):
        token = jwt.encode({"sub": "x"}, "another-secret-that-is-also-long-enough", algorithm="HS256")

        with pytest.raises(AuthenticationError):
            validator.validate_token(token)

    def test_unknown_role(self, validator):
        with pytest.raises(AuthenticationError) as exc_info:
            validator.get_actor_context(_token(role="ADMIN"))

        assert "DAC_MEMBER" in exc_info.value.details["allowed_roles"]

    def test_missing_email(self, validator):
        with pytest.raises(AuthenticationError):
            validator.get_actor_context(_token(email=None))

    def test_missing_token(self, validator):
        with pytest.raises(AuthenticationError):
            validator.validate_token("")
