"""Tests for the run.py command line."""
import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

import run
from daco_workflow.domain.models import ReminderRunSummary

UTC = timezone.utc


class TestParser:

    def test_remind_defaults(self):
        args = run.build_parser().parse_args(["remind"])

        assert args.handler is run.remind
        assert args.threshold_days is None
        assert args.now is None

    def test_remind_reference_time_is_utc(self):
        args = run.build_parser().parse_args(["remind", "--now", "2024-03-20T08:00:00-04:00"])

        assert args.now == datetime(2024, 3, 20, 12, 0, tzinfo=UTC)

    def test_bad_reference_time_is_a_usage_error(self):
        with pytest.raises(SystemExit):
            run.build_parser().parse_args(["remind", "--now", "yesterday-ish"])

    def test_serve_options(self):
        args = run.build_parser().parse_args(["serve", "--port", "8080", "--reload"])

        assert args.handler is run.serve
        assert (args.port, args.reload) == (8080, True)


class TestRemindCommand:

    def test_runs_one_pass_and_prints_summary(self, capsys):
        reference = datetime(2024, 3, 20, 12, 0, tzinfo=UTC)
        summary = ReminderRunSummary(run_id="RUN-1", scanned=3, sent=1, skipped=2, reference_time=reference)
        args = run.build_parser().parse_args(
            ["remind", "--threshold-days", "14", "--now", "2024-03-20T12:00:00Z"]
        )

        with patch("daco_workflow.scheduler.reminder_scheduler.ReminderService") as service_cls, \
                patch("daco_workflow.repositories.mongo_client.close_connection") as close_connection, \
                patch("daco_workflow.utils.logger.setup_logging"):
            service_cls.return_value.run = AsyncMock(return_value=summary)
            args.handler(args)

        service_cls.assert_called_once_with(threshold_days=14)
        service_cls.return_value.run.assert_awaited_once_with(now=reference)
        close_connection.assert_called_once()
        printed = json.loads(capsys.readouterr().out)
        assert printed["sent"] == 1
        assert printed["reference_time"] == "2024-03-20T12:00:00Z"
