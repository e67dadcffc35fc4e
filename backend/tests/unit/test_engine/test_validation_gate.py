"""Tests for the submit validation gate."""
from daco_workflow.domain.models import ApplicationContent, Collaborator
from daco_workflow.engine.validation_gate import AGREEMENT_KEYS, validate_application_content

from tests.conftest import build_complete_content


def _fields(outcome, section):
    return {issue.field for issue in outcome.errors if issue.section == section}


class TestValidateApplicationContent:

    def test_complete_content_passes(self):
        outcome = validate_application_content(build_complete_content())

        assert outcome.valid
        assert outcome.errors == []

    def test_reports_every_problem_not_just_the_first(self):
        outcome = validate_application_content(ApplicationContent())

        assert not outcome.valid
        assert {"first_name", "last_name", "institutional_email"} <= _fields(outcome, "applicant")
        assert {"first_name", "institutional_email"} <= _fields(outcome, "institutional_rep")
        assert {"title", "background", "aims", "methodology", "summary"} <= _fields(outcome, "project")
        assert _fields(outcome, "requested_studies") == {"requested_studies"}
        assert _fields(outcome, "agreements") == {"agreements"}

    def test_blank_strings_are_missing(self):
        content = build_complete_content()
        content.applicant.first_name = "   "

        outcome = validate_application_content(content)

        assert _fields(outcome, "applicant") == {"first_name"}

    def test_invalid_email(self):
        content = build_complete_content()
        content.institutional_rep.institutional_email = "not-an-email"

        outcome = validate_application_content(content)

        assert _fields(outcome, "institutional_rep") == {"institutional_email"}

    def test_word_limits(self):
        content = build_complete_content()
        content.project.aims = " ".join(["word"] * 201)
        content.project.summary = " ".join(["word"] * 250)

        outcome = validate_application_content(content)

        assert _fields(outcome, "project") == {"aims"}
        assert "200 words" in outcome.errors[0].message

    def test_collaborator_errors_carry_their_index(self):
        content = build_complete_content()
        content.collaborators.append(Collaborator(first_name="No", last_name="Email", position_title="Student"))

        outcome = validate_application_content(content)

        assert _fields(outcome, "collaborators") == {"1.institutional_email"}

    def test_blank_study_ids_do_not_count(self):
        content = build_complete_content()
        content.requested_studies = ["", "  "]

        outcome = validate_application_content(content)

        assert _fields(outcome, "requested_studies") == {"requested_studies"}

    def test_missing_agreement(self):
        content = build_complete_content()
        content.agreements = list(AGREEMENT_KEYS[:-1])

        outcome = validate_application_content(content)

        assert not outcome.valid
        assert AGREEMENT_KEYS[-1] in outcome.errors[0].message

    def test_unknown_and_duplicate_agreements(self):
        content = build_complete_content()
        content.agreements = list(AGREEMENT_KEYS) + [AGREEMENT_KEYS[0], "dac_agreement_other"]

        outcome = validate_application_content(content)

        messages = [issue.message for issue in outcome.errors]
        assert any("unknown agreement keys: dac_agreement_other" in m for m in messages)
        assert "duplicate agreement keys" in messages
