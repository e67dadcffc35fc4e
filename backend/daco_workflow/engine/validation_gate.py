"""Validation Gate - Checks application content is complete enough to submit

Pure functions over ApplicationContent. The workflow accepts any callable
with the `ContentValidator` signature, so stricter schemas can be swapped in
without touching the state machine.
"""
from typing import Annotated, Callable, List, Type

from pydantic import (
    BaseModel, ConfigDict, EmailStr, StringConstraints, AfterValidator,
    ValidationError as PydanticValidationError
)

from ..domain.models import ApplicationContent, ValidationIssue, ValidationOutcome

ContentValidator = Callable[[ApplicationContent], ValidationOutcome]


# ============================================================================
# Field types
# ============================================================================

NonEmptyString = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def _word_limit(limit: int) -> Callable[[str], str]:
    def check(value: str) -> str:
        words = len(value.split())
        if words > limit:
            raise ValueError(f"must be at most {limit} words (got {words})")
        return value
    return check


Concise200Words = Annotated[NonEmptyString, AfterValidator(_word_limit(200))]
Concise250Words = Annotated[NonEmptyString, AfterValidator(_word_limit(250))]


# Data access agreements an applicant must accept before submitting
AGREEMENT_KEYS = (
    "dac_agreement_software_updates",
    "dac_agreement_non_disclosure",
    "dac_agreement_monitor_individual_access",
    "dac_agreement_destroy_data",
    "dac_agreement_familiarize_restrictions",
    "dac_agreement_provide_it_policy",
    "dac_agreement_notify_unauthorized_access",
    "dac_agreement_certify_application",
    "dac_agreement_read_and_agreed",
)


# ============================================================================
# Submit-time section schemas
# ============================================================================

class _SubmitSchema(BaseModel):
    model_config = ConfigDict(extra="ignore")


class ApplicantSubmitSchema(_SubmitSchema):
    first_name: NonEmptyString
    last_name: NonEmptyString
    primary_affiliation: NonEmptyString
    institutional_email: EmailStr
    position_title: NonEmptyString


class InstitutionalRepSubmitSchema(_SubmitSchema):
    first_name: NonEmptyString
    last_name: NonEmptyString
    primary_affiliation: NonEmptyString
    institutional_email: EmailStr
    position_title: NonEmptyString


class CollaboratorSubmitSchema(_SubmitSchema):
    first_name: NonEmptyString
    last_name: NonEmptyString
    institutional_email: EmailStr
    position_title: NonEmptyString


class ProjectSubmitSchema(_SubmitSchema):
    title: NonEmptyString
    background: Concise200Words
    aims: Concise200Words
    methodology: Concise200Words
    summary: Concise250Words


# ============================================================================
# Validators
# ============================================================================

def _check_section(
    schema: Type[BaseModel],
    section: str,
    data: BaseModel,
    prefix: str = ""
) -> List[ValidationIssue]:
    try:
        schema.model_validate(data.model_dump())
    except PydanticValidationError as e:
        return [
            ValidationIssue(
                section=section,
                field=prefix + ".".join(str(part) for part in err["loc"]),
                message=err["msg"],
            )
            for err in e.errors()
        ]
    return []


def _check_agreements(agreements: List[str]) -> List[ValidationIssue]:
    issues = []
    unknown = sorted(set(agreements) - set(AGREEMENT_KEYS))
    if unknown:
        issues.append(ValidationIssue(
            section="agreements", field="agreements",
            message=f"unknown agreement keys: {', '.join(unknown)}"
        ))
    if len(agreements) != len(set(agreements)):
        issues.append(ValidationIssue(
            section="agreements", field="agreements", message="duplicate agreement keys"
        ))
    missing = [key for key in AGREEMENT_KEYS if key not in agreements]
    if missing:
        issues.append(ValidationIssue(
            section="agreements", field="agreements",
            message=f"all {len(AGREEMENT_KEYS)} agreements must be accepted; missing: {', '.join(missing)}"
        ))
    return issues


def validate_application_content(content: ApplicationContent) -> ValidationOutcome:
    """
    Default submit validator

    Args:
        content: Current application content

    Returns:
        ValidationOutcome listing every problem found (not just the first)
    """
    issues: List[ValidationIssue] = []
    issues += _check_section(ApplicantSubmitSchema, "applicant", content.applicant)
    issues += _check_section(InstitutionalRepSubmitSchema, "institutional_rep", content.institutional_rep)
    for index, collaborator in enumerate(content.collaborators):
        issues += _check_section(
            CollaboratorSubmitSchema, "collaborators", collaborator, prefix=f"{index}."
        )
    issues += _check_section(ProjectSubmitSchema, "project", content.project)

    if not [study for study in content.requested_studies if study and study.strip()]:
        issues.append(ValidationIssue(
            section="requested_studies", field="requested_studies",
            message="at least one study must be requested"
        ))

    issues += _check_agreements(content.agreements)

    return ValidationOutcome(valid=not issues, errors=issues)
