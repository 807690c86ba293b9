"""Unit tests for Pydantic/SQLModel schema validation."""

import uuid
from decimal import Decimal

import pytest
from pydantic import ValidationError

from app.models import (
    DISABILITY_FIELDS,
    ApplicantInfo,
    ApplicantType,
    ApplicationStatus,
    GuardianCreate,
    IncomeRejectionCreate,
    PaperApplicationCreate,
    ProofAction,
    ProofStatus,
    ProofSubmission,
    UserRole,
)


def _applicant(**overrides: object) -> dict[str, object]:
    data: dict[str, object] = {"first_name": "Avery", "last_name": "Applicant"}
    data.update(overrides)
    return data


class TestApplicantInfo:
    def test_minimal(self) -> None:
        info = ApplicantInfo.model_validate(_applicant())
        assert info.email is None
        assert info.state is None

    def test_invalid_email(self) -> None:
        with pytest.raises(ValidationError):
            ApplicantInfo.model_validate(_applicant(email="not-an-email"))

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ApplicantInfo.model_validate(_applicant(first_name=""))

    def test_disabilities_default_off(self) -> None:
        info = ApplicantInfo.model_validate(_applicant(cognition_disability=True))
        assert info.cognition_disability is True
        assert not any(
            getattr(info, field) for field in DISABILITY_FIELDS if field != "cognition_disability"
        )

    def test_disability_fields(self) -> None:
        assert DISABILITY_FIELDS == (
            "hearing_disability",
            "vision_disability",
            "speech_disability",
            "mobility_disability",
            "cognition_disability",
        )


class TestGuardianCreate:
    def test_email_required(self) -> None:
        with pytest.raises(ValidationError):
            GuardianCreate.model_validate(_applicant())

    def test_valid_guardian(self) -> None:
        guardian = GuardianCreate.model_validate(_applicant(email="jordan@example.com"))
        assert guardian.email == "jordan@example.com"


class TestProofSubmission:
    def test_defaults_to_no_decision(self) -> None:
        submission = ProofSubmission()
        assert submission.action is None
        assert submission.signed_id is None

    def test_action_parsed_from_string(self) -> None:
        submission = ProofSubmission.model_validate({"action": "reject"})
        assert submission.action is ProofAction.REJECT

    def test_unknown_action_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ProofSubmission.model_validate({"action": "maybe"})

    def test_notes_max_length(self) -> None:
        with pytest.raises(ValidationError):
            ProofSubmission(rejection_notes="x" * 2001)


class TestPaperApplicationCreate:
    def test_self_defaults(self) -> None:
        application = PaperApplicationCreate.model_validate(
            {
                "constituent": _applicant(),
                "household_size": 3,
                "annual_income": "32000.50",
            }
        )
        assert application.applicant_type is ApplicantType.SELF
        assert application.annual_income == Decimal("32000.50")
        assert application.use_guardian_email is False
        assert application.income_proof.action is None

    def test_dependent_payload(self) -> None:
        guardian_id = uuid.uuid4()
        application = PaperApplicationCreate.model_validate(
            {
                "applicant_type": "dependent",
                "guardian_id": str(guardian_id),
                "dependent": _applicant(),
                "relationship_type": "Parent",
                "use_guardian_email": True,
                "household_size": 2,
                "annual_income": 1000,
            }
        )
        assert application.guardian_id == guardian_id
        assert application.dependent is not None

    @pytest.mark.parametrize("household_size", [0, 21])
    def test_household_size_bounds(self, household_size: int) -> None:
        with pytest.raises(ValidationError):
            PaperApplicationCreate(household_size=household_size, annual_income=Decimal(1))

    def test_negative_income_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PaperApplicationCreate(household_size=1, annual_income=Decimal(-1))

    def test_income_precision(self) -> None:
        with pytest.raises(ValidationError):
            PaperApplicationCreate(household_size=1, annual_income=Decimal("1.005"))


class TestIncomeRejectionCreate:
    def test_no_proofs_needed(self) -> None:
        rejection = IncomeRejectionCreate(household_size=1, annual_income=Decimal(90000))
        assert not hasattr(rejection, "income_proof")


class TestEnums:
    def test_application_statuses(self) -> None:
        assert {status.value for status in ApplicationStatus} == {
            "in_progress",
            "needs_information",
            "rejected",
        }

    def test_proof_statuses(self) -> None:
        assert ProofStatus.NOT_REVIEWED.value == "not_reviewed"
        assert ProofStatus("approved") is ProofStatus.APPROVED

    def test_user_roles(self) -> None:
        assert UserRole("admin") is UserRole.ADMIN
        assert UserRole.CONSTITUENT.value == "constituent"
