"""Server-side rules for paper applications entered by an administrator.

The checks reuse ``app.forms.rules`` so the API rejects exactly what the
form would have blocked.
"""

import logging
import uuid
from decimal import Decimal
from typing import Any

from sqlmodel import Session, col, select

from app.core.db import FPL_MODIFIER_POLICY_KEY, fpl_policy_key
from app.forms.rules import (
    MAX_HOUSEHOLD_SIZE,
    ProofType,
    calculate_threshold,
    proof_error,
    proof_state,
)
from app.models import (
    ApplicantInfo,
    ApplicantType,
    ApplicationAuditEvent,
    DISABILITY_FIELDS,
    ApplicationStatus,
    FplThresholdsPublic,
    GuardianRelationship,
    IncomeRejectionCreate,
    PaperApplication,
    PaperApplicationCreate,
    Policy,
    ProofAction,
    ProofBlob,
    ProofReview,
    ProofStatus,
    ProofSubmission,
    User,
    UserRole,
)
from app.services.blobs import find_blob

logger = logging.getLogger(__name__)


class PaperApplicationError(ValueError):
    """A submission the form rules do not allow."""


def add_audit_event(
    *,
    session: Session,
    application_id: uuid.UUID,
    action: str,
    reason: str | None,
    actor_user_id: uuid.UUID | None,
    metadata: dict[str, Any] | None = None,
) -> None:
    audit_event = ApplicationAuditEvent(
        application_id=application_id,
        action=action,
        reason=reason,
        actor_user_id=actor_user_id,
        event_metadata=metadata or {},
    )
    session.add(audit_event)


# ---------------------------------------------------------------------------
# FPL policy
# ---------------------------------------------------------------------------


def load_fpl_policy(session: Session) -> tuple[dict[int, Decimal], Decimal | None]:
    keys = [fpl_policy_key(size) for size in range(1, MAX_HOUSEHOLD_SIZE + 1)]
    policies = {
        policy.key: policy.value
        for policy in session.exec(
            select(Policy).where(col(Policy.key).in_([*keys, FPL_MODIFIER_POLICY_KEY]))
        ).all()
    }
    thresholds = {
        size: Decimal(policies[fpl_policy_key(size)])
        for size in range(1, MAX_HOUSEHOLD_SIZE + 1)
        if policies.get(fpl_policy_key(size))
    }
    modifier = policies.get(FPL_MODIFIER_POLICY_KEY)
    return thresholds, Decimal(modifier) if modifier else None


def fpl_thresholds_public(session: Session) -> FplThresholdsPublic:
    thresholds, modifier = load_fpl_policy(session)
    return FplThresholdsPublic(
        thresholds={str(size): int(amount) for size, amount in sorted(thresholds.items())},
        modifier=int(modifier) if modifier is not None else 0,
    )


def income_threshold(session: Session, household_size: int) -> Decimal:
    thresholds, modifier = load_fpl_policy(session)
    return calculate_threshold(household_size, thresholds, modifier)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def proof_submission(
    application_in: PaperApplicationCreate, proof_type: ProofType
) -> ProofSubmission:
    submission: ProofSubmission = getattr(application_in, proof_type.field_name)
    return submission


def proof_errors(application_in: PaperApplicationCreate) -> list[str]:
    errors = []
    for proof_type in ProofType:
        submission = proof_submission(application_in, proof_type)
        state = proof_state(
            action=submission.action.value if submission.action else None,
            has_file=bool(submission.signed_id),
            has_reason=bool((submission.rejection_reason or "").strip()),
        )
        error = proof_error(proof_type, state)
        if error:
            errors.append(error)
    return errors


def resolve_proof_blobs(
    session: Session, application_in: PaperApplicationCreate
) -> dict[ProofType, ProofBlob | None]:
    blobs: dict[ProofType, ProofBlob | None] = {}
    for proof_type in ProofType:
        submission = proof_submission(application_in, proof_type)
        if submission.action is not ProofAction.ACCEPT:
            blobs[proof_type] = None
            continue
        blob = find_blob(session=session, signed_id=submission.signed_id)
        if blob is None:
            raise PaperApplicationError(
                f"The uploaded {proof_type.label} document is invalid or has expired"
            )
        blobs[proof_type] = blob
    return blobs


def _email_taken(session: Session, email: str | None) -> bool:
    if not email:
        return False
    return session.exec(select(User).where(User.email == email)).first() is not None


def ensure_disability_selection(info: ApplicantInfo) -> ApplicantInfo:
    """Applicants need at least one disability on file; hearing is assumed otherwise."""
    if any(getattr(info, name) for name in DISABILITY_FIELDS):
        return info
    logger.info("No disability selected for applicant; defaulting to hearing")
    return info.model_copy(update={"hearing_disability": True})


def _new_constituent(info: ApplicantInfo, **overrides: Any) -> User:
    data = ensure_disability_selection(info).model_dump()
    data.update(overrides)
    full_name = " ".join(part for part in (data["first_name"], data["last_name"]) if part)
    return User(
        **data,
        full_name=full_name,
        role=UserRole.CONSTITUENT.value,
        is_active=True,
        is_superuser=False,
    )


def build_applicant(
    session: Session,
    *,
    applicant_type: ApplicantType,
    guardian_id: uuid.UUID | None,
    constituent: ApplicantInfo | None,
    dependent: ApplicantInfo | None,
    relationship_type: str | None,
    use_guardian_email: bool = False,
    use_guardian_phone: bool = False,
    use_guardian_address: bool = False,
) -> tuple[User, User | None]:
    """Validate the applicant section and return unsaved (applicant, guardian)."""
    if applicant_type is ApplicantType.SELF:
        if constituent is None:
            raise PaperApplicationError("Constituent information is required")
        if _email_taken(session, constituent.email):
            raise PaperApplicationError("A user with this email already exists")
        return _new_constituent(constituent), None

    if guardian_id is None:
        raise PaperApplicationError("A guardian must be selected for a dependent application")
    guardian = session.get(User, guardian_id)
    if guardian is None:
        raise PaperApplicationError("Guardian not found")
    if dependent is None:
        raise PaperApplicationError("Dependent information is required")
    if not (relationship_type or "").strip():
        raise PaperApplicationError("Relationship to the guardian is required")

    overrides: dict[str, Any] = {
        "uses_guardian_email": use_guardian_email,
        "uses_guardian_phone": use_guardian_phone,
    }
    if use_guardian_email:
        overrides["email"] = None
    elif not dependent.email:
        raise PaperApplicationError("Dependent email is required unless the guardian's email is used")
    elif _email_taken(session, dependent.email):
        raise PaperApplicationError("A user with this email already exists")

    if use_guardian_phone:
        overrides["phone"] = guardian.phone
    if use_guardian_address:
        overrides.update(
            physical_address_1=guardian.physical_address_1,
            physical_address_2=guardian.physical_address_2,
            city=guardian.city,
            state=guardian.state,
            zip_code=guardian.zip_code,
        )
    return _new_constituent(dependent, **overrides), guardian


def _save_applicant(
    session: Session, applicant: User, guardian: User | None, relationship_type: str | None
) -> None:
    session.add(applicant)
    session.flush()
    if guardian is not None:
        session.add(
            GuardianRelationship(
                guardian_id=guardian.id,
                dependent_id=applicant.id,
                relationship_type=(relationship_type or "").strip(),
            )
        )


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def create_paper_application(
    *, session: Session, application_in: PaperApplicationCreate, actor: User
) -> PaperApplication:
    errors = proof_errors(application_in)
    if errors:
        raise PaperApplicationError("; ".join(errors))

    threshold = income_threshold(session, application_in.household_size)
    if application_in.annual_income > threshold:
        raise PaperApplicationError(
            "Income exceeds the maximum threshold for the household size"
        )

    blobs = resolve_proof_blobs(session, application_in)
    applicant, guardian = build_applicant(
        session,
        applicant_type=application_in.applicant_type,
        guardian_id=application_in.guardian_id,
        constituent=application_in.constituent,
        dependent=application_in.dependent,
        relationship_type=application_in.relationship_type,
        use_guardian_email=application_in.use_guardian_email,
        use_guardian_phone=application_in.use_guardian_phone,
        use_guardian_address=application_in.use_guardian_address,
    )
    _save_applicant(session, applicant, guardian, application_in.relationship_type)

    income = proof_submission(application_in, ProofType.INCOME)
    residency = proof_submission(application_in, ProofType.RESIDENCY)
    any_rejected = ProofAction.REJECT in {income.action, residency.action}

    application = PaperApplication(
        status=(
            ApplicationStatus.NEEDS_INFORMATION.value
            if any_rejected
            else ApplicationStatus.IN_PROGRESS.value
        ),
        household_size=application_in.household_size,
        annual_income=application_in.annual_income,
        income_threshold=threshold,
        income_proof_status=_proof_status(income),
        income_proof_rejection_reason=_rejection_reason(income),
        income_proof_blob_id=_blob_id(blobs[ProofType.INCOME]),
        residency_proof_status=_proof_status(residency),
        residency_proof_rejection_reason=_rejection_reason(residency),
        residency_proof_blob_id=_blob_id(blobs[ProofType.RESIDENCY]),
        notes=application_in.notes,
        applicant_id=applicant.id,
        managing_guardian_id=guardian.id if guardian else None,
        created_by_id=actor.id,
    )
    session.add(application)
    session.flush()

    add_audit_event(
        session=session,
        application_id=application.id,
        action="paper_application_created",
        reason="Paper application entered by administrator",
        actor_user_id=actor.id,
        metadata={
            "applicant_type": application_in.applicant_type.value,
            "household_size": application.household_size,
            "annual_income": str(application.annual_income),
            "income_threshold": str(threshold),
        },
    )
    for proof_type, submission in ((ProofType.INCOME, income), (ProofType.RESIDENCY, residency)):
        add_audit_event(
            session=session,
            application_id=application.id,
            action=f"{proof_type.field_name}_{_proof_status(submission)}",
            reason=submission.rejection_notes if submission.action is ProofAction.REJECT else None,
            actor_user_id=actor.id,
            metadata={
                "rejection_reason": _rejection_reason(submission),
                "filename": blobs[proof_type].filename if blobs[proof_type] else None,
            },
        )
        if submission.action is not None:
            record_proof_review(
                session=session,
                application_id=application.id,
                proof_type=proof_type,
                submission=submission,
                admin_id=actor.id,
            )
    session.commit()
    session.refresh(application)
    logger.info(
        "Paper application %s created for applicant %s (%s)",
        application.id,
        applicant.id,
        application.status,
    )
    return application


def record_proof_review(
    *,
    session: Session,
    application_id: uuid.UUID,
    proof_type: ProofType,
    submission: ProofSubmission,
    admin_id: uuid.UUID | None,
) -> ProofReview:
    notes = None
    if submission.action is ProofAction.REJECT:
        notes = (submission.rejection_notes or "").strip() or None
    review = ProofReview(
        application_id=application_id,
        admin_id=admin_id,
        proof_type=proof_type.value,
        status=_proof_status(submission),
        rejection_reason=_rejection_reason(submission),
        notes=notes,
        submission_method="paper",
    )
    session.add(review)
    return review


def reject_for_income(
    *, session: Session, rejection_in: IncomeRejectionCreate, actor: User
) -> PaperApplication:
    threshold = income_threshold(session, rejection_in.household_size)
    if rejection_in.annual_income <= threshold:
        raise PaperApplicationError(
            "Income does not exceed the threshold; submit the application instead"
        )

    applicant, guardian = build_applicant(
        session,
        applicant_type=rejection_in.applicant_type,
        guardian_id=rejection_in.guardian_id,
        constituent=rejection_in.constituent,
        dependent=rejection_in.dependent,
        relationship_type=rejection_in.relationship_type,
        use_guardian_email=rejection_in.use_guardian_email,
        use_guardian_phone=rejection_in.use_guardian_phone,
        use_guardian_address=rejection_in.use_guardian_address,
    )
    _save_applicant(session, applicant, guardian, rejection_in.relationship_type)

    application = PaperApplication(
        status=ApplicationStatus.REJECTED.value,
        household_size=rejection_in.household_size,
        annual_income=rejection_in.annual_income,
        income_threshold=threshold,
        income_proof_status=ProofStatus.REJECTED.value,
        income_proof_rejection_reason="exceeds_threshold",
        applicant_id=applicant.id,
        managing_guardian_id=guardian.id if guardian else None,
        created_by_id=actor.id,
    )
    session.add(application)
    session.flush()
    add_audit_event(
        session=session,
        application_id=application.id,
        action="rejected_for_income",
        reason="Income exceeds the maximum threshold for the household size",
        actor_user_id=actor.id,
        metadata={
            "household_size": application.household_size,
            "annual_income": str(application.annual_income),
            "income_threshold": str(threshold),
        },
    )
    session.commit()
    session.refresh(application)
    logger.info("Paper application %s rejected for income", application.id)
    return application


def _proof_status(submission: ProofSubmission) -> str:
    if submission.action is ProofAction.ACCEPT:
        return ProofStatus.APPROVED.value
    if submission.action is ProofAction.REJECT:
        return ProofStatus.REJECTED.value
    return ProofStatus.NOT_REVIEWED.value


def _rejection_reason(submission: ProofSubmission) -> str | None:
    if submission.action is not ProofAction.REJECT:
        return None
    return (submission.rejection_reason or "").strip() or None


def _blob_id(blob: ProofBlob | None) -> uuid.UUID | None:
    return blob.id if blob is not None else None
