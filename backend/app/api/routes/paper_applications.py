import uuid
from typing import Any

from fastapi import APIRouter, HTTPException
from sqlmodel import col, select

from app.api.deps import AdminUser, SessionDep
from app.models import (
    ApplicationAuditEvent,
    ApplicationAuditTrailPublic,
    FplThresholdsPublic,
    IncomeRejectionCreate,
    PaperApplication,
    PaperApplicationCreate,
    PaperApplicationPublic,
    ProofReview,
    ProofReviewsPublic,
)
from app.services.paper_application import (
    PaperApplicationError,
    create_paper_application,
    fpl_thresholds_public,
    reject_for_income,
)

router = APIRouter(prefix="/paper-applications", tags=["paper-applications"])


def get_paper_application(
    *, session: SessionDep, application_id: uuid.UUID
) -> PaperApplication:
    application = session.get(PaperApplication, application_id)
    if not application:
        raise HTTPException(status_code=404, detail="Application not found")
    return application


@router.get("/fpl-thresholds", response_model=FplThresholdsPublic)
def read_fpl_thresholds(session: SessionDep, current_user: AdminUser) -> Any:
    return fpl_thresholds_public(session)


@router.post("/", response_model=PaperApplicationPublic)
def create_application(
    *,
    session: SessionDep,
    current_user: AdminUser,
    application_in: PaperApplicationCreate,
) -> Any:
    try:
        return create_paper_application(
            session=session, application_in=application_in, actor=current_user
        )
    except PaperApplicationError as exc:
        session.rollback()
        raise HTTPException(status_code=400, detail=str(exc))


@router.post("/reject-for-income", response_model=PaperApplicationPublic)
def reject_application_for_income(
    *,
    session: SessionDep,
    current_user: AdminUser,
    rejection_in: IncomeRejectionCreate,
) -> Any:
    try:
        return reject_for_income(
            session=session, rejection_in=rejection_in, actor=current_user
        )
    except PaperApplicationError as exc:
        session.rollback()
        raise HTTPException(status_code=400, detail=str(exc))


@router.get("/{application_id}", response_model=PaperApplicationPublic)
def read_application(
    session: SessionDep, current_user: AdminUser, application_id: uuid.UUID
) -> Any:
    return get_paper_application(session=session, application_id=application_id)


@router.get("/{application_id}/audit-trail", response_model=ApplicationAuditTrailPublic)
def read_application_audit_trail(
    session: SessionDep, current_user: AdminUser, application_id: uuid.UUID
) -> Any:
    application = get_paper_application(session=session, application_id=application_id)
    events = session.exec(
        select(ApplicationAuditEvent)
        .where(ApplicationAuditEvent.application_id == application.id)
        .order_by(col(ApplicationAuditEvent.created_at).asc())
    ).all()
    return ApplicationAuditTrailPublic(application_id=application.id, events=events)


@router.get("/{application_id}/proof-reviews", response_model=ProofReviewsPublic)
def read_application_proof_reviews(
    session: SessionDep, current_user: AdminUser, application_id: uuid.UUID
) -> Any:
    application = get_paper_application(session=session, application_id=application_id)
    reviews = session.exec(
        select(ProofReview)
        .where(ProofReview.application_id == application.id)
        .order_by(col(ProofReview.proof_type).asc())
    ).all()
    return ProofReviewsPublic(application_id=application.id, reviews=reviews)
