import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import EmailStr
from sqlalchemy import JSON, DateTime
from sqlmodel import Field, Relationship, SQLModel


def get_datetime_utc() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, Enum):
    ADMIN = "admin"
    CONSTITUENT = "constituent"


# Shared properties
class UserBase(SQLModel):
    email: EmailStr | None = Field(default=None, unique=True, index=True, max_length=255)
    is_active: bool = True
    is_superuser: bool = False
    full_name: str | None = Field(default=None, max_length=255)


# Database model, database table inferred from class name
class User(UserBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    hashed_password: str | None = Field(default=None)
    role: str = Field(default=UserRole.CONSTITUENT.value, max_length=32)
    first_name: str | None = Field(default=None, max_length=128)
    last_name: str | None = Field(default=None, max_length=128)
    phone: str | None = Field(default=None, max_length=32)
    physical_address_1: str | None = Field(default=None, max_length=255)
    physical_address_2: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=128)
    state: str | None = Field(default=None, max_length=32)
    zip_code: str | None = Field(default=None, max_length=16)
    uses_guardian_email: bool = False
    uses_guardian_phone: bool = False
    hearing_disability: bool = False
    vision_disability: bool = False
    speech_disability: bool = False
    mobility_disability: bool = False
    cognition_disability: bool = False
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class DisabilityFlags(SQLModel):
    hearing_disability: bool = False
    vision_disability: bool = False
    speech_disability: bool = False
    mobility_disability: bool = False
    cognition_disability: bool = False


DISABILITY_FIELDS = tuple(DisabilityFlags.model_fields)


# Properties to return via API, id is always required
class UserPublic(UserBase, DisabilityFlags):
    id: uuid.UUID
    role: UserRole
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    physical_address_1: str | None = None
    physical_address_2: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    created_at: datetime | None = None


class ApplicantInfo(DisabilityFlags):
    first_name: str = Field(min_length=1, max_length=128)
    last_name: str = Field(min_length=1, max_length=128)
    email: EmailStr | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=32)
    physical_address_1: str | None = Field(default=None, max_length=255)
    physical_address_2: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=128)
    state: str | None = Field(default=None, max_length=32)
    zip_code: str | None = Field(default=None, max_length=16)


class GuardianCreate(ApplicantInfo):
    email: EmailStr = Field(max_length=255)


class GuardianRelationship(SQLModel, table=True):
    __tablename__ = "guardian_relationship"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    relationship_type: str = Field(max_length=64)
    guardian_id: uuid.UUID = Field(
        foreign_key="user.id", nullable=False, ondelete="CASCADE"
    )
    dependent_id: uuid.UUID = Field(
        foreign_key="user.id", nullable=False, ondelete="CASCADE"
    )
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class Policy(SQLModel, table=True):
    key: str = Field(primary_key=True, max_length=64)
    value: int
    updated_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class FplThresholdsPublic(SQLModel):
    thresholds: dict[str, int]
    modifier: int


class ProofBlob(SQLModel, table=True):
    __tablename__ = "proof_blob"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    filename: str = Field(max_length=255)
    content_type: str = Field(max_length=100)
    byte_size: int
    checksum: str = Field(max_length=64)
    storage_path: str = Field(max_length=1024)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )


class DirectUploadPublic(SQLModel):
    signed_id: str
    filename: str
    content_type: str
    byte_size: int


class ApplicantType(str, Enum):
    SELF = "self"
    DEPENDENT = "dependent"


class ApplicationStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    NEEDS_INFORMATION = "needs_information"
    REJECTED = "rejected"


class ProofStatus(str, Enum):
    NOT_REVIEWED = "not_reviewed"
    APPROVED = "approved"
    REJECTED = "rejected"


class ProofAction(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"


class ProofSubmission(SQLModel):
    action: ProofAction | None = None
    signed_id: str | None = Field(default=None, max_length=2048)
    rejection_reason: str | None = Field(default=None, max_length=64)
    rejection_notes: str | None = Field(default=None, max_length=2000)


class PaperApplicationCreate(SQLModel):
    applicant_type: ApplicantType = ApplicantType.SELF
    guardian_id: uuid.UUID | None = None
    constituent: ApplicantInfo | None = None
    dependent: ApplicantInfo | None = None
    relationship_type: str | None = Field(default=None, max_length=64)
    use_guardian_email: bool = False
    use_guardian_phone: bool = False
    use_guardian_address: bool = False
    household_size: int = Field(ge=1, le=20)
    annual_income: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    income_proof: ProofSubmission = Field(default_factory=ProofSubmission)
    residency_proof: ProofSubmission = Field(default_factory=ProofSubmission)
    notes: str | None = Field(default=None, max_length=2000)


class IncomeRejectionCreate(SQLModel):
    applicant_type: ApplicantType = ApplicantType.SELF
    guardian_id: uuid.UUID | None = None
    constituent: ApplicantInfo | None = None
    dependent: ApplicantInfo | None = None
    relationship_type: str | None = Field(default=None, max_length=64)
    use_guardian_email: bool = False
    use_guardian_phone: bool = False
    use_guardian_address: bool = False
    household_size: int = Field(ge=1, le=20)
    annual_income: Decimal = Field(ge=0, max_digits=12, decimal_places=2)


class PaperApplication(SQLModel, table=True):
    __tablename__ = "paper_application"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    status: str = Field(default=ApplicationStatus.IN_PROGRESS.value, max_length=32)
    submission_method: str = Field(default="paper", max_length=32)
    household_size: int
    annual_income: Decimal = Field(max_digits=12, decimal_places=2)
    income_threshold: Decimal | None = Field(
        default=None, max_digits=12, decimal_places=2
    )
    income_proof_status: str = Field(
        default=ProofStatus.NOT_REVIEWED.value, max_length=32
    )
    income_proof_rejection_reason: str | None = Field(default=None, max_length=64)
    income_proof_blob_id: uuid.UUID | None = Field(
        default=None, foreign_key="proof_blob.id", ondelete="SET NULL"
    )
    residency_proof_status: str = Field(
        default=ProofStatus.NOT_REVIEWED.value, max_length=32
    )
    residency_proof_rejection_reason: str | None = Field(default=None, max_length=64)
    residency_proof_blob_id: uuid.UUID | None = Field(
        default=None, foreign_key="proof_blob.id", ondelete="SET NULL"
    )
    notes: str | None = Field(default=None, max_length=2000)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    updated_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    applicant_id: uuid.UUID = Field(
        foreign_key="user.id", nullable=False, ondelete="CASCADE"
    )
    managing_guardian_id: uuid.UUID | None = Field(
        default=None, foreign_key="user.id", ondelete="SET NULL"
    )
    created_by_id: uuid.UUID | None = Field(
        default=None, foreign_key="user.id", ondelete="SET NULL"
    )

    audit_events: list["ApplicationAuditEvent"] = Relationship(
        back_populates="application", cascade_delete=True
    )
    proof_reviews: list["ProofReview"] = Relationship(
        back_populates="application", cascade_delete=True
    )


class PaperApplicationPublic(SQLModel):
    id: uuid.UUID
    status: ApplicationStatus
    submission_method: str
    household_size: int
    annual_income: Decimal
    income_threshold: Decimal | None = None
    income_proof_status: ProofStatus
    income_proof_rejection_reason: str | None = None
    residency_proof_status: ProofStatus
    residency_proof_rejection_reason: str | None = None
    notes: str | None = None
    applicant_id: uuid.UUID
    managing_guardian_id: uuid.UUID | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ApplicationAuditEvent(SQLModel, table=True):
    __tablename__ = "application_audit_event"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    action: str = Field(max_length=64)
    reason: str | None = Field(default=None, max_length=1000)
    event_metadata: dict[str, Any] = Field(default_factory=dict, sa_type=JSON)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    actor_user_id: uuid.UUID | None = Field(
        default=None, foreign_key="user.id", ondelete="SET NULL"
    )
    application_id: uuid.UUID = Field(
        foreign_key="paper_application.id", nullable=False, ondelete="CASCADE"
    )

    application: PaperApplication | None = Relationship(back_populates="audit_events")


class ApplicationAuditEventPublic(SQLModel):
    id: uuid.UUID
    action: str
    reason: str | None = None
    event_metadata: dict[str, Any]
    actor_user_id: uuid.UUID | None = None
    created_at: datetime | None = None


class ApplicationAuditTrailPublic(SQLModel):
    application_id: uuid.UUID
    events: list[ApplicationAuditEventPublic]


# One row per accept/reject decision an administrator records on a proof
class ProofReview(SQLModel, table=True):
    __tablename__ = "proof_review"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    proof_type: str = Field(max_length=32)
    status: str = Field(max_length=32)
    rejection_reason: str | None = Field(default=None, max_length=64)
    notes: str | None = Field(default=None, max_length=2000)
    submission_method: str = Field(default="paper", max_length=32)
    reviewed_at: datetime = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    application_id: uuid.UUID = Field(
        foreign_key="paper_application.id", nullable=False, ondelete="CASCADE", index=True
    )
    admin_id: uuid.UUID | None = Field(
        default=None, foreign_key="user.id", ondelete="SET NULL"
    )

    application: PaperApplication | None = Relationship(back_populates="proof_reviews")


class ProofReviewPublic(SQLModel):
    id: uuid.UUID
    proof_type: str
    status: ProofStatus
    rejection_reason: str | None = None
    notes: str | None = None
    submission_method: str
    reviewed_at: datetime
    admin_id: uuid.UUID | None = None


class ProofReviewsPublic(SQLModel):
    application_id: uuid.UUID
    reviews: list[ProofReviewPublic]


# Generic message
class Message(SQLModel):
    message: str


# JSON payload containing access token
class Token(SQLModel):
    access_token: str
    token_type: str = "bearer"


# Contents of JWT token
class TokenPayload(SQLModel):
    sub: str | None = None
