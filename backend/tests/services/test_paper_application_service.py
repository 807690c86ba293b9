"""Unit tests for the paper application service against the test database."""

from decimal import Decimal

import pytest
from sqlmodel import Session

from app.core.config import settings
from app.core.db import FPL_MODIFIER_POLICY_KEY, fpl_policy_key
from app.models import ApplicantInfo, ApplicantType, Policy
from app.services.blobs import BlobError, find_blob, signed_id_for, store_blob
from app.services.paper_application import (
    PaperApplicationError,
    build_applicant,
    ensure_disability_selection,
    fpl_thresholds_public,
    income_threshold,
    load_fpl_policy,
)
from tests.utils.user import create_constituent
from tests.utils.utils import random_email


class TestFplPolicy:
    def test_seeded_defaults(self, db: Session) -> None:
        thresholds, modifier = load_fpl_policy(db)
        assert thresholds[1] == Decimal(15650)
        assert thresholds[8] == Decimal(54150)
        assert modifier == Decimal(400)

    def test_public_payload_uses_string_keys(self, db: Session) -> None:
        public = fpl_thresholds_public(db)
        assert public.thresholds["4"] == 32150
        assert public.modifier == 400

    def test_household_above_eight_uses_eight(self, db: Session) -> None:
        assert income_threshold(db, 12) == income_threshold(db, 8)

    def test_modified_policy_is_used(self, db: Session) -> None:
        policy = db.get(Policy, fpl_policy_key(1))
        modifier = db.get(Policy, FPL_MODIFIER_POLICY_KEY)
        assert policy is not None and modifier is not None
        original = (policy.value, modifier.value)
        try:
            policy.value = 2000
            modifier.value = 200
            db.add(policy)
            db.add(modifier)
            db.commit()
            assert income_threshold(db, 1) == Decimal(4000)
        finally:
            policy.value, modifier.value = original
            db.add(policy)
            db.add(modifier)
            db.commit()


class TestBuildApplicant:
    def test_self_requires_constituent(self, db: Session) -> None:
        with pytest.raises(PaperApplicationError, match="Constituent information"):
            build_applicant(
                db,
                applicant_type=ApplicantType.SELF,
                guardian_id=None,
                constituent=None,
                dependent=None,
                relationship_type=None,
            )

    def test_self_applicant(self, db: Session) -> None:
        info = ApplicantInfo(first_name="Avery", last_name="Applicant", email=random_email())
        applicant, guardian = build_applicant(
            db,
            applicant_type=ApplicantType.SELF,
            guardian_id=None,
            constituent=info,
            dependent=None,
            relationship_type=None,
        )
        assert guardian is None
        assert applicant.full_name == "Avery Applicant"
        assert applicant.role == "constituent"
        assert applicant.is_superuser is False

    def test_dependent_copies_guardian_contact(self, db: Session) -> None:
        guardian_user = create_constituent(
            db, phone="410-555-0100", city="Baltimore", state="MD", zip_code="21201"
        )
        applicant, guardian = build_applicant(
            db,
            applicant_type=ApplicantType.DEPENDENT,
            guardian_id=guardian_user.id,
            constituent=None,
            dependent=ApplicantInfo(
                first_name="Riley", last_name="Dependent", email=random_email()
            ),
            relationship_type="Parent",
            use_guardian_email=True,
            use_guardian_phone=True,
            use_guardian_address=True,
        )
        assert guardian is not None and guardian.id == guardian_user.id
        assert applicant.email is None
        assert applicant.uses_guardian_email is True
        assert applicant.phone == "410-555-0100"
        assert applicant.zip_code == "21201"

    def test_dependent_requires_relationship(self, db: Session) -> None:
        guardian_user = create_constituent(db)
        with pytest.raises(PaperApplicationError, match="Relationship"):
            build_applicant(
                db,
                applicant_type=ApplicantType.DEPENDENT,
                guardian_id=guardian_user.id,
                constituent=None,
                dependent=ApplicantInfo(first_name="Riley", last_name="Dependent"),
                relationship_type="  ",
                use_guardian_email=True,
            )


class TestDisabilitySelection:
    def test_defaults_to_hearing(self) -> None:
        info = ApplicantInfo(first_name="Avery", last_name="Applicant")

        selected = ensure_disability_selection(info)

        assert selected.hearing_disability is True
        assert info.hearing_disability is False

    def test_existing_selection_kept(self) -> None:
        info = ApplicantInfo(first_name="Avery", last_name="Applicant", speech_disability=True)

        selected = ensure_disability_selection(info)

        assert selected is info
        assert selected.hearing_disability is False

    def test_applied_when_building_applicant(self, db: Session) -> None:
        applicant, _ = build_applicant(
            db,
            applicant_type=ApplicantType.SELF,
            guardian_id=None,
            constituent=ApplicantInfo(
                first_name="Avery", last_name="Applicant", email=random_email()
            ),
            dependent=None,
            relationship_type=None,
        )
        assert applicant.hearing_disability is True


class TestBlobs:
    def test_store_and_find(self, db: Session) -> None:
        blob = store_blob(
            session=db,
            filename="scan.pdf",
            content_type="application/pdf",
            content=b"%PDF-1.4",
        )
        assert blob.byte_size == 8
        assert len(blob.checksum) == 64
        found = find_blob(session=db, signed_id=signed_id_for(blob))
        assert found is not None and found.id == blob.id

    def test_oversized_upload(self, db: Session, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 4)
        with pytest.raises(BlobError, match="too large"):
            store_blob(
                session=db,
                filename="scan.pdf",
                content_type="application/pdf",
                content=b"%PDF-1.4",
            )

    def test_missing_signed_id(self, db: Session) -> None:
        assert find_blob(session=db, signed_id=None) is None
        assert find_blob(session=db, signed_id="bogus") is None
