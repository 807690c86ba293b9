from collections.abc import Generator
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient
from sqlmodel import Session, delete

from app.core.config import settings
from app.core.db import engine, init_db
from app.forms.elements import FormDocument
from app.forms.events import EventBus
from app.forms.flash import FlashMessages
from app.forms.paper_application import build_paper_application_document
from app.main import app
from app.models import (
    ApplicationAuditEvent,
    GuardianRelationship,
    PaperApplication,
    ProofBlob,
    ProofReview,
    User,
)
from tests.utils.scheduler import ManualScheduler
from tests.utils.user import authentication_token_from_email
from tests.utils.utils import get_superuser_token_headers

BACKEND_ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture(scope="session")
def db() -> Generator[Session, None, None]:
    # Ensure schema is up to date before any test touches the DB.
    alembic_cfg = Config(str(BACKEND_ROOT / "alembic.ini"))
    command.upgrade(alembic_cfg, "head")

    with Session(engine) as session:
        init_db(session)
        yield session
        for model in (
            ApplicationAuditEvent,
            ProofReview,
            PaperApplication,
            GuardianRelationship,
            ProofBlob,
            User,
        ):
            session.execute(delete(model))
        session.commit()


@pytest.fixture(scope="module")
def client(db: Session) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c


@pytest.fixture(scope="module")
def superuser_token_headers(client: TestClient) -> dict[str, str]:
    return get_superuser_token_headers(client)


@pytest.fixture(scope="module")
def normal_user_token_headers(client: TestClient, db: Session) -> dict[str, str]:
    return authentication_token_from_email(
        client=client, email=settings.EMAIL_TEST_USER, db=db
    )


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def bus() -> EventBus:
    return EventBus()


@pytest.fixture()
def flash(scheduler: ManualScheduler) -> FlashMessages:
    return FlashMessages(scheduler)


@pytest.fixture()
def document() -> FormDocument:
    return build_paper_application_document()
