import logging
from pathlib import Path

from sqlmodel import Session, create_engine, select

from app.core.config import settings
from app.core.security import get_password_hash
from app.forms.rules import DEFAULT_FPL_MODIFIER, DEFAULT_FPL_THRESHOLDS
from app.models import Policy, User, UserRole

logger = logging.getLogger(__name__)

connect_args: dict[str, bool] = {}
if settings.SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
    Path(settings.SQLITE_PATH).parent.mkdir(parents=True, exist_ok=True)
    connect_args = {"check_same_thread": False}
engine = create_engine(str(settings.SQLALCHEMY_DATABASE_URI), connect_args=connect_args)


# make sure all SQLModel models are imported (app.models) before initializing DB
# otherwise, SQLModel might fail to initialize relationships properly
# for more details: https://github.com/fastapi/full-stack-fastapi-template/issues/28


def fpl_policy_key(household_size: int) -> str:
    return f"fpl_{household_size}_person"


FPL_MODIFIER_POLICY_KEY = "fpl_modifier_percentage"


def init_db(session: Session) -> None:
    # Tables should be created with Alembic migrations
    user = session.exec(
        select(User).where(User.email == settings.FIRST_SUPERUSER)
    ).first()
    if not user:
        user = User(
            email=settings.FIRST_SUPERUSER,
            hashed_password=get_password_hash(settings.FIRST_SUPERUSER_PASSWORD),
            is_superuser=True,
            role=UserRole.ADMIN.value,
            full_name="Intake Administrator",
        )
        session.add(user)
        logger.info("Created first superuser %s", settings.FIRST_SUPERUSER)

    defaults = {
        fpl_policy_key(size): int(amount)
        for size, amount in DEFAULT_FPL_THRESHOLDS.items()
    }
    defaults[FPL_MODIFIER_POLICY_KEY] = int(DEFAULT_FPL_MODIFIER)
    for key, value in defaults.items():
        if session.get(Policy, key) is None:
            session.add(Policy(key=key, value=value))
    session.commit()
