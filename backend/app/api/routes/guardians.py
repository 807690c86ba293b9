from pathlib import Path
from typing import Any

from fastapi import APIRouter, Form, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from sqlmodel import Session, col, or_, select

from app.api.deps import AdminUser, SessionDep
from app.models import GuardianCreate, GuardianRelationship, User, UserPublic, UserRole

router = APIRouter(prefix="/guardians", tags=["guardians"])

templates = Jinja2Templates(directory=Path(__file__).resolve().parents[2] / "templates")

SEARCH_LIMIT = 10


def search_users(*, session: Session, query: str, role: str) -> list[User]:
    pattern = f"%{query.strip()}%"
    statement = select(User).where(
        User.role == UserRole.CONSTITUENT.value,
        col(User.is_active).is_(True),
        or_(
            col(User.first_name).ilike(pattern),
            col(User.last_name).ilike(pattern),
            col(User.email).ilike(pattern),
            col(User.phone).ilike(pattern),
        ),
    )
    dependent_ids = select(GuardianRelationship.dependent_id)
    if role == "dependent":
        statement = statement.where(col(User.id).in_(dependent_ids))
    else:
        # Guardians need their own contact details; dependents cannot manage others.
        statement = statement.where(col(User.id).not_in(dependent_ids))
    statement = statement.order_by(col(User.last_name), col(User.first_name)).limit(
        SEARCH_LIMIT
    )
    return list(session.exec(statement).all())


@router.get("/search", response_class=HTMLResponse)
def search_guardians(
    request: Request,
    session: SessionDep,
    current_user: AdminUser,
    q: str = Query(default="", max_length=255),
    role: str = Query(default="guardian", pattern="^(guardian|dependent)$"),
) -> Any:
    users = search_users(session=session, query=q, role=role) if len(q.strip()) >= 2 else []
    return templates.TemplateResponse(
        request,
        "guardian_search_results.html",
        {"users": users, "query": q.strip(), "role": role},
    )


def _validation_messages(exc: ValidationError) -> list[str]:
    messages = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]).replace("_", " ")
        messages.append(f"{field.capitalize()}: {error['msg']}")
    return messages


@router.post("/")
def create_guardian(
    session: SessionDep,
    current_user: AdminUser,
    first_name: str = Form(""),
    last_name: str = Form(""),
    email: str = Form(""),
    phone: str = Form(""),
    physical_address_1: str = Form(""),
    physical_address_2: str = Form(""),
    city: str = Form(""),
    state: str = Form(""),
    zip_code: str = Form(""),
) -> Any:
    raw = {
        "first_name": first_name.strip(),
        "last_name": last_name.strip(),
        "email": email.strip(),
        "phone": phone.strip() or None,
        "physical_address_1": physical_address_1.strip() or None,
        "physical_address_2": physical_address_2.strip() or None,
        "city": city.strip() or None,
        "state": state.strip() or None,
        "zip_code": zip_code.strip() or None,
    }
    try:
        guardian_in = GuardianCreate.model_validate(raw)
    except ValidationError as exc:
        return JSONResponse(
            status_code=422,
            content={"success": False, "errors": _validation_messages(exc)},
        )

    if session.exec(select(User).where(User.email == guardian_in.email)).first():
        return JSONResponse(
            status_code=422,
            content={"success": False, "errors": ["Email has already been taken"]},
        )

    user = User(
        **guardian_in.model_dump(),
        full_name=f"{guardian_in.first_name} {guardian_in.last_name}",
        role=UserRole.CONSTITUENT.value,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return {
        "success": True,
        "user": UserPublic.model_validate(user).model_dump(mode="json"),
    }
