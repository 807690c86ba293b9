from fastapi.testclient import TestClient
from sqlmodel import Session

from app.core.config import settings
from app.models import GuardianRelationship
from tests.utils.user import create_constituent
from tests.utils.utils import random_email, random_lower_string

URL = f"{settings.API_V1_STR}/guardians"


def test_search_renders_matching_guardians(
    client: TestClient, superuser_token_headers: dict[str, str], db: Session
) -> None:
    last_name = random_lower_string()[:12]
    guardian = create_constituent(db, first_name="Morgan", last_name=last_name)

    r = client.get(
        f"{URL}/search", headers=superuser_token_headers, params={"q": last_name}
    )

    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")
    assert f'data-user-id="{guardian.id}"' in r.text
    assert f"Morgan {last_name}" in r.text


def test_search_excludes_dependents_unless_requested(
    client: TestClient, superuser_token_headers: dict[str, str], db: Session
) -> None:
    last_name = random_lower_string()[:12]
    guardian = create_constituent(db, first_name="Parent", last_name=last_name)
    dependent = create_constituent(db, first_name="Child", last_name=last_name)
    db.add(
        GuardianRelationship(
            guardian_id=guardian.id,
            dependent_id=dependent.id,
            relationship_type="Parent",
        )
    )
    db.commit()

    guardians = client.get(
        f"{URL}/search", headers=superuser_token_headers, params={"q": last_name}
    )
    assert str(guardian.id) in guardians.text
    assert str(dependent.id) not in guardians.text

    dependents = client.get(
        f"{URL}/search",
        headers=superuser_token_headers,
        params={"q": last_name, "role": "dependent"},
    )
    assert str(dependent.id) in dependents.text
    assert str(guardian.id) not in dependents.text


def test_search_short_query_returns_no_results(
    client: TestClient, superuser_token_headers: dict[str, str]
) -> None:
    r = client.get(f"{URL}/search", headers=superuser_token_headers, params={"q": "a"})
    assert r.status_code == 200
    assert 'No matches found for "a".' in r.text


def test_search_requires_admin(
    client: TestClient, normal_user_token_headers: dict[str, str]
) -> None:
    r = client.get(
        f"{URL}/search", headers=normal_user_token_headers, params={"q": "jordan"}
    )
    assert r.status_code == 403


def test_create_guardian(
    client: TestClient, superuser_token_headers: dict[str, str]
) -> None:
    email = random_email()
    data = {
        "first_name": "Jordan",
        "last_name": "Guardian",
        "email": email,
        "phone": "410-555-0100",
        "city": "Baltimore",
        "state": "MD",
    }

    r = client.post(f"{URL}/", headers=superuser_token_headers, data=data)

    assert r.status_code == 200
    content = r.json()
    assert content["success"] is True
    assert content["user"]["email"] == email
    assert content["user"]["full_name"] == "Jordan Guardian"
    assert content["user"]["role"] == "constituent"
    assert content["user"]["city"] == "Baltimore"


def test_create_guardian_duplicate_email(
    client: TestClient, superuser_token_headers: dict[str, str], db: Session
) -> None:
    existing = create_constituent(db)
    data = {"first_name": "Jordan", "last_name": "Guardian", "email": existing.email}

    r = client.post(f"{URL}/", headers=superuser_token_headers, data=data)

    assert r.status_code == 422
    assert r.json() == {"success": False, "errors": ["Email has already been taken"]}


def test_create_guardian_validation_errors(
    client: TestClient, superuser_token_headers: dict[str, str]
) -> None:
    r = client.post(
        f"{URL}/",
        headers=superuser_token_headers,
        data={"first_name": "", "last_name": "Guardian", "email": "not-an-email"},
    )

    assert r.status_code == 422
    content = r.json()
    assert content["success"] is False
    assert any(error.startswith("First name") for error in content["errors"])
    assert any(error.startswith("Email") for error in content["errors"])
