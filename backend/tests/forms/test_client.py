import asyncio
from decimal import Decimal

import httpx
import pytest

from app.forms.client import FplThresholds, IntakeClient


def fetch(payload: object, status_code: int = 200) -> FplThresholds:
    def respond(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer secret"
        return httpx.Response(status_code, json=payload)

    async def scenario() -> FplThresholds:
        async with IntakeClient(
            "http://testserver", token="secret", transport=httpx.MockTransport(respond)
        ) as client:
            return await client.fetch_fpl_thresholds()

    return asyncio.run(scenario())


def test_fetch_thresholds_parses_payload() -> None:
    result = fetch({"thresholds": {"1": 15650, "2": "21150", "x": 5}, "modifier": 400})

    assert result.thresholds == {1: Decimal(15650), 2: Decimal(21150)}
    assert result.modifier == Decimal(400)


def test_fetch_thresholds_without_modifier() -> None:
    result = fetch({"thresholds": {}, "modifier": 0})

    assert result.thresholds == {}
    assert result.modifier is None


def test_fetch_thresholds_raises_on_server_error() -> None:
    with pytest.raises(httpx.HTTPStatusError):
        fetch({}, status_code=503)


@pytest.mark.parametrize(
    "payload", [[1, 2], "thresholds", {"thresholds": [15650, 21150]}]
)
def test_fetch_thresholds_rejects_unexpected_shapes(payload: object) -> None:
    with pytest.raises(ValueError):
        fetch(payload)


def test_fetch_thresholds_ignores_non_numeric_modifier() -> None:
    result = fetch({"thresholds": {"1": 15650}, "modifier": "NaN"})

    assert result.thresholds == {1: Decimal(15650)}
    assert result.modifier is None


def test_create_guardian_result_from_errors() -> None:
    def respond(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, json={"success": False, "errors": ["Email: bad"]})

    async def scenario() -> None:
        async with IntakeClient(
            "http://testserver", transport=httpx.MockTransport(respond)
        ) as client:
            result = await client.create_guardian({"email": "bad"})
        assert result.success is False
        assert result.errors == ["Email: bad"]
        assert result.user == {}

    asyncio.run(scenario())
