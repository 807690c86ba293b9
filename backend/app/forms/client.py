"""Async HTTP client for the endpoints the form talks to."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from app.forms.rules import parse_thresholds
from app.forms.state import AttachedFile

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FplThresholds:
    thresholds: dict[int, Decimal]
    modifier: Decimal | None


@dataclass
class GuardianCreateResult:
    success: bool
    user: dict[str, Any] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)


class IntakeClient:
    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        api_prefix: str = "/api/v1",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self.api_prefix = api_prefix.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> IntakeClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _url(self, path: str) -> str:
        return f"{self.api_prefix}{path}"

    async def fetch_fpl_thresholds(self) -> FplThresholds:
        response = await self._client.get(self._url("/paper-applications/fpl-thresholds"))
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, Mapping):
            raise ValueError(f"Unexpected FPL threshold payload: {type(payload).__name__}")
        thresholds = payload.get("thresholds")
        if thresholds is not None and not isinstance(thresholds, Mapping):
            raise ValueError(f"Unexpected FPL thresholds: {type(thresholds).__name__}")
        modifier: Decimal | None
        try:
            modifier = Decimal(str(payload.get("modifier")))
        except (InvalidOperation, ValueError):
            modifier = None
        if modifier is not None and not modifier.is_finite():
            modifier = None
        return FplThresholds(
            thresholds=parse_thresholds(thresholds),
            modifier=modifier if modifier and modifier > 0 else None,
        )

    async def search_guardians(self, query: str, *, role: str = "guardian") -> str:
        response = await self._client.get(
            self._url("/guardians/search"), params={"q": query, "role": role}
        )
        response.raise_for_status()
        return response.text

    async def create_guardian(self, data: Mapping[str, str]) -> GuardianCreateResult:
        response = await self._client.post(self._url("/guardians/"), data=dict(data))
        if response.status_code >= 500:
            response.raise_for_status()
        payload = response.json()
        return GuardianCreateResult(
            success=bool(payload.get("success")),
            user=payload.get("user") or {},
            errors=[str(error) for error in payload.get("errors") or []],
        )

    async def direct_upload(
        self, filename: str, content: bytes, content_type: str
    ) -> AttachedFile:
        response = await self._client.post(
            self._url("/uploads/direct"),
            files={"file": (filename, content, content_type)},
        )
        response.raise_for_status()
        payload = response.json()
        return AttachedFile(
            filename=payload["filename"],
            signed_id=payload["signed_id"],
            content_type=payload.get("content_type"),
            byte_size=payload.get("byte_size"),
        )

    async def submit_paper_application(self, payload: Mapping[str, Any]) -> httpx.Response:
        return await self._client.post(self._url("/paper-applications/"), json=payload)

    async def reject_for_income(self, payload: Mapping[str, Any]) -> httpx.Response:
        return await self._client.post(
            self._url("/paper-applications/reject-for-income"), json=payload
        )
