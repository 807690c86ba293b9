"""Typed events exchanged between form controllers.

Event names and ``detail()`` payload keys are the contract other controllers
and the templates depend on; keep them stable.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, ClassVar, TypeVar

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FormEvent:
    controller: ClassVar[str] = ""
    name: ClassVar[str] = ""

    @classmethod
    def identifier(cls) -> str:
        return f"{cls.controller}:{cls.name}"

    def detail(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True, slots=True)
class ApplicantTypeChanged(FormEvent):
    controller: ClassVar[str] = "applicant-type"
    name: ClassVar[str] = "applicantTypeChanged"

    is_dependent_selected: bool

    def detail(self) -> dict[str, Any]:
        return {"isDependentSelected": self.is_dependent_selected}


@dataclass(frozen=True, slots=True)
class SelectionChange(FormEvent):
    controller: ClassVar[str] = "guardian-picker"
    name: ClassVar[str] = "selectionChange"

    selected_value: bool

    def detail(self) -> dict[str, Any]:
        return {"selectedValue": self.selected_value}


@dataclass(frozen=True, slots=True)
class RawValueUpdated(FormEvent):
    controller: ClassVar[str] = "currency-formatter"
    name: ClassVar[str] = "rawValueUpdated"

    raw_value: Decimal
    formatted_value: str

    def detail(self) -> dict[str, Any]:
        return {"rawValue": self.raw_value, "formattedValue": self.formatted_value}


@dataclass(frozen=True, slots=True)
class Formatted(FormEvent):
    controller: ClassVar[str] = "currency-formatter"
    name: ClassVar[str] = "formatted"

    raw_value: Decimal
    formatted_value: str

    def detail(self) -> dict[str, Any]:
        return {"rawValue": self.raw_value, "formattedValue": self.formatted_value}


@dataclass(frozen=True, slots=True)
class Validated(FormEvent):
    controller: ClassVar[str] = "income-validation"
    name: ClassVar[str] = "validated"

    exceeds_threshold: bool
    income: Decimal
    threshold: Decimal
    household_size: int

    def detail(self) -> dict[str, Any]:
        return {
            "exceedsThreshold": self.exceeds_threshold,
            "income": self.income,
            "threshold": self.threshold,
            "householdSize": self.household_size,
        }


@dataclass(frozen=True, slots=True)
class FplDataLoaded(FormEvent):
    controller: ClassVar[str] = "income-validation"
    name: ClassVar[str] = "fpl-data-loaded"

    household_sizes: int

    def detail(self) -> dict[str, Any]:
        return {"householdSizes": self.household_sizes}


E = TypeVar("E", bound=FormEvent)

DEFAULT_HISTORY_SIZE = 200


class EventBus:
    """In-process pub/sub keyed by event type.

    Subscribers are called in subscription order. A failing subscriber is
    logged and skipped so the remaining subscribers still run. Only the most
    recent ``history_size`` events are kept; pass 0 to keep none.
    """

    def __init__(self, history_size: int = DEFAULT_HISTORY_SIZE) -> None:
        self._subscribers: dict[type[FormEvent], list[Callable[[Any], None]]] = {}
        self._history: deque[FormEvent] = deque(maxlen=max(history_size, 0))

    def subscribe(
        self, event_type: type[E], callback: Callable[[E], None]
    ) -> Callable[[], None]:
        self._subscribers.setdefault(event_type, []).append(callback)

        def _unsubscribe() -> None:
            try:
                self._subscribers.get(event_type, []).remove(callback)
            except ValueError:
                return

        return _unsubscribe

    def publish(self, event: FormEvent) -> None:
        self._history.append(event)
        logger.debug("Dispatching %s %s", event.identifier(), event.detail())
        for callback in tuple(self._subscribers.get(type(event), ())):
            try:
                callback(event)
            except Exception:
                logger.exception(
                    "Subscriber %r failed handling %s", callback, event.identifier()
                )

    def history(self, event_type: type[E] | None = None) -> list[E]:
        if event_type is None:
            return list(self._history)  # type: ignore[arg-type]
        return [event for event in self._history if isinstance(event, event_type)]

    def clear_history(self) -> None:
        self._history.clear()
