from decimal import Decimal

import pytest

from app.forms.currency import (
    CurrencyFormatterController,
    extract_raw_value,
    format_currency,
)
from app.forms.elements import FormDocument
from app.forms.events import EventBus, Formatted, RawValueUpdated
from tests.utils.scheduler import ManualScheduler


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("$1,234.50", Decimal("1234.50")),
        ("45000", Decimal("45000")),
        ("  12 500 ", Decimal("12500")),
        ("abc", Decimal(0)),
        ("", Decimal(0)),
        ("1.2.3", Decimal(0)),
    ],
)
def test_extract_raw_value(value: str, expected: Decimal) -> None:
    assert extract_raw_value(value) == expected


def test_format_currency() -> None:
    assert format_currency(Decimal("1234")) == "$1,234.00"
    assert format_currency(Decimal("0.5")) == "$0.50"
    assert format_currency(Decimal("-12")) == "-$12.00"


@pytest.fixture()
def controller(
    document: FormDocument, bus: EventBus, scheduler: ManualScheduler
) -> CurrencyFormatterController:
    controller = CurrencyFormatterController(document, bus, scheduler)
    controller.connect()
    return controller


def test_input_stores_raw_value_and_dispatches(
    controller: CurrencyFormatterController, document: FormDocument, bus: EventBus
) -> None:
    controller.handle_input("$45,000")

    element = document.get("annual_income")
    assert element is not None
    assert element.data["raw_value"] == "45000"
    assert bus.history(RawValueUpdated) == [
        RawValueUpdated(raw_value=Decimal("45000"), formatted_value="$45,000")
    ]


def test_blur_formats_and_announces(
    controller: CurrencyFormatterController, document: FormDocument, bus: EventBus
) -> None:
    controller.handle_input("45000.5")
    controller.format()

    element = document.get("annual_income")
    assert element is not None
    assert element.value == "$45,000.50"
    assert controller.raw_value == Decimal("45000.5")
    assert document.get("currency_announcer").text == "Annual income: $45,000.50"  # type: ignore[union-attr]
    assert bus.history(Formatted)[-1].formatted_value == "$45,000.50"


def test_focus_restores_raw_value(
    controller: CurrencyFormatterController, document: FormDocument
) -> None:
    controller.handle_input("1200")
    controller.format()
    controller.clear_formatting()

    assert document.get("annual_income").value == "1200"  # type: ignore[union-attr]


def test_negative_and_blank_values_are_not_formatted(
    controller: CurrencyFormatterController, document: FormDocument, bus: EventBus
) -> None:
    controller.handle_input("-500")
    controller.format()
    controller.handle_input("   ")
    controller.format()

    assert bus.history(Formatted) == []
    assert document.get("currency_announcer").text == ""  # type: ignore[union-attr]


def test_set_raw_value(
    controller: CurrencyFormatterController, document: FormDocument
) -> None:
    controller.set_raw_value("$2,500")

    assert document.get("annual_income").value == "2500"  # type: ignore[union-attr]
    assert controller.raw_value == Decimal("2500")


def test_missing_input_is_ignored(bus: EventBus, scheduler: ManualScheduler) -> None:
    controller = CurrencyFormatterController(FormDocument(), bus, scheduler)
    controller.connect()
    controller.handle_input("100")
    controller.format()

    assert controller.raw_value == Decimal(0)
    assert bus.history() == []
