from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Any

from app.forms.base import FormController
from app.forms.elements import Element
from app.forms.events import Formatted, RawValueUpdated

logger = logging.getLogger(__name__)

RAW_VALUE_KEY = "raw_value"

_NON_NUMERIC = re.compile(r"[^\d.-]")


def extract_raw_value(value: object) -> Decimal:
    """``"$1,234.50"`` -> ``Decimal("1234.50")``; anything unparseable is zero."""
    cleaned = _NON_NUMERIC.sub("", str(value))
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return Decimal(0)
    return amount if amount.is_finite() else Decimal(0)


def format_currency(amount: Decimal) -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def stored_amount(element: Element) -> Decimal:
    """The typed amount behind an input, preferring the stored raw value."""
    raw = element.data.get(RAW_VALUE_KEY)
    if raw:
        return extract_raw_value(raw)
    return extract_raw_value(element.value)


class CurrencyFormatterController(FormController):
    """Keeps a typed raw amount next to a free-form currency input."""

    identifier = "currency-formatter"
    target_names = {"input": "annual_income", "announcer": "currency_announcer"}

    def __init__(self, *args: Any, announce_changes: bool = True, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.announce_changes = announce_changes

    @property
    def raw_value(self) -> Decimal:
        element = self.target("input")
        return stored_amount(element) if element is not None else Decimal(0)

    def handle_input(self, value: str | None = None) -> None:
        element = self.target("input")
        if element is None:
            return
        if value is not None:
            element.value = value
        raw = self._store_raw_value(element)
        self.dispatch(RawValueUpdated(raw_value=raw, formatted_value=element.value))

    def format(self) -> None:
        """Blur action."""
        element = self.target("input")
        if element is None:
            return
        value = element.value.strip()
        if not value:
            return

        amount = extract_raw_value(value)
        if amount < 0:
            return

        self._store_raw_value(element, amount)
        formatted = format_currency(amount)
        element.value = formatted
        self._announce(f"Annual income: {formatted}")
        self.dispatch(Formatted(raw_value=amount, formatted_value=formatted))

    def clear_formatting(self) -> None:
        element = self.target("input")
        if element is not None and element.data.get(RAW_VALUE_KEY):
            element.value = element.data[RAW_VALUE_KEY]

    def set_raw_value(self, value: object) -> None:
        element = self.target("input")
        if element is None:
            return
        amount = extract_raw_value(value)
        element.value = str(amount)
        self._store_raw_value(element, amount)

    def _store_raw_value(self, element: Element, amount: Decimal | None = None) -> Decimal:
        if amount is None:
            amount = extract_raw_value(element.value)
        element.data[RAW_VALUE_KEY] = str(amount)
        return amount

    def _announce(self, message: str) -> None:
        if not self.announce_changes:
            return
        announcer = self.target("announcer")
        if announcer is None:
            logger.debug("Currency announcement: %s", message)
            return
        announcer.text = message
