from __future__ import annotations

import asyncio
import html
import logging
from decimal import Decimal
from typing import Any

import httpx

from app.forms.base import FormController
from app.forms.client import FplThresholds, IntakeClient
from app.forms.currency import format_currency, stored_amount
from app.forms.elements import Element
from app.forms.events import FplDataLoaded, Formatted, RawValueUpdated, Validated
from app.forms.state import IncomeThresholdState
from app.forms.visibility import set_visible

logger = logging.getLogger(__name__)

FETCH_ERROR_MESSAGE = (
    "Unable to load income thresholds. The income check was skipped; "
    "please verify eligibility manually."
)


def build_warning_html(threshold: Decimal) -> str:
    amount = html.escape(format_currency(threshold))
    return (
        "<div>"
        "<h3>Income Exceeds Threshold</h3>"
        f"<p>Your annual income exceeds the maximum threshold of {amount} "
        "for your household size.</p>"
        "<p>Applications with income above the threshold are not eligible "
        "for this program.</p>"
        "</div>"
    )


class IncomeValidationController(FormController):
    """Compares annual income with the FPL ceiling for the household size.

    With a client, every household-size or income change fetches the current
    thresholds; a newer change cancels a fetch still in flight. Without one,
    the thresholds passed in (or the built-in defaults) are used directly.
    """

    identifier = "income-validation"
    target_names = {
        "household_size": "household_size",
        "annual_income": "annual_income",
        "warning_container": "income_warning",
        "submit_button": "submit_button",
        "fetch_error": "fpl_fetch_error",
    }

    def __init__(
        self,
        *args: Any,
        client: IntakeClient | None = None,
        thresholds: FplThresholds | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.client = client
        self.state = IncomeThresholdState()
        self._reported_exceeds = False
        if thresholds is not None:
            self._load(thresholds)
        self._fetch_task: asyncio.Task[None] | None = None

    def connect(self) -> None:
        super().connect()
        self.listen(RawValueUpdated, self._on_amount_event)
        self.listen(Formatted, self._on_amount_event)
        if self.client is None:
            self.dispatch(FplDataLoaded(household_sizes=len(self.state.thresholds)))
        self.validate_income_threshold()

    def disconnect(self) -> None:
        super().disconnect()
        self._fetch_task = None

    def _on_amount_event(self, event: RawValueUpdated | Formatted) -> None:
        self.validate_income_threshold()

    # -- inputs --------------------------------------------------------------

    def household_size(self) -> int:
        def _parse(element: Element) -> int:
            try:
                return int(str(element.value).strip() or 0)
            except ValueError:
                return 0

        return self.with_target("household_size", _parse, 0) or 0

    def annual_income(self) -> Decimal:
        return self.with_target("annual_income", stored_amount, Decimal(0)) or Decimal(0)

    def set_household_size(self, size: int | str) -> asyncio.Task[None] | None:
        element = self.target("household_size")
        if element is not None:
            element.value = str(size)
        return self.validate_income_threshold()

    # -- validation ----------------------------------------------------------

    def validate_income_threshold(self) -> asyncio.Task[None] | None:
        """Input/change action. Returns the fetch task when one was started."""
        self.state.household_size = self.household_size()
        self.state.annual_income = self.annual_income()

        if not self.state.evaluable:
            if self._fetch_task is not None:
                self._fetch_task.cancel()
                self._fetch_task = None
            self.clear_validation_state()
            return None

        if self.client is None:
            self.evaluate()
            return None

        self._fetch_task = self.run_task(
            self._fetch_and_evaluate(), supersedes=self._fetch_task
        )
        return self._fetch_task

    async def _fetch_and_evaluate(self) -> None:
        if self.client is None:
            return
        try:
            thresholds = await self.client.fetch_fpl_thresholds()
        except asyncio.CancelledError:
            raise
        except (httpx.HTTPError, ValueError):
            logger.exception("Failed to fetch FPL thresholds")
            self.state.fetch_failed = True
            self._show_fetch_error(True)
        else:
            self._load(thresholds)
            self._show_fetch_error(False)
            self.dispatch(FplDataLoaded(household_sizes=len(self.state.thresholds)))
        self.evaluate()

    def _load(self, thresholds: FplThresholds) -> None:
        self.state.thresholds = dict(thresholds.thresholds)
        self.state.modifier_percent = thresholds.modifier
        self.state.fetch_failed = False

    def evaluate(self) -> bool:
        self.state.household_size = self.household_size()
        self.state.annual_income = self.annual_income()
        if not self.state.evaluable:
            self.clear_validation_state()
            return False

        exceeds = self.state.exceeds_threshold
        self.update_validation_ui(exceeds, self.state.threshold)
        self._report(exceeds)
        return exceeds

    def _report(self, exceeds_threshold: bool) -> None:
        self._reported_exceeds = exceeds_threshold
        self.dispatch(
            Validated(
                exceeds_threshold=exceeds_threshold,
                income=self.state.annual_income,
                threshold=self.state.threshold,
                household_size=self.state.household_size,
            )
        )

    # -- presentation ----------------------------------------------------------

    def update_validation_ui(self, exceeds_threshold: bool, threshold: Decimal) -> None:
        warning = self.target("warning_container")
        if warning is not None:
            if exceeds_threshold:
                warning.html = build_warning_html(threshold)
                warning.role = "alert"
                set_visible(warning, True)
            else:
                self._hide_warning()
        self.update_submit_button(exceeds_threshold)

    def update_submit_button(self, exceeds_threshold: bool) -> None:
        button = self.target("submit_button")
        if button is not None:
            button.disabled = exceeds_threshold

    def clear_validation_state(self) -> None:
        self._hide_warning()
        self.update_submit_button(False)
        # Listeners still holding an over-threshold result must hear it cleared.
        if self._reported_exceeds:
            self._report(False)

    def _hide_warning(self) -> None:
        warning = self.target("warning_container")
        if warning is None:
            return
        set_visible(warning, False)
        warning.role = None

    def _show_fetch_error(self, failed: bool) -> None:
        notice = self.target("fetch_error")
        if notice is None:
            if failed and self.flash is not None:
                self.flash.show_error(FETCH_ERROR_MESSAGE)
            return
        notice.text = FETCH_ERROR_MESSAGE if failed else ""
        notice.role = "status" if failed else None
        set_visible(notice, failed)
