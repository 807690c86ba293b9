from __future__ import annotations

import logging
from typing import Any

from app.forms.base import FormController
from app.forms.debounce import UI_RECOMPUTE
from app.forms.events import ApplicantTypeChanged, SelectionChange
from app.forms.guardian_picker import GuardianPickerController
from app.forms.rules import GUARDIAN_LOCK_TITLE, SectionVisibility, section_visibility
from app.forms.state import ApplicantSelection
from app.forms.visibility import set_fields_disabled, set_visible
from app.models import ApplicantType

logger = logging.getLogger(__name__)


class ApplicantTypeController(FormController):
    """Owns the self/dependent choice and the sections that hang off it.

    Every refresh recomputes the whole section layout from the current radio
    choice and the guardian picker's selection; nothing is patched
    incrementally. ``applicantTypeChanged`` is only dispatched when the
    ``(is_dependent_selected, guardian_chosen)`` pair actually changes.
    """

    identifier = "applicant-type"
    target_names = {
        "radio": ("applicant_type_self", "applicant_type_dependent"),
        "radio_section": "applicant_type_section",
        "guardian_section": "guardian_section",
        "sections_for_dependent_with_guardian": "dependent_info_section",
        "dependent_field": ("dependent_first_name", "dependent_last_name"),
        "adult_section": "adult_section",
        "common_sections": "common_sections",
    }

    def __init__(
        self,
        *args: Any,
        guardian_picker: GuardianPickerController | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.guardian_picker = guardian_picker
        self.selection = ApplicantSelection()
        self.layout: SectionVisibility | None = None
        self._last_state: tuple[bool, bool] | None = None
        self._refresh = self.debounce(self.execute_refresh, UI_RECOMPUTE)

    def connect(self) -> None:
        if self.connected:
            return
        super().connect()
        self._last_state = None
        self.listen(SelectionChange, self.guardian_picker_selection_change)
        self.refresh()

    def disconnect(self) -> None:
        super().disconnect()
        self._last_state = None

    # -- guardian picker wiring ---------------------------------------------

    def attach_guardian_picker(self, picker: GuardianPickerController) -> None:
        self.guardian_picker = picker
        self.refresh()

    def detach_guardian_picker(self) -> None:
        self.guardian_picker = None
        self.refresh()

    def guardian_picker_selection_change(self, event: SelectionChange) -> None:
        logger.debug("Guardian selection changed: %s", event.detail())
        self.refresh()

    # -- actions -------------------------------------------------------------

    def update_applicant_type_display(self, value: str | None = None) -> None:
        """Radio change action; ``value`` checks that radio first."""
        if value is not None:
            radio = next((r for r in self.targets("radio") if r.value == value), None)
            if radio is not None and not radio.disabled:
                self.select_radio(value)
        self.refresh()

    def refresh(self) -> None:
        self._refresh()

    def execute_refresh(self) -> None:
        try:
            self._apply()
        except Exception:
            self.report_error(
                "An error occurred while updating applicant type sections. Please try again."
            )

    def _apply(self) -> None:
        guardian_chosen = bool(
            self.guardian_picker is not None and self.guardian_picker.selected_value
        )

        if guardian_chosen:
            self.selection.guardian_selected()
            self.select_radio(ApplicantType.DEPENDENT.value)
        else:
            self.selection.guardian_cleared()
            self.selection.choose(
                ApplicantType.DEPENDENT
                if self.is_dependent_radio_checked()
                else ApplicantType.SELF
            )

        layout = section_visibility(
            dependent_selected=self.selection.is_dependent_selected,
            guardian_chosen=guardian_chosen,
        )
        self.layout = layout

        if self.has_target("radio_section"):
            set_visible(self.target("radio_section"), layout.radio_section)

        if self.has_target("guardian_section"):
            set_visible(self.target("guardian_section"), layout.guardian_section)

        if self.has_target("sections_for_dependent_with_guardian"):
            section = self.target("sections_for_dependent_with_guardian")
            set_visible(section, layout.dependent_with_guardian_sections)
            # Hidden inputs must not be submitted alongside the visible flow.
            set_fields_disabled(section, not layout.dependent_with_guardian_sections)

        for field in self.targets("dependent_field"):
            set_visible(field, True, required=layout.dependent_fields_required)

        if self.has_target("adult_section"):
            section = self.target("adult_section")
            set_visible(section, layout.adult_section)
            set_fields_disabled(section, not layout.adult_section)

        title = GUARDIAN_LOCK_TITLE if layout.radios_locked else ""
        for radio in self.targets("radio"):
            radio.disabled = layout.radios_locked
            radio.title = title

        if self.has_target("common_sections"):
            set_visible(self.target("common_sections"), layout.common_sections)

        state = self.selection.as_key()
        if state != self._last_state:
            logger.debug(
                "applicantTypeChanged isDependentSelected=%s guardianChosen=%s", *state
            )
            self.dispatch(
                ApplicantTypeChanged(
                    is_dependent_selected=self.selection.is_dependent_selected
                )
            )
            self._last_state = state

    # -- radios ----------------------------------------------------------------

    def is_dependent_radio_checked(self) -> bool:
        checked = next((radio for radio in self.targets("radio") if radio.checked), None)
        return checked is not None and checked.value == ApplicantType.DEPENDENT.value

    def select_radio(self, value: str) -> None:
        for radio in self.targets("radio"):
            radio.checked = radio.value == value
