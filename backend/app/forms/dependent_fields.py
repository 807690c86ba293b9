from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from app.forms.base import FormController
from app.forms.debounce import FORM_CHANGE
from app.forms.elements import Element
from app.forms.events import ApplicantTypeChanged
from app.forms.rules import DEFAULT_STATE
from app.forms.visibility import set_visible

logger = logging.getLogger(__name__)

# (guardian field, dependent field, fallback)
ADDRESS_FIELDS: tuple[tuple[str, str, str], ...] = (
    ("guardian_address1", "dependent_address1", ""),
    ("guardian_address2", "dependent_address2", ""),
    ("guardian_city", "dependent_city", ""),
    ("guardian_state", "dependent_state", DEFAULT_STATE),
    ("guardian_zip", "dependent_zip", ""),
)


def _flag(checked: bool) -> str:
    return "1" if checked else "0"


class DependentFieldsController(FormController):
    """Dependent contact fields and the "same as guardian" shortcuts."""

    identifier = "dependent-fields"
    target_names = {
        "element": "dependent_fields",
        "relationship_type": "relationship_type",
        "address_fields": "dependent_address_fields",
        "same_address_checkbox": "dependent_same_address",
        "same_email_checkbox": "dependent_use_guardian_email",
        "same_phone_checkbox": "dependent_use_guardian_phone",
        "use_guardian_email": "use_guardian_email",
        "use_guardian_phone": "use_guardian_phone",
        "email_field_container": "dependent_email_container",
        "phone_field_container": "dependent_phone_container",
        "dependent_email": "dependent_email",
        "dependent_phone": "dependent_phone",
        "guardian_email": "guardian_email",
        "guardian_phone": "guardian_phone",
        "guardian_address1": "guardian_address1",
        "guardian_address2": "guardian_address2",
        "guardian_city": "guardian_city",
        "guardian_state": "guardian_state",
        "guardian_zip": "guardian_zip",
        "dependent_address1": "dependent_address1",
        "dependent_address2": "dependent_address2",
        "dependent_city": "dependent_city",
        "dependent_state": "dependent_state",
        "dependent_zip": "dependent_zip",
    }

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._pending_event: ApplicantTypeChanged | None = None
        self._applicant_type_change = self.debounce(
            self.execute_applicant_type_change, FORM_CHANGE
        )

    def connect(self) -> None:
        super().connect()
        if self.has_target("address_fields"):
            self.with_target("same_address_checkbox", self.toggle_contact_fields)
        if self.has_target("dependent_email"):
            self.with_target("same_email_checkbox", self.toggle_email_field)
        if self.has_target("dependent_phone"):
            self.with_target("same_phone_checkbox", self.toggle_phone_field)
        self.listen(ApplicantTypeChanged, self.handle_applicant_type_change)

    # -- checkbox actions ----------------------------------------------------

    def toggle_contact_fields(self, checkbox: Element) -> None:
        if not self.has_required_targets("address_fields"):
            return

        use_guardian = checkbox.checked
        container = self.target("address_fields")
        set_visible(container, not use_guardian)
        for field in container.form_fields():
            if field.kind == "input":
                set_visible(field, not use_guardian, required=not use_guardian)

        if use_guardian:
            self.copy_guardian_address()

    def toggle_email_field(self, checkbox: Element) -> None:
        use_guardian = checkbox.checked
        self._set_hidden("use_guardian_email", _flag(use_guardian))

        email = self.target("dependent_email")
        if email is None:
            logger.debug("Missing dependent email field")
            return

        set_visible(email, not use_guardian, required=not use_guardian)
        if self.has_target("email_field_container"):
            set_visible(self.target("email_field_container"), not use_guardian)

        if use_guardian:
            self._copy("guardian_email", "dependent_email")

    def toggle_phone_field(self, checkbox: Element) -> None:
        use_guardian = checkbox.checked
        self._set_hidden("use_guardian_phone", _flag(use_guardian))

        phone = self.target("dependent_phone")
        if phone is None:
            logger.debug("Missing dependent phone field")
            return

        set_visible(phone, not use_guardian, required=not use_guardian)
        if self.has_target("phone_field_container"):
            set_visible(self.target("phone_field_container"), not use_guardian)

        if use_guardian:
            self._copy("guardian_phone", "dependent_phone")

    def set_same_address(self, checked: bool) -> None:
        self._set_checkbox("same_address_checkbox", checked, self.toggle_contact_fields)

    def set_use_guardian_email(self, checked: bool) -> None:
        self._set_checkbox("same_email_checkbox", checked, self.toggle_email_field)

    def set_use_guardian_phone(self, checked: bool) -> None:
        self._set_checkbox("same_phone_checkbox", checked, self.toggle_phone_field)

    def _set_checkbox(
        self, role: str, checked: bool, toggle: Callable[[Element], None]
    ) -> None:
        checkbox = self.target(role)
        if checkbox is None:
            return
        checkbox.checked = checked
        toggle(checkbox)

    def _set_hidden(self, role: str, value: str) -> None:
        hidden = self.target(role)
        if hidden is not None:
            hidden.value = value

    # -- copying -------------------------------------------------------------

    def copy_guardian_address(self) -> None:
        for guardian_role, dependent_role, fallback in ADDRESS_FIELDS:
            self._copy(guardian_role, dependent_role, fallback)

    def _copy(self, source_role: str, destination_role: str, fallback: str = "") -> None:
        source = self.target(source_role)
        destination = self.target(destination_role)
        if source is None or destination is None:
            return
        destination.value = source.value or fallback

    # -- applicant type --------------------------------------------------------

    def handle_applicant_type_change(self, event: ApplicantTypeChanged) -> None:
        self._pending_event = event
        self._applicant_type_change()

    def execute_applicant_type_change(self) -> None:
        if self._pending_event is None:
            return
        try:
            is_for_dependent = self._pending_event.is_dependent_selected
            set_visible(self.target("element"), is_for_dependent)

            if self.has_target("relationship_type"):
                set_visible(
                    self.target("relationship_type"), True, required=is_for_dependent
                )

            if is_for_dependent:
                if self.has_target("dependent_email"):
                    self.with_target("same_email_checkbox", self.toggle_email_field)
                if self.has_target("dependent_phone"):
                    self.with_target("same_phone_checkbox", self.toggle_phone_field)
                if self.has_target("address_fields"):
                    self.with_target("same_address_checkbox", self.toggle_contact_fields)
        except Exception:
            self.report_error(
                "An error occurred while updating dependent fields. Please try again."
            )
