"""The paper application form: element layout, submit gating and submission.

``PaperApplicationForm`` wires the individual controllers together over one
document and event bus. Controllers still only talk to each other through
events, plus the applicant-type controller's direct reference to the
guardian picker.
"""

from __future__ import annotations

import asyncio
import html
import logging
from collections.abc import Awaitable, Callable, Iterable
from decimal import Decimal
from typing import Any

import httpx

from app.forms.applicant_type import ApplicantTypeController
from app.forms.base import FormController
from app.forms.client import FplThresholds, IntakeClient
from app.forms.currency import CurrencyFormatterController
from app.forms.debounce import Scheduler
from app.forms.dependent_fields import DependentFieldsController
from app.forms.elements import Element, FormDocument
from app.forms.events import EventBus, Validated
from app.forms.flash import FlashMessages
from app.forms.guardian_picker import GuardianPickerController
from app.forms.income_validation import IncomeValidationController
from app.forms.proof_handler import DocumentProofHandlerController, proof_target_names
from app.forms.rules import DEFAULT_STATE, REJECTION_REASONS, ProofType
from app.forms.visibility import set_visible
from app.models import DISABILITY_FIELDS, ApplicantType

logger = logging.getLogger(__name__)

RELATIONSHIP_TYPES = ("Parent", "Legal Guardian", "Caretaker", "Other")

ADDRESS_KEYS = (
    ("address1", "physical_address_1"),
    ("address2", "physical_address_2"),
    ("city", "city"),
    ("state", "state"),
    ("zip", "zip_code"),
)

DISABILITY_CHECKBOXES = {
    field: f"disability_{field.removesuffix('_disability')}" for field in DISABILITY_FIELDS
}

DISABILITY_REQUIRED_MESSAGE = "Please select at least one disability"


def _inputs(prefix: str, *names: str) -> list[Element]:
    return [Element(f"{prefix}_{name}", kind="input") for name in names]


def _section(name: str, children: Iterable[Element], *, visible: bool = True) -> Element:
    return Element(name, visible=visible, children=list(children))


def _proof_section(proof_type: ProofType) -> Element:
    names = proof_target_names(proof_type)
    group = f"{proof_type.field_name}_action"
    return _section(
        f"{proof_type.field_name}_section",
        [
            Element(names["accept_radio"], kind="radio", group=group, value="accept"),
            Element(names["reject_radio"], kind="radio", group=group, value="reject"),
            _section(
                names["upload_section"],
                [Element(names["file_input"], kind="file", disabled=True)],
                visible=False,
            ),
            _section(
                names["rejection_section"],
                [
                    Element(names["rejection_reason_select"], kind="select"),
                    Element(names["reason_preview"], visible=False),
                    Element(names["rejection_notes"], kind="textarea"),
                ],
                visible=False,
            ),
            Element(names["signed_id"], kind="hidden"),
        ],
    )


def build_paper_application_document() -> FormDocument:
    """The full paper application layout in its initial (self applicant) state."""
    applicant_type = _section(
        "applicant_type_section",
        [
            Element(
                "applicant_type_self",
                kind="radio",
                group="applicant_type",
                value=ApplicantType.SELF.value,
                checked=True,
            ),
            Element(
                "applicant_type_dependent",
                kind="radio",
                group="applicant_type",
                value=ApplicantType.DEPENDENT.value,
            ),
        ],
    )

    guardian = _section(
        "guardian_section",
        [
            _section(
                "guardian_search_pane",
                [
                    Element("guardian_search", kind="input"),
                    Element("guardian_search_results", visible=False),
                ],
            ),
            _section(
                "guardian_selected_pane", [Element("guardian_details")], visible=False
            ),
            Element("guardian_status", visible=False),
            Element("guardian_id", kind="hidden"),
            *(
                Element(f"guardian_{name}", kind="hidden")
                for name in ("email", "phone", "address1", "address2", "city", "state", "zip")
            ),
        ],
        visible=False,
    )

    dependent = _section(
        "dependent_info_section",
        [
            _section(
                "dependent_fields",
                [
                    *_inputs("dependent", "first_name", "last_name"),
                    Element("relationship_type", kind="select"),
                    Element(
                        "dependent_use_guardian_email",
                        kind="checkbox",
                        value="1",
                        checked=True,
                    ),
                    Element("use_guardian_email", kind="hidden", value="1"),
                    _section("dependent_email_container", _inputs("dependent", "email")),
                    Element("dependent_use_guardian_phone", kind="checkbox", value="1"),
                    Element("use_guardian_phone", kind="hidden", value="0"),
                    _section("dependent_phone_container", _inputs("dependent", "phone")),
                    Element(
                        "dependent_same_address", kind="checkbox", value="1", checked=True
                    ),
                    _section(
                        "dependent_address_fields",
                        _inputs("dependent", "address1", "address2", "city", "state", "zip"),
                    ),
                ],
            )
        ],
        visible=False,
    )

    adult = _section(
        "adult_section",
        _inputs(
            "constituent",
            "first_name",
            "last_name",
            "email",
            "phone",
            "address1",
            "address2",
            "city",
            "state",
            "zip",
        ),
    )
    constituent_state = adult.find("constituent_state")
    if constituent_state is not None:
        constituent_state.value = DEFAULT_STATE

    common = _section(
        "common_sections",
        [
            _section(
                "disability_section",
                (
                    Element(name, kind="checkbox", value="1")
                    for name in DISABILITY_CHECKBOXES.values()
                ),
            ),
            Element("household_size", kind="input"),
            Element("annual_income", kind="input"),
            Element("currency_announcer"),
            Element("income_warning", visible=False),
            Element("fpl_fetch_error", visible=False),
            _proof_section(ProofType.INCOME),
            _proof_section(ProofType.RESIDENCY),
            Element("notes", kind="textarea"),
            Element("submit_button", kind="button"),
            Element("rejection_button", kind="button", visible=False),
            Element("rejection_modal", visible=False),
        ],
    )

    root = Element(
        "paper_application_form",
        kind="form",
        children=[
            Element("form_errors", visible=False),
            applicant_type,
            guardian,
            dependent,
            adult,
            common,
        ],
    )
    return FormDocument(root)


class PaperApplicationController(FormController):
    """Submit gating and proof validation for the whole form."""

    identifier = "paper-application"
    target_names = {
        "submit_button": "submit_button",
        "rejection_button": "rejection_button",
        "rejection_modal": "rejection_modal",
        "error_container": "form_errors",
        "disability_checkboxes": tuple(DISABILITY_CHECKBOXES.values()),
    }

    def __init__(
        self,
        *args: Any,
        proof_handlers: Iterable[DocumentProofHandlerController] = (),
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.proof_handlers = list(proof_handlers)
        self.exceeds_threshold = False

    def connect(self) -> None:
        super().connect()
        self.listen(Validated, self.handle_income_validation)

    def handle_income_validation(self, event: Validated) -> None:
        self.update_submission_ui(event.exceeds_threshold)

    def update_submission_ui(self, exceeds_threshold: bool) -> None:
        self.exceeds_threshold = exceeds_threshold
        button = self.target("submit_button")
        if button is not None:
            button.disabled = exceeds_threshold

        rejection_button = self.target("rejection_button")
        if rejection_button is not None:
            set_visible(rejection_button, exceeds_threshold)
        elif exceeds_threshold:
            logger.warning("Missing rejection button target")

    def open_rejection_modal(self) -> None:
        self.with_target("rejection_modal", lambda modal: set_visible(modal, True))

    def close_rejection_modal(self) -> None:
        self.with_target("rejection_modal", lambda modal: set_visible(modal, False))

    def validate_form(self) -> bool:
        """Check disabilities and proof decisions; render the messages if any fail."""
        errors: list[str] = []
        checkboxes = self.targets("disability_checkboxes")
        if checkboxes and not any(checkbox.checked for checkbox in checkboxes):
            errors.append(DISABILITY_REQUIRED_MESSAGE)
        errors.extend(
            error for error in (handler.error for handler in self.proof_handlers) if error
        )
        self.show_errors(errors)
        return not errors

    def show_errors(self, errors: list[str]) -> None:
        container = self.target("error_container")
        if container is None:
            if errors and self.flash is not None:
                self.flash.show_error(" ".join(errors))
            return
        if not errors:
            container.html = ""
            container.role = None
            container.scrolled_into_view = False
            set_visible(container, False)
            return
        items = "".join(f"<li>{html.escape(error)}</li>" for error in errors)
        container.html = (
            "<h2>Please correct the following errors:</h2>" f"<ul>{items}</ul>"
        )
        container.role = "alert"
        set_visible(container, True)
        container.scrolled_into_view = True


class PaperApplicationForm:
    """Composition root: one document, one bus, every form controller."""

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        client: IntakeClient | None = None,
        document: FormDocument | None = None,
        thresholds: FplThresholds | None = None,
        bus: EventBus | None = None,
    ) -> None:
        self.document = document or build_paper_application_document()
        self.bus = bus or EventBus()
        self.scheduler = scheduler
        self.client = client
        self.flash = FlashMessages(scheduler)

        shared: dict[str, Any] = {"flash": self.flash}
        args = (self.document, self.bus, scheduler)
        self.guardian_picker = GuardianPickerController(*args, client=client, **shared)
        self.applicant_type = ApplicantTypeController(
            *args, guardian_picker=self.guardian_picker, **shared
        )
        self.dependent_fields = DependentFieldsController(*args, **shared)
        self.currency = CurrencyFormatterController(*args, **shared)
        self.income_validation = IncomeValidationController(
            *args, client=client, thresholds=thresholds, **shared
        )
        self.proofs = {
            proof_type: DocumentProofHandlerController(
                *args, proof_type=proof_type, client=client, **shared
            )
            for proof_type in ProofType
        }
        self.paper_application = PaperApplicationController(
            *args, proof_handlers=self.proofs.values(), **shared
        )
        self._populate_choices()

    @property
    def controllers(self) -> list[FormController]:
        return [
            self.paper_application,
            self.guardian_picker,
            self.dependent_fields,
            self.applicant_type,
            self.currency,
            *self.proofs.values(),
            self.income_validation,
        ]

    def connect(self) -> None:
        for controller in self.controllers:
            controller.connect()

    def disconnect(self) -> None:
        for controller in reversed(self.controllers):
            controller.disconnect()

    def _populate_choices(self) -> None:
        relationship = self.document.get("relationship_type")
        if relationship is not None and not relationship.html:
            relationship.html = "".join(
                f'<option value="{html.escape(value)}">{html.escape(value)}</option>'
                for value in RELATIONSHIP_TYPES
            )
        for proof_type in ProofType:
            select = self.document.get(proof_target_names(proof_type)["rejection_reason_select"])
            if select is not None and not select.html:
                select.html = "".join(
                    f'<option value="{code}">{html.escape(text)}</option>'
                    for code, text in REJECTION_REASONS.items()
                )

    # -- serialization ---------------------------------------------------------

    def _value(self, name: str) -> str:
        element = self.document.get(name)
        return element.value.strip() if element is not None else ""

    def _checked(self, name: str) -> bool:
        element = self.document.get(name)
        return element is not None and element.checked

    def _person(self, prefix: str, *, skip: Iterable[str] = ()) -> dict[str, Any]:
        person: dict[str, Any] = {
            "first_name": self._value(f"{prefix}_first_name"),
            "last_name": self._value(f"{prefix}_last_name"),
            "email": self._value(f"{prefix}_email") or None,
            "phone": self._value(f"{prefix}_phone") or None,
        }
        for element_key, field in ADDRESS_KEYS:
            person[field] = self._value(f"{prefix}_{element_key}") or None
        for field in skip:
            person[field] = None
        return person

    def _disabilities(self) -> dict[str, bool]:
        return {field: self._checked(name) for field, name in DISABILITY_CHECKBOXES.items()}

    def _applicant_payload(self) -> dict[str, Any]:
        if not self.applicant_type.selection.is_dependent_selected:
            return {
                "applicant_type": ApplicantType.SELF.value,
                "constituent": {**self._person("constituent"), **self._disabilities()},
            }

        use_guardian_email = self._value("use_guardian_email") == "1"
        use_guardian_phone = self._value("use_guardian_phone") == "1"
        skip = [
            field
            for field, skipped in (
                ("email", use_guardian_email),
                ("phone", use_guardian_phone),
            )
            if skipped
        ]
        return {
            "applicant_type": ApplicantType.DEPENDENT.value,
            "guardian_id": self.guardian_picker.selection.guardian_id,
            "relationship_type": self._value("relationship_type") or None,
            "use_guardian_email": use_guardian_email,
            "use_guardian_phone": use_guardian_phone,
            "use_guardian_address": self._checked("dependent_same_address"),
            "dependent": {**self._person("dependent", skip=skip), **self._disabilities()},
        }

    def _household_payload(self) -> dict[str, Any]:
        income: Decimal = self.income_validation.annual_income()
        return {
            "household_size": self.income_validation.household_size(),
            "annual_income": str(income.quantize(Decimal("0.01"))),
        }

    def serialize(self) -> dict[str, Any]:
        payload = {**self._applicant_payload(), **self._household_payload()}
        for proof_type, handler in self.proofs.items():
            payload[proof_type.field_name] = handler.submission() or {}
        payload["notes"] = self._value("notes") or None
        return payload

    # -- submission ------------------------------------------------------------

    async def submit(self) -> httpx.Response | None:
        submit_button = self.document.get("submit_button")
        if submit_button is not None and submit_button.disabled:
            logger.info("Submission blocked: income exceeds the threshold")
            return None
        if not self.paper_application.validate_form():
            return None
        if self.client is None:
            return None
        return await self._post(self.client.submit_paper_application, self.serialize())

    async def reject_for_income(self) -> httpx.Response | None:
        if not self.paper_application.exceeds_threshold or self.client is None:
            return None
        payload = {**self._applicant_payload(), **self._household_payload()}
        self.paper_application.close_rejection_modal()
        return await self._post(self.client.reject_for_income, payload)

    async def _post(
        self,
        send: Callable[[dict[str, Any]], Awaitable[httpx.Response]],
        payload: dict[str, Any],
    ) -> httpx.Response | None:
        try:
            response = await send(payload)
        except asyncio.CancelledError:
            raise
        except httpx.HTTPError:
            logger.exception("Paper application request failed")
            self.flash.show_error("Unable to reach the server. Please try again.")
            return None

        if response.is_success:
            self.paper_application.show_errors([])
            self.flash.show_success("Paper application saved.")
        else:
            self.paper_application.show_errors(_response_errors(response))
        return response


def _response_errors(response: httpx.Response) -> list[str]:
    fallback = [f"Request failed ({response.status_code})."]
    try:
        payload = response.json()
    except ValueError:
        return fallback
    detail = payload.get("detail") if isinstance(payload, dict) else None
    if isinstance(detail, str):
        return [detail]
    if isinstance(detail, list):
        return [
            str(item.get("msg", item)) if isinstance(item, dict) else str(item)
            for item in detail
        ]
    return fallback
