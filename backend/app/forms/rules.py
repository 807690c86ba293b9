"""Pure rules behind the paper application form.

Both the form controllers and the server-side submission check use these, so
a form the controllers allow is exactly a form the API accepts.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

MAX_HOUSEHOLD_SIZE = 8

DEFAULT_FPL_THRESHOLDS: dict[int, Decimal] = {
    1: Decimal(15650),
    2: Decimal(21150),
    3: Decimal(26650),
    4: Decimal(32150),
    5: Decimal(37650),
    6: Decimal(43150),
    7: Decimal(48650),
    8: Decimal(54150),
}
DEFAULT_FPL_MODIFIER = Decimal(400)

DEFAULT_STATE = "MD"

GUARDIAN_LOCK_TITLE = "Guardian selected – switch enabled after clearing selection"


@dataclass(frozen=True, slots=True)
class SectionVisibility:
    dependent_selected: bool
    guardian_chosen: bool
    radio_section: bool
    guardian_section: bool
    dependent_with_guardian_sections: bool
    adult_section: bool
    common_sections: bool

    @property
    def dependent_fields_required(self) -> bool:
        return self.dependent_with_guardian_sections

    @property
    def radios_locked(self) -> bool:
        return self.guardian_chosen


def section_visibility(*, dependent_selected: bool, guardian_chosen: bool) -> SectionVisibility:
    # A chosen guardian always means the dependent flow.
    if guardian_chosen:
        dependent_selected = True

    adult_flow = not dependent_selected and not guardian_chosen
    dependent_with_guardian = dependent_selected and guardian_chosen
    return SectionVisibility(
        dependent_selected=dependent_selected,
        guardian_chosen=guardian_chosen,
        radio_section=not guardian_chosen,
        guardian_section=dependent_selected,
        dependent_with_guardian_sections=dependent_with_guardian,
        adult_section=adult_flow,
        common_sections=adult_flow or dependent_with_guardian,
    )


# ---------------------------------------------------------------------------
# Income threshold
# ---------------------------------------------------------------------------


def calculate_threshold(
    household_size: int,
    thresholds: dict[int, Decimal],
    modifier_percent: Decimal | int | None,
) -> Decimal:
    """Income ceiling for a household: the FPL base for its size times the modifier.

    Household sizes above eight use the eight-person figure. Sizes missing
    from ``thresholds`` fall back to the default table, and a missing or zero
    modifier falls back to 400%.
    """
    size = min(household_size, MAX_HOUSEHOLD_SIZE)
    base = thresholds.get(size) or DEFAULT_FPL_THRESHOLDS.get(size, Decimal(0))
    modifier = Decimal(modifier_percent) if modifier_percent else DEFAULT_FPL_MODIFIER
    return base * modifier / Decimal(100)


def exceeds_threshold(
    *,
    annual_income: Decimal,
    household_size: int,
    thresholds: dict[int, Decimal],
    modifier_percent: Decimal | int | None,
) -> bool:
    return annual_income > calculate_threshold(
        household_size, thresholds, modifier_percent
    )


def parse_thresholds(raw: dict[str, object] | dict[int, object] | None) -> dict[int, Decimal]:
    """Normalize a ``{"1": 15650, ...}`` payload, dropping unusable entries."""
    parsed: dict[int, Decimal] = {}
    for key, value in (raw or {}).items():
        try:
            size = int(key)
            amount = Decimal(str(value))
        except (TypeError, ValueError, ArithmeticError):
            continue
        if size >= 1 and amount.is_finite() and amount > 0:
            parsed[size] = amount
    return parsed


# ---------------------------------------------------------------------------
# Proof decisions
# ---------------------------------------------------------------------------


class ProofType(str, Enum):
    INCOME = "income"
    RESIDENCY = "residency"

    @property
    def field_name(self) -> str:
        return f"{self.value}_proof"

    @property
    def label(self) -> str:
        return f"{self.value} proof"


class ProofState(str, Enum):
    UNSET = "unset"
    ACCEPT_PENDING_FILE = "accept_pending_file"
    ACCEPT_WITH_FILE = "accept_with_file"
    REJECT_PENDING_REASON = "reject_pending_reason"
    REJECT_WITH_REASON = "reject_with_reason"

    @property
    def submittable(self) -> bool:
        return self in {ProofState.ACCEPT_WITH_FILE, ProofState.REJECT_WITH_REASON}


def proof_state(*, action: str | None, has_file: bool, has_reason: bool) -> ProofState:
    if action == "accept":
        return ProofState.ACCEPT_WITH_FILE if has_file else ProofState.ACCEPT_PENDING_FILE
    if action == "reject":
        return (
            ProofState.REJECT_WITH_REASON if has_reason else ProofState.REJECT_PENDING_REASON
        )
    return ProofState.UNSET


def proof_error(proof_type: ProofType, state: ProofState) -> str | None:
    if state is ProofState.UNSET:
        return f"Please select an option for {proof_type.label}"
    if state is ProofState.ACCEPT_PENDING_FILE:
        return f"Please upload an {proof_type.label} document"
    if state is ProofState.REJECT_PENDING_REASON:
        return f"Please select a reason for rejecting {proof_type.label}"
    return None


REJECTION_REASONS: dict[str, str] = {
    "address_mismatch": "The address on the document does not match the application address.",
    "expired": "The document has expired or is not within the required date range.",
    "missing_name": "The document does not clearly show the applicant's name.",
    "wrong_document": "This is not an acceptable document type for this proof.",
    "missing_amount": "The income amount is not clearly visible on the document.",
    "exceeds_threshold": "The income shown exceeds the program's threshold.",
    "outdated_ss_award": "The Social Security award letter is from a previous year.",
    "other": "There is an issue with this document. Please see notes for details.",
}

REJECTION_INSTRUCTIONS: dict[str, str] = {
    "address_mismatch": "Please provide a document that shows your current address.",
    "expired": "Please provide a current document that is not expired.",
    "missing_name": "Please provide a document that clearly shows your name.",
    "wrong_document": "Please provide an acceptable document type for this proof.",
    "missing_amount": "Please provide a document that clearly shows the income amount.",
    "exceeds_threshold": "Unfortunately, your income exceeds the program eligibility threshold.",
    "outdated_ss_award": "Please provide your most recent Social Security award letter.",
    "other": "Please contact us for more information about the required documentation.",
}


def format_rejection_reason(reason_code: str) -> str:
    return REJECTION_REASONS.get(
        reason_code, "This document was rejected. Please provide a valid document."
    )


def rejection_instructions(reason_code: str) -> str:
    return REJECTION_INSTRUCTIONS.get(
        reason_code, "Please provide the required documentation."
    )
