"""Explicit view state for the paper application form.

These objects are the source of truth for the controllers; the element tree
only mirrors them (hidden fields, visibility flags) at the boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from app.forms.rules import (
    ProofState,
    ProofType,
    calculate_threshold,
    proof_error,
    proof_state,
)
from app.models import ApplicantType, ProofAction


@dataclass
class ApplicantSelection:
    mode: ApplicantType = ApplicantType.SELF
    guardian_chosen: bool = False

    @property
    def is_dependent_selected(self) -> bool:
        return self.mode is ApplicantType.DEPENDENT

    def choose(self, mode: ApplicantType) -> bool:
        """Apply a radio choice; switching to self is refused while a guardian is chosen."""
        if self.guardian_chosen and mode is ApplicantType.SELF:
            return False
        self.mode = mode
        return True

    def guardian_selected(self) -> None:
        self.guardian_chosen = True
        self.mode = ApplicantType.DEPENDENT

    def guardian_cleared(self) -> None:
        # Clearing the guardian keeps the dependent flow selected.
        self.guardian_chosen = False

    def as_key(self) -> tuple[bool, bool]:
        return (self.is_dependent_selected, self.guardian_chosen)


@dataclass
class GuardianSelection:
    selected: bool = False
    guardian_id: str | None = None
    display_html: str = ""

    @classmethod
    def from_hidden_value(cls, value: str | None) -> GuardianSelection:
        guardian_id = (value or "").strip()
        return cls(selected=bool(guardian_id), guardian_id=guardian_id or None)

    def select(self, guardian_id: str, display_html: str) -> None:
        self.selected = True
        self.guardian_id = guardian_id
        self.display_html = display_html

    def clear(self) -> None:
        self.selected = False
        self.guardian_id = None
        self.display_html = ""


@dataclass(frozen=True, slots=True)
class AttachedFile:
    filename: str
    signed_id: str | None = None
    content_type: str | None = None
    byte_size: int | None = None


@dataclass
class ProofDecision:
    proof_type: ProofType
    action: ProofAction | None = None
    file: AttachedFile | None = None
    rejection_reason: str | None = None
    rejection_notes: str = ""

    def choose(self, action: ProofAction) -> None:
        self.action = action
        if action is ProofAction.REJECT:
            self.file = None

    def attach(self, file: AttachedFile | None) -> None:
        self.file = file

    def select_reason(self, reason: str | None) -> None:
        self.rejection_reason = (reason or "").strip() or None

    @property
    def state(self) -> ProofState:
        return proof_state(
            action=self.action.value if self.action else None,
            has_file=self.file is not None,
            has_reason=bool(self.rejection_reason),
        )

    @property
    def error(self) -> str | None:
        return proof_error(self.proof_type, self.state)


@dataclass
class IncomeThresholdState:
    household_size: int = 0
    annual_income: Decimal = Decimal(0)
    thresholds: dict[int, Decimal] = field(default_factory=dict)
    modifier_percent: Decimal | None = None
    fetch_failed: bool = False

    @property
    def evaluable(self) -> bool:
        return self.household_size >= 1 and self.annual_income >= 1

    @property
    def threshold(self) -> Decimal:
        return calculate_threshold(
            self.household_size, self.thresholds, self.modifier_percent
        )

    @property
    def exceeds_threshold(self) -> bool:
        if self.fetch_failed or not self.evaluable:
            return False
        return self.annual_income > self.threshold
