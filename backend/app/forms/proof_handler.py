from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from app.forms.base import FormController
from app.forms.client import IntakeClient
from app.forms.elements import Element
from app.forms.rules import (
    ProofState,
    ProofType,
    format_rejection_reason,
    rejection_instructions,
)
from app.forms.state import AttachedFile, ProofDecision
from app.forms.visibility import set_visible
from app.models import ProofAction

logger = logging.getLogger(__name__)


def proof_target_names(proof_type: ProofType) -> dict[str, str]:
    prefix = proof_type.field_name
    return {
        "accept_radio": f"{prefix}_accept",
        "reject_radio": f"{prefix}_reject",
        "upload_section": f"{prefix}_upload_section",
        "rejection_section": f"{prefix}_rejection_section",
        "file_input": f"{prefix}_file",
        "signed_id": f"{prefix}_signed_id",
        "rejection_reason_select": f"{prefix}_rejection_reason",
        "rejection_notes": f"{prefix}_rejection_notes",
        "reason_preview": f"{prefix}_reason_preview",
    }


class DocumentProofHandlerController(FormController):
    """Accept/reject handling for one proof document (income or residency).

    Accepting enables the file input; rejecting clears any attached file and
    its signed upload id and makes the rejection reason required.
    """

    identifier = "document-proof-handler"

    def __init__(
        self,
        *args: Any,
        proof_type: ProofType,
        client: IntakeClient | None = None,
        **kwargs: Any,
    ) -> None:
        targets = {**proof_target_names(proof_type), **(kwargs.pop("targets", None) or {})}
        super().__init__(*args, targets=targets, **kwargs)
        self.proof_type = proof_type
        self.client = client
        self.decision = ProofDecision(proof_type)

    def connect(self) -> None:
        super().connect()
        self.read_decision()
        self.update_visibility()

    # -- state ---------------------------------------------------------------

    def read_decision(self) -> ProofDecision:
        """Refresh the decision from the rendered inputs."""
        accept = self.target("accept_radio")
        reject = self.target("reject_radio")
        if accept is not None and accept.checked:
            self.decision.action = ProofAction.ACCEPT
        elif reject is not None and reject.checked:
            self.decision.action = ProofAction.REJECT
        else:
            self.decision.action = None

        file_input = self.target("file_input")
        signed_id = self.with_target("signed_id", lambda hidden: hidden.value, "") or None
        if self.decision.action is ProofAction.ACCEPT and file_input is not None and (
            file_input.value or file_input.files
        ):
            filename = file_input.value or file_input.files[0]
            self.decision.attach(AttachedFile(filename=filename, signed_id=signed_id))
        else:
            self.decision.attach(None)

        self.decision.select_reason(
            self.with_target("rejection_reason_select", lambda select: select.value, "")
        )
        self.decision.rejection_notes = (
            self.with_target("rejection_notes", lambda notes: notes.value, "") or ""
        )
        return self.decision

    @property
    def state(self) -> ProofState:
        return self.read_decision().state

    @property
    def error(self) -> str | None:
        return self.read_decision().error

    def submission(self) -> dict[str, Any] | None:
        decision = self.read_decision()
        if decision.action is None:
            return None
        return {
            "action": decision.action.value,
            "signed_id": decision.file.signed_id if decision.file else None,
            "rejection_reason": decision.rejection_reason,
            "rejection_notes": decision.rejection_notes or None,
        }

    # -- actions -------------------------------------------------------------

    def toggle_proof_action(self, action: ProofAction | str | None = None) -> None:
        if action is not None:
            action = ProofAction(action)
            for role, value in (
                ("accept_radio", ProofAction.ACCEPT),
                ("reject_radio", ProofAction.REJECT),
            ):
                radio = self.target(role)
                if radio is not None:
                    radio.checked = action is value
        self.update_visibility()

    def update_visibility(self) -> None:
        if not self.has_required_targets("accept_radio", "upload_section", "rejection_section"):
            return

        accept = self.target("accept_radio")
        is_accepted = accept is not None and accept.checked
        reject = self.target("reject_radio")
        is_rejected = reject is not None and reject.checked

        if is_accepted:
            self.decision.choose(ProofAction.ACCEPT)
        elif is_rejected:
            self.decision.choose(ProofAction.REJECT)

        set_visible(self.target("upload_section"), is_accepted)
        set_visible(self.target("rejection_section"), not is_accepted)

        def _toggle_file_input(file_input: Element) -> None:
            file_input.disabled = not is_accepted
            if not is_accepted:
                file_input.value = ""
                file_input.files = []

        self.with_target("file_input", _toggle_file_input)
        if not is_accepted:
            self.with_target("signed_id", self._clear_signed_id)
            self.decision.attach(None)

        def _toggle_reason_required(select: Element) -> None:
            select.required = is_rejected

        self.with_target("rejection_reason_select", _toggle_reason_required)
        if is_accepted:
            self.with_target("rejection_notes", self._drop_required)

    @staticmethod
    def _drop_required(element: Element) -> None:
        element.required = False

    @staticmethod
    def _clear_signed_id(hidden: Element) -> None:
        hidden.value = ""

    def select_reason(self, reason: str | None) -> None:
        select = self.target("rejection_reason_select")
        if select is not None:
            select.value = reason or ""
        self.decision.select_reason(reason)
        self.preview_rejection_reason()
        self.populate_rejection_notes()

    def preview_rejection_reason(self) -> None:
        preview = self.target("reason_preview")
        if preview is None:
            return
        reason = self.decision.rejection_reason
        if reason:
            preview.text = format_rejection_reason(reason)
            set_visible(preview, True)
        else:
            set_visible(preview, False)

    def populate_rejection_notes(self) -> None:
        notes = self.target("rejection_notes")
        reason = self.decision.rejection_reason
        # Never overwrite notes the admin already typed.
        if notes is None or not reason or notes.value:
            return
        notes.value = f"{format_rejection_reason(reason)} {rejection_instructions(reason)}"
        self.decision.rejection_notes = notes.value

    # -- uploads -------------------------------------------------------------

    async def attach_file(
        self, filename: str, content: bytes, content_type: str
    ) -> AttachedFile | None:
        """Upload a scanned proof and record its signed id on the form."""
        file_input = self.target("file_input")
        if self.decision.action is not ProofAction.ACCEPT or (
            file_input is not None and file_input.disabled
        ):
            logger.debug("Ignoring %s upload while not accepting", self.proof_type.label)
            return None

        if self.client is None:
            attached = AttachedFile(
                filename=filename, content_type=content_type, byte_size=len(content)
            )
        else:
            try:
                attached = await self.client.direct_upload(filename, content, content_type)
            except asyncio.CancelledError:
                raise
            except (httpx.HTTPError, KeyError, ValueError):
                logger.exception("Direct upload failed for %s", self.proof_type.label)
                if self.flash is not None:
                    self.flash.show_error(
                        f"Unable to upload {self.proof_type.label} document. Please try again."
                    )
                return None

        # The admin may have switched to reject while the upload was in flight.
        if self.decision.action is not ProofAction.ACCEPT:
            return None

        if file_input is not None:
            file_input.value = attached.filename
            file_input.files = [attached.filename]
        if attached.signed_id:
            self._signed_id_field().value = attached.signed_id
        self.decision.attach(attached)
        return attached

    def _signed_id_field(self) -> Element:
        hidden = self.target("signed_id")
        if hidden is None:
            hidden = self.document.add(
                Element(str(self._target_names["signed_id"]), kind="hidden")
            )
        return hidden
