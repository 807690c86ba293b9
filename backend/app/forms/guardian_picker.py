from __future__ import annotations

import asyncio
import html
import logging
from collections.abc import Mapping
from typing import Any

import httpx

from app.forms.base import FormController
from app.forms.client import IntakeClient
from app.forms.debounce import SEARCH, SELECTION_CHANGE
from app.forms.elements import Element
from app.forms.events import SelectionChange
from app.forms.state import GuardianSelection
from app.forms.visibility import set_visible

logger = logging.getLogger(__name__)

MIN_SEARCH_LENGTH = 2

# User attribute -> hidden guardian field mirrored for the dependent copy helpers.
GUARDIAN_CONTACT_FIELDS = {
    "email": "guardian_email",
    "phone": "guardian_phone",
    "physical_address_1": "guardian_address1",
    "physical_address_2": "guardian_address2",
    "city": "guardian_city",
    "state": "guardian_state",
    "zip_code": "guardian_zip",
}


def render_guardian_details(user: Mapping[str, Any]) -> str:
    name = " ".join(
        part for part in (user.get("first_name"), user.get("last_name")) if part
    ) or user.get("full_name") or ""
    lines = [f"<strong>{html.escape(str(name))}</strong>"]
    for key in ("email", "phone"):
        if user.get(key):
            lines.append(html.escape(str(user[key])))
    address = ", ".join(
        str(user[key])
        for key in ("physical_address_1", "city", "state", "zip_code")
        if user.get(key)
    )
    if address:
        lines.append(html.escape(address))
    return "<div>" + "<br>".join(lines) + "</div>"


class GuardianPickerController(FormController):
    """Search for, create and hold the guardian chosen for a dependent."""

    identifier = "guardian-picker"
    target_names = {
        "search_pane": "guardian_search_pane",
        "selected_pane": "guardian_selected_pane",
        "guardian_id_field": "guardian_id",
        "details_container": "guardian_details",
        "search_results": "guardian_search_results",
        "status": "guardian_status",
    }

    def __init__(
        self,
        *args: Any,
        client: IntakeClient | None = None,
        role: str = "guardian",
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.client = client
        self.role = role
        self.selection = GuardianSelection()
        self._selection_change = self.debounce(self._emit_selection_change, SELECTION_CHANGE)
        self._debounced_search = self.debounce(self._start_search, SEARCH)
        self._search_task: asyncio.Task[None] | None = None

    @property
    def selected_value(self) -> bool:
        return self.selection.selected

    @property
    def search_task(self) -> asyncio.Task[None] | None:
        return self._search_task

    def connect(self) -> None:
        super().connect()
        hidden_value = self.with_target("guardian_id_field", lambda field: field.value, "")
        self.selection = GuardianSelection.from_hidden_value(hidden_value)
        self.toggle_panes()

    def disconnect(self) -> None:
        super().disconnect()
        self._search_task = None

    # -- selection ---------------------------------------------------------

    def select_guardian(
        self,
        guardian_id: str,
        display_html: str,
        attributes: Mapping[str, Any] | None = None,
    ) -> None:
        guardian_id = str(guardian_id)

        def _fill_hidden(field: Element) -> None:
            field.value = guardian_id

        def _fill_details(container: Element) -> None:
            container.html = display_html

        self.with_target("guardian_id_field", _fill_hidden)
        self.with_target("details_container", _fill_details)
        self._mirror_contact_fields(attributes or {})
        self.selection.select(guardian_id, display_html)
        self.toggle_panes()
        self.dispatch_selection_change()

    def clear_selection(self) -> None:
        def _clear_hidden(field: Element) -> None:
            field.value = ""

        def _clear_details(container: Element) -> None:
            container.html = ""

        self.with_target("guardian_id_field", _clear_hidden)
        self.with_target("details_container", _clear_details)
        self._mirror_contact_fields({})
        self.selection.clear()
        self.toggle_panes()
        self.dispatch_selection_change()

    def _mirror_contact_fields(self, attributes: Mapping[str, Any]) -> None:
        for key, name in GUARDIAN_CONTACT_FIELDS.items():
            field = self.document.get(name)
            if field is not None:
                field.value = str(attributes.get(key) or "")

    def toggle_panes(self) -> None:
        selected = self.selection.selected
        if self.has_target("search_pane"):
            set_visible(self.target("search_pane"), not selected)
        if self.has_target("selected_pane"):
            set_visible(self.target("selected_pane"), selected)

    def dispatch_selection_change(self) -> None:
        self._selection_change()

    def _emit_selection_change(self) -> None:
        self.dispatch(SelectionChange(selected_value=self.selection.selected))

    # -- search ------------------------------------------------------------

    def search(self, query: str) -> None:
        self._debounced_search(query)

    def _start_search(self, query: str) -> None:
        query = query.strip()
        if len(query) < MIN_SEARCH_LENGTH:
            if self._search_task is not None:
                self._search_task.cancel()
                self._search_task = None
            self._render_results("")
            return
        self._search_task = self.run_task(
            self._perform_search(query), supersedes=self._search_task
        )

    async def _perform_search(self, query: str) -> None:
        if self.client is None:
            return
        try:
            fragment = await self.client.search_guardians(query, role=self.role)
        except asyncio.CancelledError:
            # Superseded by a newer keystroke or torn down.
            raise
        except httpx.HTTPError:
            logger.exception("Guardian search failed for %r", query)
            self._show_status(["Unable to search guardians right now. Please try again."])
            return
        self._render_results(fragment)

    def _render_results(self, fragment: str) -> None:
        results = self.target("search_results")
        if results is None:
            return
        results.html = fragment
        set_visible(results, bool(fragment))

    # -- creation ----------------------------------------------------------

    async def create_guardian(self, data: Mapping[str, str]) -> bool:
        if self.client is None:
            return False
        try:
            result = await self.client.create_guardian(data)
        except asyncio.CancelledError:
            raise
        except (httpx.HTTPError, ValueError):
            logger.exception("Guardian creation request failed")
            self._show_status(["Unable to create guardian. Please try again."])
            return False

        if not result.success:
            self._show_status(result.errors or ["Guardian could not be created."])
            return False

        self.select_guardian(
            str(result.user["id"]), render_guardian_details(result.user), result.user
        )
        self._show_status([])
        if self.flash is not None:
            self.flash.show_success("Guardian created and selected.")
        return True

    def _show_status(self, messages: list[str]) -> None:
        status = self.target("status")
        if status is None:
            if messages and self.flash is not None:
                self.flash.show_error(" ".join(messages))
            return
        status.html = (
            "<ul>" + "".join(f"<li>{html.escape(m)}</li>" for m in messages) + "</ul>"
            if messages
            else ""
        )
        status.role = "alert" if messages else None
        set_visible(status, bool(messages), aria_hidden=not messages)
