import logging

from app.forms.elements import Element

logger = logging.getLogger(__name__)


def set_visible(
    element: Element | None,
    visible: bool,
    *,
    required: bool | None = None,
    aria_hidden: bool | None = None,
) -> Element | None:
    """Show or hide an element, optionally managing its required flag.

    ``required`` only sticks while the element is visible; hiding an element
    always drops it.
    """
    if element is None:
        logger.warning("set_visible: element is missing")
        return None

    element.visible = visible

    if required is not None:
        element.required = required and visible

    if aria_hidden is not None:
        element.aria_hidden = aria_hidden

    return element


def show(element: Element | None, *, required: bool | None = None) -> Element | None:
    return set_visible(element, True, required=required)


def hide(element: Element | None, *, required: bool | None = None) -> Element | None:
    return set_visible(element, False, required=required)


def toggle(element: Element | None, *, required: bool | None = None) -> Element | None:
    if element is None:
        logger.warning("toggle: element is missing")
        return None
    return set_visible(element, not element.visible, required=required)


def set_fields_disabled(section: Element | None, disabled: bool) -> None:
    if section is None:
        return
    for field in section.form_fields():
        field.disabled = disabled
