"""Element tree standing in for the rendered form.

Controllers only read and write these elements at the edges; their own
decisions are made from typed state (see ``app.forms.state``).
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

FIELD_KINDS = frozenset(
    {"input", "select", "textarea", "checkbox", "radio", "hidden", "file"}
)


@dataclass(eq=False)
class Element:
    name: str
    kind: str = "div"
    value: str = ""
    group: str | None = None
    visible: bool = True
    required: bool = False
    disabled: bool = False
    checked: bool = False
    title: str = ""
    html: str = ""
    text: str = ""
    role: str | None = None
    aria_hidden: bool | None = None
    files: list[str] = field(default_factory=list)
    data: dict[str, str] = field(default_factory=dict)
    children: list[Element] = field(default_factory=list)
    scrolled_into_view: bool = False

    @property
    def is_field(self) -> bool:
        return self.kind in FIELD_KINDS

    def append(self, child: Element) -> Element:
        self.children.append(child)
        return child

    def iter_descendants(self) -> Iterator[Element]:
        for child in self.children:
            yield child
            yield from child.iter_descendants()

    def form_fields(self) -> list[Element]:
        return [element for element in self.iter_descendants() if element.is_field]

    def find(self, name: str) -> Element | None:
        for element in self.iter_descendants():
            if element.name == name:
                return element
        return None

    def remove(self, name: str) -> Element | None:
        for index, child in enumerate(self.children):
            if child.name == name:
                return self.children.pop(index)
            removed = child.remove(name)
            if removed is not None:
                return removed
        return None


class FormDocument:
    """Name-indexed view over an element tree rooted at a form element."""

    def __init__(self, root: Element | None = None) -> None:
        self.root = root or Element("form", kind="form")

    def get(self, name: str) -> Element | None:
        if self.root.name == name:
            return self.root
        return self.root.find(name)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def add(self, element: Element, *, parent: str | None = None) -> Element:
        container = self.get(parent) if parent else self.root
        if container is None:
            raise KeyError(parent)
        return container.append(element)

    def remove(self, name: str) -> Element | None:
        return self.root.remove(name)

    def radio_group(self, group: str) -> list[Element]:
        return [
            element
            for element in self.root.iter_descendants()
            if element.kind == "radio" and element.group == group
        ]

    def values(self) -> dict[str, str]:
        """Submittable name/value pairs, skipping disabled and unchecked inputs."""
        data: dict[str, str] = {}
        for element in self.root.form_fields():
            if element.disabled:
                continue
            if element.kind in {"checkbox", "radio"}:
                if element.checked:
                    data[element.group or element.name] = element.value
                continue
            data[element.name] = element.value
        return data
