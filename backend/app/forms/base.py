"""Shared plumbing for form controllers.

A controller owns a slice of the element tree, named through ``target_names``
(role -> element name, or a tuple of names for multi-element roles). Missing
targets are normal on pages that do not render every section, so every
accessor degrades to ``None``/no-op instead of raising.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine, Mapping
from typing import Any, ClassVar, TypeVar

from app.forms.debounce import Debouncer, DebouncePolicy, Scheduler
from app.forms.elements import Element, FormDocument
from app.forms.events import EventBus, FormEvent
from app.forms.flash import FlashMessages

logger = logging.getLogger(__name__)

T = TypeVar("T")
E = TypeVar("E", bound=FormEvent)


class FormController:
    identifier: ClassVar[str] = "form"
    target_names: ClassVar[Mapping[str, str | tuple[str, ...]]] = {}

    def __init__(
        self,
        document: FormDocument,
        bus: EventBus,
        scheduler: Scheduler,
        *,
        flash: FlashMessages | None = None,
        targets: Mapping[str, str | tuple[str, ...]] | None = None,
    ) -> None:
        self.document = document
        self.bus = bus
        self.scheduler = scheduler
        self.flash = flash
        self._target_names = {**self.target_names, **(targets or {})}
        self._debouncers: list[Debouncer[Any]] = []
        self._unsubscribers: list[Callable[[], None]] = []
        self._tasks: set[asyncio.Task[Any]] = set()
        self.connected = False

    # -- lifecycle ---------------------------------------------------------

    def connect(self) -> None:
        self.connected = True

    def disconnect(self) -> None:
        self.connected = False
        for debouncer in self._debouncers:
            debouncer.cancel()
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        for task in list(self._tasks):
            task.cancel()

    # -- targets -----------------------------------------------------------

    def target(self, role: str) -> Element | None:
        name = self._target_names.get(role)
        if name is None:
            return None
        if isinstance(name, tuple):
            name = name[0]
        return self.document.get(name)

    def targets(self, role: str) -> list[Element]:
        names = self._target_names.get(role)
        if names is None:
            return []
        if isinstance(names, str):
            names = (names,)
        return [
            element
            for element in (self.document.get(name) for name in names)
            if element is not None
        ]

    def has_target(self, role: str) -> bool:
        return self.target(role) is not None

    def has_required_targets(self, *roles: str) -> bool:
        missing = [role for role in roles if not self.has_target(role)]
        if missing:
            logger.debug("%s: missing targets %s", self.identifier, ", ".join(missing))
            return False
        return True

    def with_target(
        self, role: str, func: Callable[[Element], T], default: T | None = None
    ) -> T | None:
        element = self.target(role)
        return func(element) if element is not None else default

    # -- events and timing -------------------------------------------------

    def debounce(self, func: Callable[..., T], policy: DebouncePolicy) -> Debouncer[T]:
        debouncer = Debouncer(func, policy, self.scheduler)
        self._debouncers.append(debouncer)
        return debouncer

    def dispatch(self, event: FormEvent) -> None:
        self.bus.publish(event)

    def listen(self, event_type: type[E], callback: Callable[[E], None]) -> None:
        self._unsubscribers.append(self.bus.subscribe(event_type, callback))

    def run_task(
        self, coroutine: Coroutine[Any, Any, T], *, supersedes: asyncio.Task[Any] | None = None
    ) -> asyncio.Task[T]:
        """Start a request task owned by this controller.

        Passing the previous task as ``supersedes`` cancels it first, which
        is how a new keystroke aborts an older search.
        """
        if supersedes is not None and not supersedes.done():
            supersedes.cancel()
        task = asyncio.ensure_future(coroutine)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def report_error(self, message: str) -> None:
        logger.exception("%s: %s", self.identifier, message)
        if self.flash is not None:
            self.flash.show_error(message)
