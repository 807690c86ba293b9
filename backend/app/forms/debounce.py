"""Named debounce policies and a scheduler-driven debouncer.

Every controller debounces through one of the policies below instead of
picking its own delay. The scheduler is anything with an asyncio-style
``call_later(delay, callback, *args)`` returning a cancellable handle, so the
running event loop can be passed directly.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(
        self, delay: float, callback: Callable[..., object], *args: Any
    ) -> TimerHandle: ...


@dataclass(frozen=True, slots=True)
class DebouncePolicy:
    name: str
    delay_ms: int

    @property
    def delay(self) -> float:
        return self.delay_ms / 1000


# Intra-page recomputation (applicant type refresh); feels instant to a human.
UI_RECOMPUTE = DebouncePolicy("ui_recompute", 10)
# Guardian selection notifications; collapses programmatic re-selection.
SELECTION_CHANGE = DebouncePolicy("selection_change", 16)
# Reactions to another controller's form-level change events.
FORM_CHANGE = DebouncePolicy("form_change", 300)
# Keystroke-driven network requests.
SEARCH = DebouncePolicy("search", 300)

# Transient status messages hide themselves after this many seconds.
STATUS_MESSAGE_TTL = 3.0


def running_loop_scheduler() -> Scheduler:
    return asyncio.get_running_loop()


class Debouncer(Generic[T]):
    """Trailing-edge debounce (optionally leading-edge) with cancel and flush."""

    def __init__(
        self,
        func: Callable[..., T],
        policy: DebouncePolicy,
        scheduler: Scheduler,
        *,
        leading: bool = False,
        trailing: bool | None = None,
    ) -> None:
        self.func = func
        self.policy = policy
        self.scheduler = scheduler
        self.leading = leading
        self.trailing = (not leading) if trailing is None else trailing
        self._handle: TimerHandle | None = None
        self._args: tuple[Any, ...] = ()
        self._kwargs: dict[str, Any] = {}
        self._result: T | None = None

    def __call__(self, *args: Any, **kwargs: Any) -> T | None:
        self._args = args
        self._kwargs = kwargs
        call_now = self.leading and self._handle is None

        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

        if call_now:
            self._result = self.func(*args, **kwargs)

        if self.trailing:
            self._handle = self.scheduler.call_later(self.policy.delay, self._fire)
        elif self.leading:
            # Leading-only still needs a quiet window before it can fire again.
            self._handle = self.scheduler.call_later(self.policy.delay, self._reset)

        return self._result

    def _fire(self) -> None:
        self._handle = None
        self._result = self.func(*self._args, **self._kwargs)

    def _reset(self) -> None:
        self._handle = None

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def flush(self) -> T | None:
        if self._handle is None:
            return None
        self._handle.cancel()
        self._handle = None
        if not self.trailing:
            return None
        self._result = self.func(*self._args, **self._kwargs)
        return self._result

    def pending(self) -> bool:
        return self._handle is not None
