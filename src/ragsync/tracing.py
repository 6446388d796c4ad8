"""Nested progress reporting for long-running indexing work.

Indexing code talks to a :class:`Tracer` (steps and log lines); observers
read an :class:`IndexTracer`'s derived views (``title``, ``message``,
``percentage``) or subscribe to change notifications.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from contextlib import AbstractContextManager

logger = logging.getLogger(__name__)


class LogLevel(Enum):
    """Severity of a tracer log entry."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


_LOGGING_LEVELS: dict[LogLevel, int] = {
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


@dataclass(slots=True)
class Step:
    """One frame of the step stack.

    Attributes:
        topic: Sticky label shown in the title breadcrumb.
        message: Transient description of what the step does.
        completed: Number of finished child steps.
        total: Expected number of child steps, or ``None`` when the step
            is not progressable.
    """

    topic: str
    message: str
    completed: int = 0
    total: int | None = None


@dataclass(frozen=True, slots=True)
class LogEntry:
    """A single line of the flat log stream."""

    level: LogLevel
    message: str
    timestamp: datetime


@runtime_checkable
class Tracer(Protocol):
    """What indexing code needs to report progress."""

    def log(self, *parts: Any) -> None:
        """Append an info line."""
        ...

    def warning(self, *parts: Any) -> None:
        """Append a warning line."""
        ...

    def error(self, *parts: Any) -> None:
        """Append an error line."""
        ...

    def on_step_start(self, topic: str, message: str, total: int | None = None) -> None:
        """Open a nested step."""
        ...

    def on_step_end(self) -> None:
        """Close the innermost step and advance its parent by one."""
        ...

    def step(
        self, topic: str, message: str, total: int | None = None
    ) -> AbstractContextManager[None]:
        """Open a step for the duration of a ``with`` block."""
        ...


class IndexTracer:
    """Step-stack tracer with derived title, message, and percentage.

    The stack is owned by the tracer and mutated only through
    :meth:`on_step_start` / :meth:`on_step_end`.  Every mutation bumps
    :attr:`updated` and notifies subscribers; a failing subscriber is
    logged, never propagated.

    Usage::

        tracer = IndexTracer()
        with tracer.step("Indexing", "3 documents", total=3):
            for doc in docs:
                with tracer.step(doc.filename, "Embedding"):
                    ...
        tracer.percentage  # 100.0 once all children are done
    """

    def __init__(self) -> None:
        self._steps: list[Step] = []
        self._logs: list[LogEntry] = []
        self._subscribers: list[Callable[[IndexTracer], Any]] = []
        self.status: str = ""
        self.updated: int = 0

    # ------------------------------------------------------------------
    # Tracer protocol
    # ------------------------------------------------------------------

    def log(self, *parts: Any) -> None:
        """Append an info entry built from the stringified *parts*."""
        self._append(LogLevel.INFO, parts)

    def warning(self, *parts: Any) -> None:
        """Append a warning entry."""
        self._append(LogLevel.WARNING, parts)

    def error(self, *parts: Any) -> None:
        """Append an error entry."""
        self._append(LogLevel.ERROR, parts)

    def on_step_start(self, topic: str, message: str, total: int | None = None) -> None:
        """Push a new step; *total* of ``None`` marks it non-progressable."""
        if total is not None and total <= 0:
            total = None
        self._steps.append(Step(topic=topic, message=message, completed=0, total=total))
        self._touch()

    def on_step_end(self) -> None:
        """Pop the current step and increment the parent's ``completed``.

        Calling this with an empty stack is tolerated: nothing changes.
        """
        if not self._steps:
            logger.warning("on_step_end() called with no open step")
            return
        self._steps.pop()
        if self._steps:
            self._steps[-1].completed += 1
        self._touch()

    @contextmanager
    def step(self, topic: str, message: str, total: int | None = None) -> Iterator[None]:
        """Open a step that is closed on every exit path."""
        self.on_step_start(topic, message, total)
        try:
            yield
        finally:
            self.on_step_end()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, status: str = "running") -> None:
        """Reset and mark the tracer as running."""
        self.reset()
        self.status = status
        self._touch()

    def finish(self) -> None:
        """Mark the run finished and clear the stack and logs."""
        self.reset()
        self.status = "finished"
        self._touch()

    def fail(self, error: BaseException | str) -> None:
        """Record *error* and mark the run failed; the log is kept for display."""
        self._steps.clear()
        self.status = "failed"
        self._append(LogLevel.ERROR, (error,))

    def reset(self) -> None:
        """Clear the step stack and the log stream."""
        self._steps.clear()
        self._logs.clear()
        self.status = ""
        self.updated = 0

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def subscribe(self, callback: Callable[[IndexTracer], Any]) -> Callable[[], None]:
        """Call *callback* with the tracer after every change.

        Returns a function that removes the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    @property
    def steps(self) -> tuple[Step, ...]:
        """Snapshot of the open steps, outermost first."""
        return tuple(Step(s.topic, s.message, s.completed, s.total) for s in self._steps)

    @property
    def depth(self) -> int:
        return len(self._steps)

    @property
    def logs(self) -> tuple[LogEntry, ...]:
        return tuple(self._logs)

    @property
    def title(self) -> str:
        """Breadcrumb of open step topics with ``[completed/total]`` suffixes."""
        title = "".join(
            f"{s.topic} " + (f"[{s.completed}/{s.total}] " if s.total else "")
            for s in self._steps
        )
        return title or "Preparing..."

    @property
    def message(self) -> str:
        """The most recent log line, whichever step logged it."""
        if not self._logs:
            return "..."
        return self._logs[-1].message or "..."

    @property
    def percentage(self) -> float:
        """Weighted nested completion in ``[0, 100]``, one decimal.

        Each progressable step subdivides the unit of its parent: the
        outermost step spans 0–100, its child spans one ``1/total`` slice.
        """
        acc, scale = 0.0, 100.0
        for s in self._steps:
            if not s.total:
                continue
            done = min(max(s.completed, 0), s.total)
            acc += done / s.total * scale
            scale *= 1 / s.total
        return round(min(acc, 100.0), 1)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _append(self, level: LogLevel, parts: tuple[Any, ...]) -> None:
        message = " ".join(str(p) for p in parts)
        self._logs.append(LogEntry(level=level, message=message, timestamp=datetime.now(UTC)))
        logger.log(_LOGGING_LEVELS[level], "%s", message)
        self._touch()

    def _touch(self) -> None:
        self.updated += 1
        for callback in list(self._subscribers):
            try:
                callback(self)
            except Exception:
                logger.warning("Tracer subscriber %r failed", callback, exc_info=True)
