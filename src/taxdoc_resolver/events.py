"""Checkpoint events emitted during a resolution call.

The resolver reports a small set of named checkpoints (model chosen,
fallback triggered, reclassification fired, correction applied) as
ResolutionEvent objects sent to an injectable sink. The default sink
forwards them to structlog.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

import structlog

logger = structlog.get_logger()

MODEL_SELECTED = "model_selected"
FALLBACK_TRIGGERED = "fallback_triggered"
RECLASSIFICATION_FIRED = "reclassification_fired"
CORRECTION_APPLIED = "correction_applied"
RESOLUTION_COMPLETED = "resolution_completed"

_LEVELS = {"debug", "info", "warning", "error", "critical"}


@dataclass(frozen=True)
class ResolutionEvent:
    """A leveled, structured checkpoint record."""
    name: str
    level: str = "info"
    fields: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.level not in _LEVELS:
            raise ValueError(f"Invalid event level: {self.level}. Must be one of: {_LEVELS}")


@runtime_checkable
class EventSink(Protocol):
    """Anything that can receive resolution checkpoints."""

    def emit(self, event: ResolutionEvent) -> None:
        ...


class StructlogEventSink:
    """Forward checkpoints to a structlog logger at the event's level."""

    def __init__(self, bound_logger: Any = None) -> None:
        self._logger = bound_logger if bound_logger is not None else logger

    def emit(self, event: ResolutionEvent) -> None:
        getattr(self._logger, event.level)(event.name, **event.fields)


class RecordingEventSink:
    """Keep checkpoints in memory, in emission order."""

    def __init__(self) -> None:
        self.events: list[ResolutionEvent] = []

    def emit(self, event: ResolutionEvent) -> None:
        self.events.append(event)

    def names(self) -> list[str]:
        return [e.name for e in self.events]

    def named(self, name: str) -> list[ResolutionEvent]:
        return [e for e in self.events if e.name == name]


def configure_logging(level: str = "INFO") -> None:
    """Install a level filter on structlog's default logger factory."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Invalid log level: {level}")
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(numeric))
