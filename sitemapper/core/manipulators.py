"""The contract every sitemap stage implements."""

from __future__ import annotations

from dataclasses import dataclass
from numbers import Real
from typing import Callable, List, Protocol, Sequence, runtime_checkable

from .models import Resource

DEFAULT_PRIORITY = 50


@runtime_checkable
class ResourceListManipulator(Protocol):
    """A stage that transforms the accumulated resource list during a rebuild.

    ``transform`` receives the output of the previous stage and returns the
    list handed to the next one. It must not depend on state kept between
    rebuilds other than inputs it invalidates explicitly.
    """

    def transform(self, resources: List[Resource]) -> List[Resource]: ...


@dataclass(frozen=True)
class FunctionManipulator:
    """Adapter turning a plain function into a named stage."""

    name: str
    func: Callable[[List[Resource]], List[Resource]]

    def transform(self, resources: List[Resource]) -> List[Resource]:
        return list(self.func(resources))


@dataclass(frozen=True)
class ManipulatorEntry:
    name: str
    manipulator: ResourceListManipulator
    priority: float
    order: int


def coerce_priority(priority: object) -> float:
    # Older callers passed a boolean in the priority slot.
    if isinstance(priority, bool) or not isinstance(priority, Real):
        return DEFAULT_PRIORITY
    return priority  # type: ignore[return-value]


def sort_manipulators(entries: Sequence[ManipulatorEntry]) -> List[ManipulatorEntry]:
    """Order stages by priority, keeping registration order among equal priorities."""
    return sorted(entries, key=lambda entry: (entry.priority, entry.order))
