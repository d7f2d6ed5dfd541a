"""The sitemap store.

The store owns an ordered chain of resource-list manipulators. Reading from the
store lazily re-runs the whole chain when it has been invalidated, then rebuilds
the lookup indices from the result. Every path parameter is a *source* path
unless the method name says otherwise.
"""

from __future__ import annotations

import logging
import threading
from pathlib import PurePosixPath
from typing import Callable, Dict, List, Optional

from ..config import SiteConfig
from ..errors import DestinationCollisionError
from ..paths import Matcher, normalize_path, path_match, remove_templating_extensions
from .manipulators import (
    DEFAULT_PRIORITY,
    FunctionManipulator,
    ManipulatorEntry,
    ResourceListManipulator,
    coerce_priority,
    sort_manipulators,
)
from .models import Resource

logger = logging.getLogger(__name__)


class Store:
    def __init__(self, config: Optional[SiteConfig] = None) -> None:
        self.config = config or SiteConfig()

        # Guards all store state; rebuilds run while holding it.
        self._lock = threading.RLock()

        self._resources: List[Resource] = []
        self._lookup_by_path: Dict[str, Resource] = {}
        self._lookup_by_destination_path: Dict[str, Resource] = {}
        self._resources_not_ignored: Optional[List[Resource]] = None

        self._manipulators: List[ManipulatorEntry] = []
        self._registrations = 0
        self._ignores: List[Matcher] = []

        self._needs_rebuild = True
        self._rebuilding = False
        self._rebuild_counter = 0

    # ------------------------------------------------------------ registration --
    def register_manipulator(
        self,
        name: str,
        manipulator: ResourceListManipulator | Callable[[List[Resource]], List[Resource]],
        priority: float = DEFAULT_PRIORITY,
    ) -> None:
        """Add a stage to the chain.

        Stages run in ascending ``priority``; stages with the same priority run
        in registration order. Duplicate names are allowed and both run.
        """
        if not isinstance(manipulator, ResourceListManipulator):
            if not callable(manipulator):
                raise TypeError(f"Manipulator {name!r} must define transform() or be callable")
            manipulator = FunctionManipulator(name, manipulator)
        with self._lock:
            self._registrations += 1
            entry = ManipulatorEntry(
                name=name,
                manipulator=manipulator,
                priority=coerce_priority(priority),
                order=self._registrations,
            )
            self._manipulators = sort_manipulators([*self._manipulators, entry])
            self.invalidate(f"registered {name}")

    @property
    def manipulators(self) -> List[ManipulatorEntry]:
        with self._lock:
            return list(self._manipulators)

    def ignore(self, matcher: Matcher) -> None:
        """Exclude resources whose source path matches ``matcher`` from :meth:`list_resources`."""
        with self._lock:
            self._ignores.append(matcher)
            self._resources_not_ignored = None
            self.invalidate("added ignore rule")

    def is_ignored(self, resource: Resource) -> bool:
        with self._lock:
            ignores = list(self._ignores)
        for matcher in ignores:
            if path_match(matcher, resource.path):
                return True
            if resource.source_file and path_match(matcher, resource.source_file):
                return True
        return False

    # ----------------------------------------------------------------- rebuild --
    def invalidate(self, reason: Optional[str] = None) -> None:
        """Mark the resource list stale; the next read rebuilds it."""
        with self._lock:
            self._needs_rebuild = True
        if reason:
            logger.debug("Sitemap invalidated: %s", reason)

    @property
    def rebuild_counter(self) -> int:
        with self._lock:
            return self._rebuild_counter

    @property
    def dirty(self) -> bool:
        with self._lock:
            return self._needs_rebuild

    def ensure_updated(self) -> None:
        """Re-run the manipulator chain if the store has been invalidated.

        A stage that raises leaves the store dirty and the previously published
        list and indices untouched; the exception reaches the caller. Reads made
        by a stage during the rebuild see the previous list.
        """
        with self._lock:
            if not self._needs_rebuild or self._rebuilding:
                return
            self._needs_rebuild = False
            self._rebuilding = True
            logger.debug("== Rebuilding resource list")
            try:
                resources: List[Resource] = []
                for entry in list(self._manipulators):
                    resources = list(entry.manipulator.transform(resources))
                by_path, by_destination = self._build_indices(resources)
            except BaseException:
                self._needs_rebuild = True
                raise
            finally:
                self._rebuilding = False

            self._resources = resources
            self._lookup_by_path = by_path
            self._lookup_by_destination_path = by_destination
            self._resources_not_ignored = None
            self._rebuild_counter += 1
            logger.debug(
                "Rebuilt %d resources from %d manipulators (rebuild %d)",
                len(resources),
                len(self._manipulators),
                self._rebuild_counter,
            )

    def _build_indices(
        self, resources: List[Resource]
    ) -> tuple[Dict[str, Resource], Dict[str, Resource]]:
        by_path: Dict[str, Resource] = {}
        by_destination: Dict[str, Resource] = {}
        for resource in resources:
            if self.config.detect_destination_collisions:
                existing = by_destination.get(resource.destination_path)
                if existing is not None and existing is not resource:
                    raise DestinationCollisionError(
                        resource.destination_path, existing.path, resource.path
                    )
            by_path[resource.path] = resource
            by_destination[resource.destination_path] = resource
        return by_path, by_destination

    # ------------------------------------------------------------------- reads --
    def find_by_path(self, request_path: str) -> Optional[Resource]:
        """Find a resource by its source path."""
        request_path = normalize_path(request_path)
        with self._lock:
            self.ensure_updated()
            return self._lookup_by_path.get(request_path)

    def find_by_destination_path(self, request_path: str) -> Optional[Resource]:
        """Find a resource by its destination (output) path."""
        request_path = normalize_path(request_path)
        with self._lock:
            self.ensure_updated()
            return self._lookup_by_destination_path.get(request_path)

    def list_resources(self, include_ignored: bool = False) -> List[Resource]:
        with self._lock:
            self.ensure_updated()
            if include_ignored:
                return list(self._resources)
            if self._resources_not_ignored is None:
                self._resources_not_ignored = [r for r in self._resources if not r.ignored]
            return list(self._resources_not_ignored)

    # ------------------------------------------------------------------- paths --
    def file_to_path(self, file: str) -> Optional[str]:
        """Source path for an on-disk file, or None if it is outside the source directory."""
        root = PurePosixPath(self.config.root)
        file = str(file).replace("\\", "/")
        full = str(PurePosixPath(file) if file.startswith("/") else root / file)
        prefix = str(root / self.config.source_dir).rstrip("/") + "/"
        if not full.startswith(prefix):
            return None

        path = full[len(prefix) :]
        if self.config.automatic_directory_matcher:
            path = path.replace(self.config.automatic_directory_matcher, "/")
        return self.extensionless_path(path)

    def extensionless_path(self, file: str) -> str:
        """``file`` without its template-engine extensions."""
        return remove_templating_extensions(file, self.config.template_extensions)
