"""Data models for the sitemap."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from ..errors import ProxyError
from ..paths import join_url, normalize_path

if TYPE_CHECKING:
    from .store import Store


def deep_merge(base: Dict[str, Any], other: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge ``other`` into ``base`` in place and return it.

    Mappings merge recursively, lists concatenate and any other value in
    ``other`` replaces the one in ``base``.
    """
    for key, value in other.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            deep_merge(current, value)
        elif isinstance(current, list) and isinstance(value, (list, tuple)):
            current.extend(value)
        elif isinstance(value, Mapping):
            base[key] = deep_merge({}, value)
        elif isinstance(value, (list, tuple)):
            base[key] = list(value)
        else:
            base[key] = value
    return base


def _empty_metadata() -> Dict[str, Dict[str, Any]]:
    return {"options": {}, "locals": {}, "page": {}}


@dataclass(eq=False)
class Resource:
    """One publishable item in the sitemap.

    ``path`` is the source path (relative to the source directory, template
    extensions removed); ``destination_path`` is where the item is written and
    what its URL is built from. Resources are rebuilt from scratch on every
    sitemap rebuild, so stages may freely add metadata to the ones they create.
    """

    store: Optional["Store"] = field(repr=False)
    path: str
    source_file: Optional[str] = None
    destination_path: str = ""
    metadata: Dict[str, Dict[str, Any]] = field(default_factory=_empty_metadata, repr=False)
    proxied_to: Optional[str] = None
    _ignored: bool = field(default=False, repr=False)

    def __post_init__(self) -> None:
        self.path = normalize_path(self.path)
        self.destination_path = normalize_path(self.destination_path or self.path)
        if self.proxied_to is not None:
            self.proxied_to = normalize_path(self.proxied_to)

    @property
    def options(self) -> Dict[str, Any]:
        return self.metadata["options"]

    @property
    def locals(self) -> Dict[str, Any]:
        return self.metadata["locals"]

    @property
    def data(self) -> Dict[str, Any]:
        return self.metadata["page"]

    def add_metadata(self, meta: Mapping[str, Any]) -> None:
        """Merge ``meta`` (``options``/``locals``/``page`` sub-mappings) into this resource."""
        deep_merge(self.metadata, meta)

    # ---------------------------------------------------------------- proxies --
    @property
    def proxy(self) -> bool:
        return self.proxied_to is not None

    def proxy_to(self, target: str) -> None:
        target = normalize_path(target)
        if target == self.path:
            raise ProxyError(self.path, target, "proxies to itself")
        self.proxied_to = target

    @property
    def target_resource(self) -> "Resource":
        """The resource whose source this one renders, following proxy chains."""
        resource = self
        visited = {self.path}
        while resource.proxied_to is not None:
            if self.store is None:
                raise ProxyError(self.path, resource.proxied_to, "is not attached to a sitemap")
            target = self.store.find_by_path(resource.proxied_to)
            if target is None:
                raise ProxyError(resource.path, resource.proxied_to)
            if target.path in visited:
                raise ProxyError(self.path, target.path, "has a proxy loop through")
            visited.add(target.path)
            resource = target
        return resource

    # ---------------------------------------------------------------- ignores --
    def ignore(self) -> None:
        self._ignored = True

    @property
    def ignored(self) -> bool:
        if self._ignored:
            return True
        if self.store is not None:
            return self.store.is_ignored(self)
        return False

    # -------------------------------------------------------------------- url --
    @property
    def url(self) -> str:
        """URL path for this resource, honouring the index-file and prefix settings."""
        url_path = self.destination_path
        config = self.store.config if self.store is not None else None
        if config is None:
            return "/" + url_path
        if config.strip_index_file:
            index = re.escape(config.index_file)
            replacement = "/" if config.trailing_slash else ""
            url_path = re.sub(rf"(^|/){index}$", replacement, url_path)
        return join_url(config.http_prefix, url_path)
