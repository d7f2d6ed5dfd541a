"""The site object tying configuration, the sitemap store and extensions together."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .config import I18nOptions, SiteConfig
from .core.models import Resource
from .core.store import Store
from .i18n import Internationalization
from . import urls

logger = logging.getLogger(__name__)


class Site:
    def __init__(self, config: Optional[SiteConfig] = None) -> None:
        self.config = config or SiteConfig()
        self.sitemap = Store(self.config)
        self.extensions: Dict[str, Any] = {}

    def activate_i18n(self, options: Optional[I18nOptions] = None) -> Internationalization:
        i18n = Internationalization(self, options)
        self.extensions["i18n"] = i18n
        i18n.activate()
        return i18n

    @property
    def langs(self) -> List[str]:
        i18n = self.extensions.get("i18n")
        return i18n.langs if i18n is not None else []

    def on_file_changed(self, path: str) -> None:
        """Forward a changed or deleted file to every extension that watches files."""
        for name, extension in self.extensions.items():
            handler = getattr(extension, "on_file_changed", None)
            if handler is not None and handler(path):
                logger.debug("%s handled change to %s", name, path)

    # ------------------------------------------------------------------ urls --
    def url_for(self, path_or_resource: str | Resource, **options: Any) -> str:
        return urls.url_for(self, path_or_resource, **options)

    def asset_path(self, kind: str, source: str, **options: Any) -> str:
        return urls.asset_path(self, kind, source, **options)

    def full_path(self, path: str) -> str:
        return urls.full_path(self, path)
