"""Site and locale configuration."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

from .errors import ConfigError


TEMPLATE_EXTENSIONS_DEFAULT: set[str] = {
    ".erb",
    ".haml",
    ".slim",
    ".liquid",
    ".md",
    ".markdown",
    ".mkd",
    ".j2",
    ".jinja",
    ".jinja2",
    ".mustache",
    ".str",
    ".builder",
    ".sass",
    ".scss",
    ".less",
    ".coffee",
    ".rst",
}


def _check_keys(cls: type, data: dict, source: str) -> None:
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(source, f"unknown keys: {', '.join(unknown)}")


@dataclass(slots=True)
class I18nOptions:
    no_fallbacks: bool = False
    langs: Optional[List[str]] = None
    lang_map: Dict[str, str] = field(default_factory=dict)
    path: str = "/:locale/"
    templates_dir: str = "localizable"
    mount_at_root: Optional[str] = None
    data: str = "locales"

    def to_dict(self) -> dict:
        return {
            "no_fallbacks": self.no_fallbacks,
            "langs": list(self.langs) if self.langs is not None else None,
            "lang_map": dict(self.lang_map),
            "path": self.path,
            "templates_dir": self.templates_dir,
            "mount_at_root": self.mount_at_root,
            "data": self.data,
        }

    @classmethod
    def from_dict(cls, data: dict, source: str = "i18n") -> "I18nOptions":
        _check_keys(cls, data, source)
        langs = data.get("langs")
        if isinstance(langs, str):
            langs = [langs]
        return cls(
            no_fallbacks=bool(data.get("no_fallbacks", False)),
            langs=[str(lang) for lang in langs] if langs is not None else None,
            lang_map={str(k): str(v) for k, v in (data.get("lang_map") or {}).items()},
            path=data.get("path", "/:locale/"),
            templates_dir=data.get("templates_dir", "localizable"),
            mount_at_root=data.get("mount_at_root"),
            data=data.get("data", "locales"),
        )


@dataclass(slots=True)
class SiteConfig:
    root: str = "."
    source_dir: str = "source"
    http_prefix: str = "/"
    css_dir: str = "stylesheets"
    js_dir: str = "javascripts"
    images_dir: str = "images"
    fonts_dir: str = "fonts"
    index_file: str = "index.html"
    strip_index_file: bool = True
    trailing_slash: bool = True
    relative_links: bool = False
    automatic_directory_matcher: Optional[str] = None
    locales_dir: Optional[str] = None
    template_extensions: set[str] = field(default_factory=lambda: set(TEMPLATE_EXTENSIONS_DEFAULT))
    detect_destination_collisions: bool = False

    def to_dict(self) -> dict:
        data: dict[str, Any] = {f.name: getattr(self, f.name) for f in fields(self)}
        data["template_extensions"] = sorted(self.template_extensions)
        return data

    @classmethod
    def from_dict(cls, data: dict, source: str = "config") -> "SiteConfig":
        _check_keys(cls, data, source)
        values = dict(data)
        exts = values.get("template_extensions")
        if exts is not None:
            values["template_extensions"] = {
                ext if ext.startswith(".") else f".{ext}" for ext in exts
            }
        return cls(**values)
