"""Localization: translation lookups and the locale-duplication sitemap stage."""

from __future__ import annotations

import logging
import threading
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import yaml

from .config import I18nOptions
from .core.models import Resource, deep_merge
from .errors import ConfigError
from .paths import (
    convert_glob_to_regex,
    join_paths,
    normalize_path,
    path_match,
    split_template_extensions,
)
from .uri_templates import apply_uri_template, uri_template

if TYPE_CHECKING:
    from .site import Site

logger = logging.getLogger(__name__)

LOCALE_FILE_EXTS = (".yml", ".yaml")


class Translations:
    """Locale data loaded from YAML files laid out as ``{locale: {key: value}}``.

    Every lookup names its locale explicitly; there is no current-locale state.
    """

    def __init__(
        self,
        load_path: Path,
        default_locale: Optional[str] = None,
        fallbacks: bool = True,
    ) -> None:
        self.load_path = Path(load_path)
        self.default_locale = default_locale
        self.fallbacks = fallbacks
        self._data: Optional[Dict[str, Dict[str, Any]]] = None
        self._lock = threading.RLock()

    def reload(self) -> None:
        with self._lock:
            self._data = None

    def _load(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            if self._data is not None:
                return self._data
            data: Dict[str, Dict[str, Any]] = {}
            if self.load_path.is_dir():
                files = sorted(
                    p for p in self.load_path.rglob("*") if p.is_file() and p.suffix in LOCALE_FILE_EXTS
                )
                for file in files:
                    try:
                        content = yaml.safe_load(file.read_text(encoding="utf-8")) or {}
                    except (OSError, yaml.YAMLError) as exc:
                        raise ConfigError(str(file), str(exc)) from exc
                    if not isinstance(content, dict):
                        raise ConfigError(str(file), "locale file must contain a mapping")
                    for locale, tree in content.items():
                        if isinstance(tree, dict):
                            deep_merge(data.setdefault(str(locale), {}), tree)
            self._data = data
            return data

    @property
    def available_locales(self) -> List[str]:
        return sorted(self._load())

    def lookup(self, locale: str, key: str) -> Any:
        node: Any = self._load().get(str(locale))
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node

    def translate(
        self,
        locale: str,
        key: str,
        default: Any = None,
        fallback: Optional[bool] = None,
        **interpolations: Any,
    ) -> Any:
        """Translate ``key`` for ``locale``.

        Falls back to the default locale when enabled, then to ``default``, and
        finally to a ``translation missing`` marker. ``%{name}`` placeholders are
        filled from ``interpolations``.
        """
        value = self.lookup(locale, key)
        use_fallback = self.fallbacks if fallback is None else fallback
        if value is None and use_fallback and self.default_locale and self.default_locale != locale:
            value = self.lookup(self.default_locale, key)
        if value is None:
            if default is not None:
                return default
            return f"translation missing: {locale}.{key}"
        if isinstance(value, str) and interpolations:
            for name, replacement in interpolations.items():
                value = value.replace("%{" + name + "}", str(replacement))
        return value


class Internationalization:
    """Duplicates localizable resources once per locale.

    Registered as a sitemap manipulator by :meth:`activate`. Three kinds of
    input resource are handled:

    * ``about.fr.html`` carries a locale extension and yields one resource for
      that locale;
    * anything under ``templates_dir`` yields one resource per known locale;
    * everything else is tagged with the root locale if no earlier stage set
      a ``lang``.

    Derived resources proxy to their source and are mounted under the locale
    prefix (``/:locale/`` by default), except for the root locale which is
    mounted at the site root.
    """

    def __init__(self, site: "Site", options: Optional[I18nOptions] = None) -> None:
        self.site = site
        self.options = options or I18nOptions()
        self._langs: Optional[List[str]] = None
        self._lock = threading.RLock()

        self.locales_dir = normalize_path(site.config.locales_dir or self.options.data)
        self.locales_glob = join_paths(self.locales_dir, "**", "*.{yml,yaml}")
        self.locales_regex = convert_glob_to_regex(self.locales_glob)
        self.translations = Translations(
            Path(site.config.root) / self.locales_dir,
            fallbacks=not self.options.no_fallbacks,
        )

    def activate(self) -> None:
        langs = self.langs
        mount = self.mount_at_root_locale(langs)
        self.translations.default_locale = mount
        logger.info("== Locales: %s (Default %s)", ", ".join(langs), mount)

        # Localizable templates are published only through their localized copies.
        self.site.sitemap.ignore(join_paths(self.options.templates_dir, "**"))
        self.site.sitemap.register_manipulator("i18n", self)

    # ---------------------------------------------------------------- locales --
    @property
    def langs(self) -> List[str]:
        with self._lock:
            if self._langs is None:
                self._langs = self._known_languages()
            return list(self._langs)

    def _known_languages(self) -> List[str]:
        if self.options.langs:
            return [str(lang) for lang in self.options.langs]

        locales_path = Path(self.site.config.root) / self.locales_dir
        if not locales_path.is_dir():
            return []
        found = []
        for entry in locales_path.iterdir():
            rel = join_paths(self.locales_dir, entry.name)
            if entry.is_file() and self.locales_regex.match(rel):
                found.append(entry.name.rsplit(".", 1)[0])
        return sorted(found)

    def mount_at_root_locale(self, langs: Optional[List[str]] = None) -> Optional[str]:
        if self.options.mount_at_root is not None:
            return self.options.mount_at_root
        langs = self.langs if langs is None else langs
        return langs[0] if langs else None

    def on_file_changed(self, path: str) -> bool:
        """Drop cached locale data if ``path`` is a locale file. Returns whether it was."""
        rel = self._path_from_root(path)
        if rel is None or not self.locales_regex.match(rel):
            return False

        logger.debug("Locale data changed: %s", rel)
        with self._lock:
            self._langs = None
        self.translations.reload()
        self.translations.default_locale = self.mount_at_root_locale()
        self.site.sitemap.invalidate("locale data changed")
        return True

    def _path_from_root(self, path: str) -> Optional[str]:
        """``path`` relative to the site root, or None if it lies outside it.

        Absolute paths (as file watchers report them) are resolved against the
        resolved root; relative ones may carry the configured root as prefix.
        """
        candidate = Path(str(path).replace("\\", "/"))
        if candidate.is_absolute():
            try:
                root = Path(self.site.config.root).resolve()
                return candidate.resolve().relative_to(root).as_posix()
            except ValueError:
                return None
        rel = normalize_path(path)
        root = normalize_path(str(PurePosixPath(self.site.config.root))) + "/"
        if rel.startswith(root):
            rel = rel[len(root) :]
        return rel

    # ------------------------------------------------------------ manipulator --
    def transform(self, resources: List[Resource]) -> List[Resource]:
        # The root locale is fixed once for the whole pass.
        langs = self.langs
        mount = self.mount_at_root_locale(langs)
        templates_glob = join_paths(self.options.templates_dir, "**")

        new_resources: List[Resource] = []
        for resource in resources:
            parsed = self.parse_locale_extension(resource.path, langs)
            if parsed is not None:
                lang, path, page_id = parsed
                new_resources.append(self._build_resource(path, resource.path, page_id, lang, mount))
            elif path_match(templates_glob, resource.path):
                page_id = PurePosixPath(resource.path).stem
                path = resource.path.replace(self.options.templates_dir, "", 1)
                for lang in langs:
                    new_resources.append(
                        self._build_resource(path, resource.path, page_id, lang, mount)
                    )
            elif mount is not None and not resource.options.get("lang"):
                resource.add_metadata({"options": {"lang": mount}, "locals": {"lang": mount}})

        return resources + new_resources

    def parse_locale_extension(
        self, path: str, langs: Optional[List[str]] = None
    ) -> Optional[tuple[str, str, str]]:
        """Split ``about.fr.html`` into ``("fr", "about.html", "about")``.

        Template extensions are set aside first, so ``about.fr.html.erb`` gives
        ``("fr", "about.html.erb", "about")``. Returns None when the path has no
        known locale token.
        """
        langs = self.langs if langs is None else langs
        base, template_exts = split_template_extensions(path, self.site.config.template_extensions)
        bits = base.split(".")
        if len(bits) < 3:
            return None

        lang = bits.pop(-2)
        if lang not in langs:
            return None

        canonical = ".".join(bits) + "".join(template_exts)
        page_id = PurePosixPath(".".join(bits[:-1])).name
        return lang, canonical, page_id

    def localized_page_id(self, page_id: str, lang: str) -> str:
        localized = self.translations.translate(
            lang, f"paths.{page_id}", default=page_id, fallback=False
        )
        # Only a plain string can stand in for a file name.
        return localized if isinstance(localized, str) else page_id

    def path_prefix(self, lang: str, mount: Optional[str]) -> str:
        if lang == mount:
            return "/"
        replacement = self.options.lang_map.get(lang, lang)
        expanded = apply_uri_template(uri_template(self.options.path), {"locale": replacement})
        return join_paths("/", expanded)

    def _build_resource(
        self,
        path: str,
        source_path: str,
        page_id: str,
        lang: str,
        mount: Optional[str],
    ) -> Resource:
        localized_page_id = self.localized_page_id(page_id, lang)

        directory, _, name = path.rpartition("/")
        name = name.replace(page_id, localized_page_id, 1)
        path = normalize_path(join_paths(self.path_prefix(lang, mount), directory, name))
        path = path.replace(self.options.templates_dir + "/", "", 1)

        resource = Resource(self.site.sitemap, path)
        resource.proxy_to(source_path)
        resource.add_metadata(
            {
                "locals": {"lang": lang, "page_id": localized_page_id},
                "options": {"lang": lang},
            }
        )
        return resource
