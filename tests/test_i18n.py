from __future__ import annotations

from pathlib import Path

import pytest

from sitemapper.config import I18nOptions, SiteConfig
from sitemapper.core.models import Resource
from sitemapper.errors import ConfigError
from sitemapper.i18n import Internationalization, Translations
from sitemapper.site import Site


def _write_locales(root: Path, files: dict[str, str]) -> None:
    for name, content in files.items():
        target = root / "locales" / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")


def _site_with_sources(root: Path, paths: list[str], options: I18nOptions) -> Site:
    site = Site(SiteConfig(root=str(root)))
    site.sitemap.register_manipulator(
        "sources",
        lambda resources: resources + [Resource(site.sitemap, path) for path in paths],
        priority=10,
    )
    site.activate_i18n(options)
    return site


def test_parse_locale_extension_recognises_known_locales(tmp_path: Path) -> None:
    site = Site(SiteConfig(root=str(tmp_path)))
    i18n = Internationalization(site, I18nOptions(langs=["en", "fr"]))

    assert i18n.parse_locale_extension("about.fr.html.erb") == ("fr", "about.html.erb", "about")
    assert i18n.parse_locale_extension("about.fr.html") == ("fr", "about.html", "about")
    assert i18n.parse_locale_extension("about.xx.html.erb") is None
    assert i18n.parse_locale_extension("about.fr") is None
    assert i18n.parse_locale_extension("docs/guide.en.html") == ("en", "docs/guide.html", "guide")


def test_locale_extension_yields_single_locale_resource(tmp_path: Path) -> None:
    site = Site(SiteConfig(root=str(tmp_path)))
    i18n = Internationalization(site, I18nOptions(langs=["en", "fr"]))
    source = Resource(site.sitemap, "about.fr.html.erb")

    result = i18n.transform([source])

    assert result[0] is source
    assert len(result) == 2
    derived = result[1]
    assert derived.path == "fr/about.html.erb"
    assert derived.proxied_to == "about.fr.html.erb"
    assert derived.options["lang"] == "fr"
    assert derived.locals == {"lang": "fr", "page_id": "about"}


def test_unknown_locale_token_is_an_ordinary_file(tmp_path: Path) -> None:
    site = Site(SiteConfig(root=str(tmp_path)))
    i18n = Internationalization(site, I18nOptions(langs=["en", "fr"]))
    source = Resource(site.sitemap, "about.xx.html")

    result = i18n.transform([source])

    assert result == [source]
    assert source.options["lang"] == "en"


def test_localizable_templates_mount_root_locale_without_prefix(tmp_path: Path) -> None:
    site = _site_with_sources(
        tmp_path,
        ["index.html", "localizable/about.html"],
        I18nOptions(langs=["en", "fr"], mount_at_root="en"),
    )

    en = site.sitemap.find_by_path("about.html")
    fr = site.sitemap.find_by_path("fr/about.html")

    assert en is not None and en.options["lang"] == "en"
    assert fr is not None and fr.options["lang"] == "fr"
    assert fr.destination_path == "fr/about.html"
    assert en.target_resource.path == "localizable/about.html"
    assert [r.path for r in site.sitemap.list_resources()] == ["index.html", "about.html", "fr/about.html"]
    assert site.sitemap.find_by_path("localizable/about.html").ignored


def test_first_locale_is_the_implicit_root(tmp_path: Path) -> None:
    site = _site_with_sources(tmp_path, ["localizable/about.html"], I18nOptions(langs=["fr", "en"]))

    assert site.sitemap.find_by_path("about.html").options["lang"] == "fr"
    assert site.sitemap.find_by_path("en/about.html").options["lang"] == "en"


def test_explicit_mount_and_lang_map_shape_prefix(tmp_path: Path) -> None:
    site = _site_with_sources(
        tmp_path,
        ["localizable/blog/post.html"],
        I18nOptions(
            langs=["en", "pt-BR"],
            mount_at_root="pt-BR",
            lang_map={"en": "english"},
            path="/lang/:locale/",
        ),
    )

    paths = sorted(r.path for r in site.sitemap.list_resources())

    assert paths == ["blog/post.html", "lang/english/blog/post.html"]


def test_page_ids_are_translated_per_locale(tmp_path: Path) -> None:
    _write_locales(
        tmp_path,
        {
            "en.yml": "en:\n  greeting: Hello\n",
            "fr.yml": "fr:\n  paths:\n    about: a-propos\n",
        },
    )
    site = _site_with_sources(tmp_path, ["localizable/about.html"], I18nOptions())

    assert site.langs == ["en", "fr"]
    fr = site.sitemap.find_by_path("fr/a-propos.html")
    assert fr is not None
    assert fr.locals["page_id"] == "a-propos"
    assert site.sitemap.find_by_path("about.html").locals["page_id"] == "about"


def test_existing_lang_metadata_is_kept(tmp_path: Path) -> None:
    site = Site(SiteConfig(root=str(tmp_path)))
    i18n = Internationalization(site, I18nOptions(langs=["en", "fr"]))
    source = Resource(site.sitemap, "feed.xml")
    source.add_metadata({"options": {"lang": "fr"}})

    i18n.transform([source])

    assert source.options["lang"] == "fr"
    assert "lang" not in source.locals


def test_known_languages_are_discovered_from_top_level_locale_files(tmp_path: Path) -> None:
    _write_locales(
        tmp_path,
        {
            "fr.yml": "fr: {}\n",
            "en.yaml": "en: {}\n",
            "nested/de.yml": "de: {}\n",
            "notes.txt": "not a locale",
        },
    )
    site = Site(SiteConfig(root=str(tmp_path)))
    i18n = Internationalization(site, I18nOptions())

    assert i18n.langs == ["en", "fr"]
    assert i18n.mount_at_root_locale() == "en"


def test_locale_file_changes_clear_cached_langs_and_invalidate(tmp_path: Path) -> None:
    _write_locales(tmp_path, {"en.yml": "en: {}\n"})
    site = _site_with_sources(tmp_path, ["localizable/about.html"], I18nOptions())
    assert [r.path for r in site.sitemap.list_resources()] == ["about.html"]

    _write_locales(tmp_path, {"fr.yml": "fr:\n  paths:\n    about: a-propos\n"})
    i18n = site.extensions["i18n"]
    assert not i18n.on_file_changed("source/index.html")
    assert not site.sitemap.dirty

    site.on_file_changed(str(tmp_path / "locales" / "fr.yml"))

    assert site.sitemap.dirty
    assert site.langs == ["en", "fr"]
    assert site.sitemap.find_by_path("fr/a-propos.html") is not None


def test_translations_fall_back_to_default_locale(tmp_path: Path) -> None:
    _write_locales(
        tmp_path,
        {
            "en.yml": "en:\n  greeting: Hello %{name}\n  nav:\n    home: Home\n",
            "fr.yml": "fr:\n  nav:\n    home: Accueil\n",
        },
    )
    translations = Translations(tmp_path / "locales", default_locale="en")

    assert translations.translate("fr", "nav.home") == "Accueil"
    assert translations.translate("fr", "greeting", name="Ada") == "Hello Ada"
    assert translations.translate("fr", "greeting", fallback=False, default="Bonjour") == "Bonjour"
    assert translations.translate("fr", "missing.key") == "translation missing: fr.missing.key"
    assert translations.available_locales == ["en", "fr"]


def test_malformed_locale_file_raises_config_error(tmp_path: Path) -> None:
    _write_locales(tmp_path, {"en.yml": "en: [unclosed\n"})
    translations = Translations(tmp_path / "locales")

    with pytest.raises(ConfigError):
        translations.translate("en", "anything")


def test_absolute_locale_path_is_seen_from_default_root(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)
    _write_locales(tmp_path, {"en.yml": "en: {}\n"})
    site = Site(SiteConfig())
    site.activate_i18n(I18nOptions())
    assert site.langs == ["en"]
    site.sitemap.ensure_updated()

    _write_locales(tmp_path, {"fr.yml": "fr: {}\n"})
    i18n = site.extensions["i18n"]

    assert i18n.on_file_changed(str((tmp_path / "locales" / "fr.yml").resolve()))
    assert site.sitemap.dirty
    assert site.langs == ["en", "fr"]
    assert not i18n.on_file_changed(str(tmp_path.parent / "locales" / "de.yml"))


def test_page_id_mapped_to_a_mapping_is_not_used_as_a_name(tmp_path: Path) -> None:
    _write_locales(
        tmp_path,
        {"fr.yml": "fr:\n  paths:\n    about:\n      title: A propos\n    contact: nous-joindre\n"},
    )
    site = Site(SiteConfig(root=str(tmp_path)))
    i18n = Internationalization(site, I18nOptions(langs=["en", "fr"]))

    assert i18n.localized_page_id("about", "fr") == "about"
    assert i18n.localized_page_id("contact", "fr") == "nous-joindre"
