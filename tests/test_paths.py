from __future__ import annotations

import re

from sitemapper.config import TEMPLATE_EXTENSIONS_DEFAULT
from sitemapper.paths import (
    convert_glob_to_regex,
    join_paths,
    normalize_path,
    path_match,
    remove_templating_extensions,
    rewrite_paths,
    split_template_extensions,
    strip_away_locale,
)


def test_normalize_path_drops_leading_slashes() -> None:
    assert normalize_path("/about.html") == "about.html"
    assert normalize_path("//fr/about.html") == "fr/about.html"
    assert normalize_path("blog\\post.html") == "blog/post.html"


def test_join_paths_merges_separators_between_parts() -> None:
    assert join_paths("/fr/", "/about.html") == "/fr/about.html"
    assert join_paths("", "images/logo.png") == "images/logo.png"
    assert join_paths("/", "/", "about.html") == "/about.html"
    assert join_paths("https://cdn.example.com/", "/images/logo.png") == "https://cdn.example.com/images/logo.png"


def test_path_match_handles_every_matcher_kind() -> None:
    assert path_match("about.html", "about.html")
    assert not path_match("about.html", "blog/about.html")
    assert path_match("blog/*", "blog/2020/post.html")
    assert path_match(re.compile(r"\.xml$"), "feed.xml")
    assert path_match(lambda path: path.startswith("api/"), "api/v1.json")
    assert not path_match(lambda path: False, "index.html")


def test_split_template_extensions_keeps_output_extension() -> None:
    assert split_template_extensions("about.html.md.erb", TEMPLATE_EXTENSIONS_DEFAULT) == (
        "about.html",
        [".md", ".erb"],
    )
    assert remove_templating_extensions("style.css", TEMPLATE_EXTENSIONS_DEFAULT) == "style.css"
    assert remove_templating_extensions("blog.v2/index.html.j2", {".j2"}) == "blog.v2/index.html"


def test_strip_away_locale_only_removes_known_locales() -> None:
    assert strip_away_locale("about.fr", ["en", "fr"]) == "about"
    assert strip_away_locale("about.xx", ["en", "fr"]) == "about.xx"
    assert strip_away_locale("about", ["en"]) == "about"


def test_convert_glob_to_regex_matches_locale_files() -> None:
    regex = convert_glob_to_regex("locales/**/*.{rb,yml,yaml}")

    assert regex.match("locales/en.yml")
    assert regex.match("locales/regional/fr-CA.yaml")
    assert regex.match("locales/helpers.rb")
    assert not regex.match("locales/en.json")
    assert not regex.match("source/locales/en.yml")


def test_rewrite_paths_rewrites_matching_references() -> None:
    body = '<img src="images/logo.png"><link href=\'site.css\'><a href="about.html">'

    rewritten = rewrite_paths(
        body,
        [".png", ".css"],
        lambda path: "/assets/" + path if path.endswith(".png") else None,
    )

    assert 'src="/assets/images/logo.png"' in rewritten
    assert "href='site.css'" in rewritten
    assert 'href="about.html"' in rewritten
