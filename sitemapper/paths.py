"""Path helpers shared by the sitemap store, the locale stage and URL resolution."""

from __future__ import annotations

import fnmatch
import re
from pathlib import PurePosixPath
from typing import Callable, Iterable, Optional, Pattern, Union

Matcher = Union[str, Pattern[str], Callable[[str], bool]]

_LEADING_SLASHES = re.compile(r"^/+")


def normalize_path(path: str) -> str:
    """Return ``path`` with forward slashes and no leading slash."""
    cleaned = str(path).replace("\\", "/")
    return _LEADING_SLASHES.sub("", cleaned)


def strip_leading_slash(path: str) -> str:
    return _LEADING_SLASHES.sub("", str(path))


def join_paths(*parts: str) -> str:
    """Join path fragments with ``/``.

    Separators are merged only where two fragments meet, so a scheme such as
    ``https://`` inside a fragment is left alone.
    """
    joined = ""
    for part in (str(part) for part in parts if part != ""):
        if not joined:
            joined = part
        else:
            joined = joined.rstrip("/") + "/" + part.lstrip("/")
    return joined


def join_url(http_prefix: str, path: str) -> str:
    """``path`` under ``http_prefix``, ``/``-rooted unless the prefix is an absolute URL."""
    if "://" in http_prefix:
        return join_paths(http_prefix, path)
    return join_paths("/", http_prefix, path)


def path_match(matcher: Matcher, path: str) -> bool:
    """Whether ``path`` matches ``matcher``.

    A matcher may be a literal string, a string containing ``*`` (treated as a
    glob in which ``*`` also crosses directory separators), a compiled regular
    expression, or a predicate taking the path.
    """
    if isinstance(matcher, str):
        if "*" in matcher:
            return fnmatch.fnmatchcase(path, matcher)
        return path == matcher
    if hasattr(matcher, "search"):
        return bool(matcher.search(path))
    if callable(matcher):
        return bool(matcher(path))
    return fnmatch.fnmatchcase(path, str(matcher))


def split_template_extensions(path: str, template_extensions: Iterable[str]) -> tuple[str, list[str]]:
    """Split trailing template-engine extensions off ``path``.

    ``"about.html.md.erb"`` becomes ``("about.html", [".md", ".erb"])``.
    """
    known = {ext.lower() for ext in template_extensions}
    stripped: list[str] = []
    current = PurePosixPath(path)
    while current.suffix and current.suffix.lower() in known:
        stripped.insert(0, current.suffix)
        current = current.with_suffix("")
    base = path[: len(path) - sum(len(ext) for ext in stripped)]
    return base, stripped


def remove_templating_extensions(path: str, template_extensions: Iterable[str]) -> str:
    base, _ = split_template_extensions(path, template_extensions)
    return base


def strip_away_locale(path: str, langs: Iterable[str]) -> str:
    """Remove a trailing ``.<locale>`` token from ``path`` if it names a known locale."""
    bits = path.split(".")
    if len(bits) > 1 and bits[-1] in set(langs):
        return ".".join(bits[:-1])
    return path


def convert_glob_to_regex(glob: str) -> re.Pattern[str]:
    """Translate a watch glob such as ``locales/**/*.{yml,yaml}`` into an anchored regex.

    ``**/`` matches zero or more directories, ``*`` anything but ``/``, ``?`` a
    single non-separator character and ``{a,b}`` any of the listed alternatives.
    """
    glob = normalize_path(glob)
    out: list[str] = []
    in_braces = False
    i = 0
    while i < len(glob):
        if glob.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
            continue
        if glob.startswith("**", i):
            out.append(".*")
            i += 2
            continue
        char = glob[i]
        if char == "*":
            out.append("[^/]*")
        elif char == "?":
            out.append("[^/]")
        elif char == "{" and not in_braces:
            out.append("(?:")
            in_braces = True
        elif char == "}" and in_braces:
            out.append(")")
            in_braces = False
        elif char == "," and in_braces:
            out.append("|")
        else:
            out.append(re.escape(char))
        i += 1
    return re.compile("^" + "".join(out) + "$")


def rewrite_paths(body: str, exts: Iterable[str], rewriter: Callable[[str], Optional[str]]) -> str:
    """Rewrite references to files with the given extensions inside ``body``.

    Any path following ``=``, a quote or ``(`` and ending in one of ``exts`` is
    passed to ``rewriter``; a falsy return keeps the original text.
    """
    exts = [ext for ext in exts if ext]
    if not exts:
        return body
    union = "|".join(re.escape(ext) for ext in exts)
    pattern = re.compile(r"([=\'\"\(]\s*)([^\s\'\"\)]+(?:" + union + r"))")

    def repl(match: re.Match[str]) -> str:
        opening = match.group(1)
        result = rewriter(match.group(2))
        if result:
            return f"{opening}{result}"
        return match.group(0)

    return pattern.sub(repl, body)
