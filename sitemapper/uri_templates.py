"""URI template helpers.

Templates may be written RFC 6570 style (``{year}/{title}.html``) or in the
older colon style (``:year/:title.html``); both are normalised to the brace
form. Expansion and extraction cover the level 3 operators: simple
(``{var}``), reserved (``{+var}``), fragment (``{#var}``), label
(``{.var}``), path segment (``{/var}``), path parameter (``{;var}``) and
the query forms (``{?var}``, ``{&var}``). Level 4 modifiers raise
:class:`~sitemapper.errors.UriTemplateError`.
"""

from __future__ import annotations

import datetime
import re
import unicodedata
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional
from urllib.parse import quote, unquote

from .errors import UriTemplateError
from .paths import normalize_path

_COLON_VAR = re.compile(r":([A-Za-z0-9]+)")
_BRACED = re.compile(r"\{[^}]*\}")
_EXPRESSION = re.compile(r"\{([+#./;?&]?)([A-Za-z0-9_][A-Za-z0-9_.]*(?:,[A-Za-z0-9_][A-Za-z0-9_.]*)*)\}")
_RESERVED = ":/?#[]@!$&'()*+,;="

DEFAULT_MATCH = ".*?"


@dataclass(frozen=True)
class _Operator:
    first: str
    sep: str
    named: bool
    ifemp: str
    reserved: bool
    value_match: str


_OPERATORS = {
    "": _Operator("", ",", False, "", False, DEFAULT_MATCH),
    "+": _Operator("", ",", False, "", True, DEFAULT_MATCH),
    "#": _Operator("#", ",", False, "", True, DEFAULT_MATCH),
    ".": _Operator(".", ".", False, "", False, r"[^/.]*?"),
    "/": _Operator("/", "/", False, "", False, r"[^/]*?"),
    ";": _Operator(";", ";", True, "", False, r"[^/;]*?"),
    "?": _Operator("?", "&", True, "=", False, r"[^&#]*?"),
    "&": _Operator("&", "&", True, "=", False, r"[^&#]*?"),
}


@dataclass(frozen=True)
class _Expression:
    operator: str
    names: tuple[str, ...]


class UriTemplate:
    """A parsed URI template that can expand data into a path or extract it back."""

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        self._parts: List[str | _Expression] = []
        pos = 0
        for braced in _BRACED.finditer(pattern):
            match = _EXPRESSION.fullmatch(braced.group(0))
            if match is None:
                raise UriTemplateError(pattern, braced.group(0))
            if braced.start() > pos:
                self._parts.append(pattern[pos : braced.start()])
            self._parts.append(_Expression(operator=match.group(1), names=tuple(match.group(2).split(","))))
            pos = braced.end()
        if pos < len(pattern):
            self._parts.append(pattern[pos:])

    def __repr__(self) -> str:
        return f"UriTemplate({self.pattern!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, UriTemplate) and other.pattern == self.pattern

    def __hash__(self) -> int:
        return hash(self.pattern)

    @property
    def variables(self) -> List[str]:
        seen: List[str] = []
        for part in self._parts:
            if isinstance(part, _Expression):
                for name in part.names:
                    if name not in seen:
                        seen.append(name)
        return seen

    def expand(self, data: Mapping[str, object]) -> str:
        """Expand ``data`` into the template.

        Missing (None) values are skipped; an expression whose variables are
        all missing expands to nothing, including its operator prefix.
        """
        out: List[str] = []
        for part in self._parts:
            if isinstance(part, str):
                out.append(part)
                continue
            op = _OPERATORS[part.operator]
            safe = _RESERVED if op.reserved else ""
            pieces = []
            for name in part.names:
                value = data.get(name)
                if value is None:
                    continue
                if isinstance(value, (list, tuple)):
                    if not value:
                        continue
                    text = ",".join(quote(str(item), safe=safe) for item in value)
                else:
                    text = quote(str(value), safe=safe)
                if not op.named:
                    pieces.append(text)
                elif text:
                    pieces.append(f"{name}={text}")
                else:
                    pieces.append(f"{name}{op.ifemp}")
            if pieces:
                out.append(op.first + op.sep.join(pieces))
        return "".join(out)

    def extract(
        self,
        path: str,
        processor: Optional[Callable[[str], Optional[str]]] = None,
    ) -> Optional[Dict[str, str]]:
        """Match ``path`` against the template and return the variable values.

        ``processor`` maps a variable name to the regex its value must match;
        returning None falls back to the operator's default pattern. Every
        variable must appear in ``path``. Returns None when the path does not
        fit the template.
        """
        regex: List[str] = []
        seen: set[str] = set()
        for part in self._parts:
            if isinstance(part, str):
                regex.append(re.escape(part))
                continue
            op = _OPERATORS[part.operator]
            groups = []
            for name in part.names:
                group = _group_name(name)
                if name in seen:
                    value = f"(?P={group})"
                else:
                    seen.add(name)
                    value_re = (processor(name) if processor else None) or op.value_match
                    value = f"(?P<{group}>{value_re})"
                if not op.named:
                    groups.append(value)
                elif op.ifemp:
                    groups.append(f"{re.escape(name)}={value}")
                else:
                    # ;name stands for an empty value
                    groups.append(f"{re.escape(name)}(?:={value})?")
            regex.append(re.escape(op.first) + re.escape(op.sep).join(groups))
        match = re.fullmatch("".join(regex), path)
        if match is None:
            return None
        return {name: unquote(match.group(_group_name(name)) or "") for name in self.variables}


def _group_name(name: str) -> str:
    return "v_" + re.sub(r"[^A-Za-z0-9_]", "_", name)


def uri_template(tmpl_src: str) -> UriTemplate:
    """Build a template from either colon-style or RFC 6570 source."""
    if ":" in tmpl_src:
        tmpl_src = _COLON_VAR.sub(r"{\1}", tmpl_src)
    return UriTemplate(normalize_path(tmpl_src))


def apply_uri_template(template: UriTemplate, data: Mapping[str, object]) -> str:
    """Expand ``template`` with ``data`` into a normalized sitemap path."""
    return normalize_path(unquote(template.expand(data)))


def date_and_locale_match(name: str) -> Optional[str]:
    if name == "year":
        return r"\d{4}"
    if name in ("month", "day"):
        return r"\d{2}"
    if name in ("lang", "locale"):
        return r"[A-Za-z]{2,3}(?:[-_][A-Za-z0-9]+)?"
    return None


def extract_params(template: UriTemplate, path: str) -> Optional[Dict[str, str]]:
    """Extract template variables from ``path``, validating date and locale fields.

    Returns None if the path does not match or the year/month/day fields do
    not form a real calendar date.
    """
    params = template.extract(path, date_and_locale_match)
    if params is None:
        return None
    if "month" in params and not 1 <= int(params["month"]) <= 12:
        return None
    if "day" in params and not 1 <= int(params["day"]) <= 31:
        return None
    if {"year", "month", "day"} <= params.keys():
        try:
            datetime.date(int(params["year"]), int(params["month"]), int(params["day"]))
        except ValueError:
            return None
    return params


def safe_parameterize(value: str, sep: str = "-") -> str:
    """Slugify ``value`` while keeping characters that cannot be transliterated.

    ``"Crème Brûlée!"`` becomes ``"creme-brulee"``; ``"日本語 blog"`` keeps the
    Japanese characters: ``"日本語-blog"``.
    """
    chars: List[str] = []
    for char in str(value):
        decomposed = unicodedata.normalize("NFKD", char)
        ascii_form = "".join(c for c in decomposed if not unicodedata.combining(c))
        if ascii_form.isascii():
            chars.append(ascii_form.lower())
        else:
            chars.append(char.lower())
    slug = "".join(chars)
    slug = re.sub(r"[^a-z0-9\-_\x80-\U0010ffff]+", sep, slug)
    escaped = re.escape(sep)
    slug = re.sub(f"(?:{escaped}){{2,}}", sep, slug)
    return re.sub(f"^{escaped}|{escaped}$", "", slug)


def date_to_params(date: datetime.date) -> Dict[str, str]:
    """Split a date into zero-padded template parameters."""
    return {
        "year": str(date.year),
        "month": str(date.month).rjust(2, "0"),
        "day": str(date.day).rjust(2, "0"),
    }
