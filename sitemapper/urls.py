"""Turning source paths and resources into URLs."""

from __future__ import annotations

import posixpath
import re
from typing import TYPE_CHECKING, Any, Mapping, Optional
from urllib.parse import unquote, urlencode, urlsplit, urlunsplit

from .core.models import Resource
from .errors import RelativeUrlError, ResourceNotFoundError
from .paths import join_paths, join_url, normalize_path

if TYPE_CHECKING:
    from .site import Site

_KIND_ALIASES = {"image": "images", "font": "fonts", "stylesheet": "css", "javascript": "js"}


def url_for(
    site: "Site",
    path_or_resource: str | Resource,
    *,
    relative: Optional[bool] = None,
    current_resource: Optional[Resource] = None,
    find_resource: bool = False,
    query: str | Mapping[str, Any] | None = None,
    anchor: Optional[str] = None,
    fragment: Optional[str] = None,
) -> str:
    """Produce the URL for a source path or a resource.

    Local paths are looked up in the sitemap (relative to ``current_resource``'s
    source directory when one is given) and replaced by the URL of the matching
    resource. With ``relative`` the result is relative to the current
    resource's destination directory. Strings that cannot be parsed as URLs are
    returned as they are.
    """
    if isinstance(path_or_resource, Resource):
        url = path_or_resource.url
    else:
        url = str(path_or_resource)
    url = url.replace(" ", "%20")

    try:
        parts = urlsplit(url)
    except ValueError:
        return url

    if relative and parts.netloc:
        raise RelativeUrlError(url)

    effective_relative = bool(relative) or (relative is None and site.config.relative_links)
    is_local = not parts.scheme and not parts.netloc

    resource: Optional[Resource] = None
    resource_url: Optional[str] = None
    if isinstance(path_or_resource, Resource):
        resource = path_or_resource
        resource_url = parts.path
    elif current_resource is not None and is_local and parts.path:
        url_path = unquote(parts.path)
        if not url_path.startswith("/"):
            current_source_dir = posixpath.dirname("/" + current_resource.path)
            url_path = posixpath.join(current_source_dir, url_path)
        resource = site.sitemap.find_by_path(posixpath.normpath(url_path))
    elif find_resource and is_local and parts.path:
        resource = site.sitemap.find_by_path(unquote(parts.path))

    path = parts.path
    if resource is not None:
        if resource_url is None:
            resource_url = resource.url
        path = relative_path_from_resource(site, current_resource, resource_url, effective_relative)
    elif relative:
        raise ResourceNotFoundError(url)

    query_string = parts.query
    if query is not None:
        query_string = urlencode(query, doseq=True) if isinstance(query, Mapping) else str(query)

    fragment_value = anchor or fragment
    return urlunsplit(
        parts._replace(
            path=path,
            query=query_string,
            fragment=str(fragment_value) if fragment_value else parts.fragment,
        )
    )


def relative_path_from_resource(
    site: "Site",
    current_resource: Optional[Resource],
    resource_url: str,
    relative: bool,
) -> str:
    """``resource_url`` relative to the destination directory of ``current_resource``.

    Returns ``resource_url`` unchanged unless ``relative`` is set and there is a
    current resource. A trailing slash on the target is kept.
    """
    if not relative or current_resource is None:
        return resource_url

    current_url = join_url(site.config.http_prefix, current_resource.destination_path)
    current_dir = posixpath.dirname(current_url)
    relative_path = posixpath.relpath(resource_url, current_dir)

    # Keep the trailing slash of directory URLs.
    if resource_url.endswith("/") and not relative_path.endswith("/"):
        relative_path += "/"
    return relative_path


def asset_path(site: "Site", kind: str, source: str, **options: Any) -> str:
    """URL for an asset of ``kind`` (``css``, ``js``, ``images``, ``fonts`` or other)."""
    source = str(source)
    if "//" in source or source.startswith("data:"):
        return source

    kind = _KIND_ALIASES.get(kind, kind)
    folder = {
        "css": site.config.css_dir,
        "js": site.config.js_dir,
        "images": site.config.images_dir,
        "fonts": site.config.fonts_dir,
    }.get(kind, kind)

    source = source.replace(" ", "")
    if kind not in ("images", "fonts") and not source.endswith(f".{kind}"):
        source = f"{source}.{kind}"
    if source.startswith("/"):
        folder = ""

    return asset_url(site, source, folder, **options)


def asset_url(site: "Site", path: str, prefix: str = "", **options: Any) -> str:
    """URL for an asset path, preferring a matching sitemap resource.

    Falls back to ``http_prefix`` + ``prefix`` + ``path`` for assets the sitemap
    does not know about.
    """
    if "//" in path or path.startswith("data:"):
        return path

    resource = site.sitemap.find_by_destination_path(url_for(site, path))
    if resource is None:
        path = join_paths(prefix, path)
        resource = site.sitemap.find_by_path(path)
    if resource is not None:
        return url_for(site, resource, **options)
    return join_paths(site.config.http_prefix, path)


def full_path(site: "Site", path: str) -> str:
    """Canonical ``/``-rooted destination path for a request path.

    Tries the path itself, then the path with the index file appended, and
    otherwise returns the normalized input.
    """
    resource = site.sitemap.find_by_destination_path(path)
    if resource is None:
        indexed_path = join_paths(re.sub(r"/$", "", path), site.config.index_file)
        resource = site.sitemap.find_by_destination_path(indexed_path)

    if resource is not None:
        return "/" + resource.destination_path
    return "/" + normalize_path(path)
