"""Template helpers exposing URL resolution and translations to jinja2 templates."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from jinja2 import Environment, FileSystemLoader, pass_context, select_autoescape
from jinja2.runtime import Context

from .. import urls
from .models import Resource

if TYPE_CHECKING:
    from ..site import Site


def build_environment(site: "Site", templates_dir: Optional[str | Path] = None) -> Environment:
    loader = FileSystemLoader(str(templates_dir)) if templates_dir is not None else None
    env = Environment(
        loader=loader,
        autoescape=select_autoescape(["html", "xml"]),
    )
    register_helpers(env, site)
    return env


def template_context(resource: Resource, **extra: Any) -> dict:
    """Variables a template for ``resource`` is rendered with."""
    context = dict(resource.locals)
    context.update(extra)
    context["current_resource"] = resource
    return context


def register_helpers(env: Environment, site: "Site") -> None:
    @pass_context
    def url_for(context: Context, path_or_resource: str | Resource, **options: Any) -> str:
        options.setdefault("current_resource", context.get("current_resource"))
        return urls.url_for(site, path_or_resource, **options)

    @pass_context
    def asset_path(context: Context, kind: str, source: str, **options: Any) -> str:
        options.setdefault("current_resource", context.get("current_resource"))
        return urls.asset_path(site, kind, source, **options)

    def asset_url(path: str, prefix: str = "", **options: Any) -> str:
        return urls.asset_url(site, path, prefix, **options)

    def full_path(path: str) -> str:
        return urls.full_path(site, path)

    @pass_context
    def t(context: Context, key: str, **options: Any) -> Any:
        i18n = site.extensions.get("i18n")
        if i18n is None:
            return options.get("default", key)
        locale = options.pop("locale", None) or context.get("lang") or i18n.mount_at_root_locale()
        return i18n.translations.translate(locale, key, **options)

    def langs() -> list[str]:
        return site.langs

    env.globals.update(
        url_for=url_for,
        asset_path=asset_path,
        asset_url=asset_url,
        full_path=full_path,
        t=t,
        langs=langs,
    )
