"""Exceptions raised by the sitemap and URL helpers."""

from __future__ import annotations


class SitemapError(Exception):
    """Base class for sitemap errors."""


class ConfigError(SitemapError):
    """Raised when a site configuration cannot be loaded or is invalid."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid configuration in '{source}': {reason}")


class RelativeUrlError(SitemapError, ValueError):
    """Raised when a relative URL is requested for an external URL."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"Can't use the relative option with an external URL: {url}")


class ResourceNotFoundError(SitemapError, LookupError):
    """Raised when a resource is required but nothing in the sitemap matches."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"No resource exists at {url}")


class DestinationCollisionError(SitemapError):
    def __init__(self, destination_path: str, first: str, second: str) -> None:
        self.destination_path = destination_path
        self.sources = (first, second)
        super().__init__(
            f"Resources '{first}' and '{second}' share destination path '{destination_path}'"
        )


class ProxyError(SitemapError):
    """Raised when a proxy resource cannot reach its target."""

    def __init__(self, path: str, target: str, reason: str = "proxies to unknown file") -> None:
        self.path = path
        self.target = target
        super().__init__(f"Path {path} {reason}: {target}")


class UriTemplateError(SitemapError, ValueError):
    """Raised for template expressions the URI template helpers cannot handle."""

    def __init__(self, template: str, expression: str) -> None:
        self.template = template
        self.expression = expression
        super().__init__(f"Unsupported expression {expression} in URI template '{template}'")
