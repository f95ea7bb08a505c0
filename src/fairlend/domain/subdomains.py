"""Tenant subdomain extraction from ``Host`` headers."""

from __future__ import annotations

from urllib.parse import urlsplit

from fairlend.domain.routing import RedirectContext, build_redirect_context

_IGNORED_LABELS = frozenset({"www"})


def _strip_port(host: str) -> str:
    if host.startswith("["):  # IPv6 literal
        return host.split("]", 1)[0] + "]"
    return host.rsplit(":", 1)[0] if ":" in host else host


def get_subdomain(host: str, root_domain: str) -> str | None:
    """Return the label(s) in front of *root_domain*, or None for the apex.

    Ports are ignored on both sides and matching is case-insensitive.
    ``www`` counts as the apex.

    Examples:
        >>> get_subdomain("broker.fairlend.ca", "fairlend.ca")
        'broker'
        >>> get_subdomain("app.localhost:3000", "localhost:3000")
        'app'
        >>> get_subdomain("fairlend.ca", "fairlend.ca") is None
        True
        >>> get_subdomain("example.com", "fairlend.ca") is None
        True
    """
    hostname = _strip_port(host.strip().lower()).rstrip(".")
    root = _strip_port(root_domain.strip().lower()).rstrip(".")
    if not hostname or not root or hostname == root:
        return None
    suffix = f".{root}"
    if not hostname.endswith(suffix):
        return None
    label = hostname[: -len(suffix)]
    if not label or label in _IGNORED_LABELS:
        return None
    return label


def context_from_url(
    url: str,
    *,
    root_domain: str,
    is_authenticated: bool,
    role: str | None,
) -> RedirectContext:
    """Build a :class:`RedirectContext` from an absolute request URL.

    Raises:
        ValueError: If *url* is not absolute (no scheme or host).
    """
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        msg = f"Expected an absolute URL, got {url!r}"
        raise ValueError(msg)
    if role is not None:
        role = role.strip()
    return build_redirect_context(
        subdomain=get_subdomain(parts.netloc.rpartition("@")[2], root_domain),
        pathname=parts.path or "/",
        is_authenticated=is_authenticated,
        role=role,
        request_url=url,
    )
