"""Subdomain redirect rules engine.

A declarative, priority-based rules engine for request redirects.
Rules are evaluated in priority order (lower number = higher priority)
and the first matching rule determines the redirect destination.

The rule list is always owned by the caller and passed to :func:`evaluate`;
there is no module-level registry.

INVARIANT: Evaluation is pure. Exceptions raised by a rule's condition or
URL builder are never caught here; they propagate to the caller.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from operator import attrgetter
from urllib.parse import urlsplit, urlunsplit

DEFAULT_PUBLIC_SUBDOMAIN = "mic"
UNDER_CONSTRUCTION_PATH = "/underconstruction"

# Auth flows, API routes and public marketing pages stay reachable.
DEFAULT_PUBLIC_PATHS: tuple[str, ...] = (
    "/sign-in",
    "/sign-up",
    "/callback",
    "/onboarding",
    "/api",
    "/blog",
    "/contact",
    "/about",
)

DEFAULT_RESTRICTED_ROLES: tuple[str, ...] = ("member",)

SUBDOMAIN_RULE_PRIORITY = 50
ROLE_RULE_PRIORITY = 100
RESTRICTED_ACCESS_PRIORITY = 100
LANDING_ONLY_PRIORITY = 10


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RedirectContext:
    """Request facts a rule may inspect. Built once per request."""

    subdomain: str | None
    pathname: str
    is_authenticated: bool
    role: str | None
    request_url: str
    """Full absolute URL; template for building redirect targets."""


Condition = Callable[[RedirectContext], bool]
UrlBuilder = Callable[[RedirectContext], str]


@dataclass(frozen=True)
class RedirectRule:
    """A named, prioritized redirect.

    Attributes:
        name: Human-readable name for diagnostics. Uniqueness is not enforced.
        priority: Lower sorts first; ties keep list order.
        condition: Pure predicate deciding whether the rule applies.
        get_redirect_url: Pure function producing the absolute target URL.
    """

    name: str
    priority: int
    condition: Condition
    get_redirect_url: UrlBuilder


# ---------------------------------------------------------------------------
# URL helpers
# ---------------------------------------------------------------------------


def with_path(request_url: str, pathname: str) -> str:
    """Return *request_url* with its path replaced by *pathname*.

    Scheme, host, port, query and fragment are kept.

    Examples:
        >>> with_path("https://app.example.com/deals?tab=2", "/underconstruction")
        'https://app.example.com/underconstruction?tab=2'
        >>> with_path("http://localhost:3000", "/")
        'http://localhost:3000/'
    """
    parts = urlsplit(request_url)
    if not pathname.startswith("/"):
        pathname = f"/{pathname}"
    return urlunsplit((parts.scheme, parts.netloc, pathname, parts.query, parts.fragment))


def origin_path(request_url: str, pathname: str = "/") -> str:
    """Return *pathname* on the origin of *request_url*, without query or fragment.

    Examples:
        >>> origin_path("https://mic.example.com/deals?tab=2#top")
        'https://mic.example.com/'
    """
    parts = urlsplit(request_url)
    return urlunsplit((parts.scheme, parts.netloc, pathname, "", ""))


def _redirect_to(destination_path: str) -> UrlBuilder:
    def build(ctx: RedirectContext) -> str:
        return with_path(ctx.request_url, destination_path)

    return build


# ---------------------------------------------------------------------------
# Built-in rules
# ---------------------------------------------------------------------------


def create_restricted_access_rule(
    *,
    public_subdomain: str | None = DEFAULT_PUBLIC_SUBDOMAIN,
    destination_path: str = UNDER_CONSTRUCTION_PATH,
    public_paths: Sequence[str] = DEFAULT_PUBLIC_PATHS,
    restricted_roles: Sequence[str] = DEFAULT_RESTRICTED_ROLES,
    priority: int = RESTRICTED_ACCESS_PRIORITY,
) -> RedirectRule:
    """Gate unauthenticated and role-less users behind *destination_path*.

    Fires for anonymous requests, and for authenticated requests whose role
    is falsy or listed in *restricted_roles*. Every other role has full
    access. Never fires on *public_subdomain*, on *destination_path* itself,
    or under one of *public_paths*.
    """
    excluded = tuple(public_paths)
    restricted = frozenset(restricted_roles)

    def condition(ctx: RedirectContext) -> bool:
        if public_subdomain is not None and ctx.subdomain == public_subdomain:
            return False
        if ctx.pathname == destination_path:
            return False
        if ctx.pathname.startswith(excluded):
            return False
        if not ctx.is_authenticated:
            return True
        # "" collapses to "no role" along with None.
        return not ctx.role or ctx.role in restricted

    return RedirectRule(
        name="restricted-access-underconstruction",
        priority=priority,
        condition=condition,
        get_redirect_url=_redirect_to(destination_path),
    )


def create_landing_only_rule(
    subdomain: str = DEFAULT_PUBLIC_SUBDOMAIN,
    *,
    landing_path: str = "/",
    priority: int = LANDING_ONLY_PRIORITY,
) -> RedirectRule:
    """Confine *subdomain* to its landing page.

    The redirect carries no query string or fragment.
    """
    return RedirectRule(
        name="public-subdomain-landing-only",
        priority=priority,
        condition=lambda ctx: ctx.subdomain == subdomain and ctx.pathname != landing_path,
        get_redirect_url=lambda ctx: origin_path(ctx.request_url, landing_path),
    )


def default_rules() -> list[RedirectRule]:
    """A fresh list holding the built-in rules with their default settings."""
    return [create_landing_only_rule(), create_restricted_access_rule()]


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def sort_rules(rules: Iterable[RedirectRule]) -> list[RedirectRule]:
    """Rules in evaluation order. ``sorted`` is stable, so ties keep list order."""
    return sorted(rules, key=attrgetter("priority"))


def match_rule(ctx: RedirectContext, rules: Iterable[RedirectRule]) -> RedirectRule | None:
    """Return the first rule (in priority order) whose condition holds."""
    for rule in sort_rules(rules):
        if rule.condition(ctx):
            return rule
    return None


def evaluate(ctx: RedirectContext, rules: Iterable[RedirectRule]) -> str | None:
    """Return the redirect URL of the first matching rule, or None."""
    rule = match_rule(ctx, rules)
    if rule is None:
        return None
    return rule.get_redirect_url(ctx)


def build_redirect_context(
    *,
    subdomain: str | None,
    pathname: str,
    is_authenticated: bool,
    role: str | None,
    request_url: str,
) -> RedirectContext:
    """Assemble the context from request-derived primitives."""
    return RedirectContext(
        subdomain=subdomain,
        pathname=pathname,
        is_authenticated=is_authenticated,
        role=role,
        request_url=request_url,
    )


# ---------------------------------------------------------------------------
# Rule factories
# ---------------------------------------------------------------------------


def create_subdomain_redirect_rule(
    subdomain: str,
    destination_path: str,
    *,
    priority: int = SUBDOMAIN_RULE_PRIORITY,
    name: str | None = None,
) -> RedirectRule:
    """Redirect every request on *subdomain* to *destination_path* (same host)."""
    return RedirectRule(
        name=name or f"{subdomain}-redirect",
        priority=priority,
        condition=lambda ctx: ctx.subdomain == subdomain,
        get_redirect_url=_redirect_to(destination_path),
    )


def create_role_redirect_rule(
    role_condition: Callable[[str | None], bool],
    destination_path: str,
    *,
    priority: int = ROLE_RULE_PRIORITY,
    name: str | None = None,
    require_subdomain: bool = False,
    exclude_subdomain: bool = False,
) -> RedirectRule:
    """Redirect authenticated users whose role satisfies *role_condition*.

    *require_subdomain* restricts the rule to tenant subdomains and
    *exclude_subdomain* to the apex domain. Setting both makes the rule
    unreachable; that combination is not rejected.
    """

    def condition(ctx: RedirectContext) -> bool:
        if require_subdomain and not ctx.subdomain:
            return False
        if exclude_subdomain and ctx.subdomain:
            return False
        if not ctx.is_authenticated:
            return False
        return role_condition(ctx.role)

    return RedirectRule(
        name=name or "role-redirect",
        priority=priority,
        condition=condition,
        get_redirect_url=_redirect_to(destination_path),
    )
