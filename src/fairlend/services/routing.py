"""RoutingService — evaluate redirect rules for a request.

The rule registry is built from ``[routing]`` configuration on each
service instance and owned by that instance; callers that need a
different registry pass their own list to :class:`RoutingService`.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

import structlog

from fairlend.domain.routing import (
    RedirectContext,
    RedirectRule,
    create_landing_only_rule,
    create_restricted_access_rule,
    create_role_redirect_rule,
    create_subdomain_redirect_rule,
    match_rule,
    sort_rules,
)
from fairlend.domain.subdomains import context_from_url
from fairlend.services.base import BaseService
from fairlend.services.result import ServiceResult
from fairlend.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from fairlend.config.models import RoleRedirectConfig, RoutingConfig
    from fairlend.infrastructure.store import Store

log = structlog.get_logger(__name__)


def _role_predicate(cfg: RoleRedirectConfig) -> Callable[[str | None], bool]:
    roles = frozenset(cfg.roles)

    def predicate(role: str | None) -> bool:
        if not role:
            return cfg.include_no_role
        return role in roles

    return predicate


def build_rules(config: RoutingConfig) -> list[RedirectRule]:
    """Build a fresh rule registry from the ``[routing]`` section.

    Order: landing-only rule, subdomain redirects, role redirects,
    restricted-access gate. Evaluation order is decided by priority;
    this order only breaks ties.
    """
    rules: list[RedirectRule] = []
    if config.landing_only and config.public_subdomain:
        rules.append(create_landing_only_rule(config.public_subdomain))
    for sub in config.subdomain_redirects:
        rules.append(
            create_subdomain_redirect_rule(
                sub.subdomain,
                sub.destination,
                priority=sub.priority,
                name=sub.name,
            )
        )
    for role_cfg in config.role_redirects:
        rules.append(
            create_role_redirect_rule(
                _role_predicate(role_cfg),
                role_cfg.destination,
                priority=role_cfg.priority,
                name=role_cfg.name,
                require_subdomain=role_cfg.require_subdomain,
                exclude_subdomain=role_cfg.exclude_subdomain,
            )
        )
    if config.restricted_access:
        rules.append(
            create_restricted_access_rule(
                public_subdomain=config.public_subdomain,
                destination_path=config.restricted_destination,
                public_paths=config.public_paths,
                restricted_roles=config.restricted_roles,
            )
        )
    return rules


class RoutingService(BaseService):
    """Answers "where should this request go?" for the hosting middleware."""

    def __init__(self, store: Store, rules: Sequence[RedirectRule] | None = None) -> None:
        super().__init__(store)
        self._rules: list[RedirectRule] = (
            list(rules) if rules is not None else build_rules(self.settings.routing)
        )

    @property
    def rules(self) -> list[RedirectRule]:
        """A copy of this service's registry, in registration order."""
        return list(self._rules)

    def _evaluate(self, ctx: RedirectContext) -> tuple[RedirectRule | None, str | None]:
        rule = match_rule(ctx, self._rules)
        redirect = rule.get_redirect_url(ctx) if rule is not None else None
        log.debug(
            "routing.evaluated",
            pathname=ctx.pathname,
            subdomain=ctx.subdomain,
            is_authenticated=ctx.is_authenticated,
            role=ctx.role,
            rule=rule.name if rule is not None else None,
            redirect=redirect,
        )
        return rule, redirect

    def resolve(self, ctx: RedirectContext) -> str | None:
        """Evaluate the registry for *ctx*; rule exceptions propagate."""
        return self._evaluate(ctx)[1]

    @traced
    def check_url(
        self,
        url: str,
        *,
        authenticated: bool = False,
        role: str | None = None,
    ) -> ServiceResult:
        """Evaluate the registry for an absolute request URL."""
        op = "route_check"
        try:
            ctx = context_from_url(
                url,
                root_domain=self.settings.routing.root_domain,
                is_authenticated=authenticated,
                role=role,
            )
        except ValueError as exc:
            return ServiceResult.failure(op, "INVALID_URL", str(exc), url=url)

        with trace_span("evaluate") as span:
            rule, redirect = self._evaluate(ctx)
            if span is not None:
                span.annotate("rules", len(self._rules))

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "url": url,
                "subdomain": ctx.subdomain,
                "pathname": ctx.pathname,
                "authenticated": ctx.is_authenticated,
                "role": ctx.role,
                "redirect": redirect,
                "rule": rule.name if rule is not None else None,
            },
        )

    @traced
    def list_rules(self) -> ServiceResult:
        """The registry in evaluation order."""
        items = [
            {"position": i, "name": rule.name, "priority": rule.priority}
            for i, rule in enumerate(sort_rules(self._rules), start=1)
        ]
        return ServiceResult(
            ok=True,
            op="route_rules",
            data={"count": len(items), "items": items},
        )
