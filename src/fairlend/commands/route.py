"""Command group: redirect-rule evaluation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from fairlend.commands._base import FlGroup
from fairlend.services.routing import RoutingService

if TYPE_CHECKING:
    from fairlend.commands._context import AppContext

_ROUTE_EXAMPLES = """\
  fairlend route check http://mic.localhost:3000/listings
  fairlend route check https://app.example.com/deals --authenticated --role member
  fairlend route rules
  fairlend --json route check http://localhost:3000/"""


@click.group(cls=FlGroup, examples=_ROUTE_EXAMPLES)
@click.pass_obj
def route(app: AppContext) -> None:
    """Evaluate subdomain and role redirect rules."""


@route.command(
    examples="""\
  fairlend route check http://mic.localhost:3000/listings
  fairlend route check http://localhost:3000/dashboard --authenticated --role member
  fairlend -q route check http://localhost:3000/blog"""
)
@click.argument("url")
@click.option("--authenticated", is_flag=True, help="Treat the request as signed in.")
@click.option("--role", default=None, help="Role of the signed-in user.")
@click.pass_obj
def check(app: AppContext, url: str, authenticated: bool, role: str | None) -> None:
    """Show where a request for URL would be redirected."""
    app.emit(RoutingService(app.store).check_url(url, authenticated=authenticated, role=role))


@route.command(
    examples="""\
  fairlend route rules
  fairlend --json route rules"""
)
@click.pass_obj
def rules(app: AppContext) -> None:
    """List the configured rules in evaluation order."""
    app.emit(RoutingService(app.store).list_rules())
