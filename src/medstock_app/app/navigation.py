from __future__ import annotations

from dataclasses import dataclass

from medstock_app.app.state import Route


@dataclass(frozen=True)
class RouteSpec:
    route: Route
    label: str
    requires_auth: bool


ROUTE_SPECS: tuple[RouteSpec, ...] = (
    RouteSpec(Route.LOGIN, "Sign in", False),
    RouteSpec(Route.SIGNUP, "Create account", False),
    RouteSpec(Route.DASHBOARD, "Your Stocks", True),
    RouteSpec(Route.STOCK_DETAIL, "Stock", True),
)

_SPECS_BY_ROUTE = {spec.route: spec for spec in ROUTE_SPECS}


def resolve_route(requested: Route, authenticated: bool) -> Route:
    """Protected routes bounce to login; signed-in users skip the auth screens."""
    spec = _SPECS_BY_ROUTE[requested]
    if spec.requires_auth and not authenticated:
        return Route.LOGIN
    if not spec.requires_auth and authenticated:
        return Route.DASHBOARD
    return requested
