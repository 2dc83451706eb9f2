"""Route auth policy helpers.

Every route endpoint is wrapped by one of these helpers, which sets the
``AUTH_POLICY_ATTR`` marker. ``validate_route_auth_policy`` runs at startup
and refuses to build an app containing an unmarked route.
"""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING

from starlette.authentication import has_required_scope
from starlette.responses import RedirectResponse
from starlette.routing import Route

from relay.auth.backend import CREDENTIAL_COOKIE

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from starlette.requests import Request
    from starlette.responses import Response
    from starlette.routing import BaseRoute

    Endpoint = Callable[[Request], Awaitable[Response]]

AUTH_POLICY_ATTR = "__auth_policy__"
SIGNIN_PATH = "/signin"


def _signin_redirect(request: Request) -> RedirectResponse:
    """Relative redirect to enrollment; a stale or forged cookie is cleared."""
    response = RedirectResponse(url=SIGNIN_PATH, status_code=303)
    if CREDENTIAL_COOKIE in request.cookies:
        response.delete_cookie(key=CREDENTIAL_COOKIE, path="/")
    return response


def protected_html(endpoint: Endpoint) -> Endpoint:
    """Require a valid credential; otherwise redirect to the sign-in page."""

    @functools.wraps(endpoint)
    async def wrapper(request: Request) -> Response:
        if not has_required_scope(request, ["authenticated"]):
            return _signin_redirect(request)
        return await endpoint(request)

    setattr(wrapper, AUTH_POLICY_ATTR, "protected_html")
    return wrapper


def public_route(endpoint: Endpoint) -> Endpoint:
    """Mark an endpoint as explicitly public.

    The marker goes on a thin wrapper so it never leaks onto the original
    function if that is reused elsewhere.
    """

    @functools.wraps(endpoint)
    async def wrapper(request: Request) -> Response:
        return await endpoint(request)

    setattr(wrapper, AUTH_POLICY_ATTR, "public")
    return wrapper


def validate_route_auth_policy(routes: list[BaseRoute]) -> None:
    """Raise RuntimeError naming every HTTP route without a policy marker.

    Mounts are exempt, and so are WebSocket routes, which the hub
    authorizes at connection time.
    """
    unclassified = [
        f"{route.path} ({route.name})"
        for route in routes
        if isinstance(route, Route) and not hasattr(route.endpoint, AUTH_POLICY_ATTR)
    ]
    if unclassified:
        msg = f"Unclassified routes missing auth policy: {', '.join(unclassified)}"
        raise RuntimeError(msg)
