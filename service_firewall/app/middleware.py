"""
Firewall middleware for Starlette/FastAPI applications.
"""

from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, PlainTextResponse, Response

from shared.errors import error_for_status
from shared.logging import clear_context, get_logger, set_request_id, set_user_context

from .firewall import (
    Continuation, FirewallMap, FirewallRequest, FirewallResponse, Principal, get_default_map
)

PrincipalLoader = Callable[[Request], Optional[Principal]]


def principal_from_request(request: Request) -> Optional[Principal]:
    """Extract the authenticated principal from a Starlette request.

    Looks at ``request.state.user_info`` first (a dict with ``user_id`` and
    ``roles``), then at Starlette's AuthenticationMiddleware scope entries.
    """
    user_info: Optional[Dict[str, Any]] = getattr(request.state, "user_info", None)
    if user_info:
        return Principal(
            user_id=user_info.get("user_id"),
            roles=list(user_info.get("roles") or [])
        )

    if "user" in request.scope:
        user = request.scope["user"]
        if getattr(user, "is_authenticated", False):
            auth = request.scope.get("auth")
            return Principal(
                user_id=getattr(user, "display_name", None),
                roles=list(getattr(auth, "scopes", None) or [])
            )

    return None


class FirewallMiddleware(BaseHTTPMiddleware):
    """Runs every request through a FirewallMap before routing."""

    def __init__(self, app, firewall_map: FirewallMap, principal_loader: Optional[PrincipalLoader] = None):
        super().__init__(app)
        self.firewall_map = firewall_map
        self.principal_loader = principal_loader or principal_from_request
        self.logger = get_logger("firewall.middleware")

    def _to_firewall_request(self, request: Request) -> FirewallRequest:
        url = request.url.path
        if request.url.query:
            url = f"{url}?{request.url.query}"
        return FirewallRequest(
            url=url,
            method=request.method,
            principal=self.principal_loader(request)
        )

    def _to_http_response(self, response: FirewallResponse) -> Response:
        status_code = response.status_code or 403
        if response.body is not None:
            return PlainTextResponse(response.body, status_code=status_code, headers=response.headers)

        error = error_for_status(status_code)
        return JSONResponse(
            content=error.to_response().model_dump(),
            status_code=status_code,
            headers=response.headers
        )

    async def dispatch(self, request: Request, call_next):
        set_request_id(request.headers.get("X-Request-ID"))
        try:
            firewall_request = self._to_firewall_request(request)
            if firewall_request.principal is not None:
                set_user_context(firewall_request.principal.user_id)

            firewall_response = FirewallResponse()
            proceed = Continuation()
            decision = self.firewall_map.check(firewall_request, firewall_response, proceed)

            if proceed.called:
                return await call_next(request)

            self.logger.info(
                "Request blocked by firewall",
                method=firewall_request.method,
                url=firewall_request.url,
                decision=decision,
                status_code=firewall_response.status_code
            )
            return self._to_http_response(firewall_response)
        finally:
            clear_context()


def use(app: FastAPI, firewall_map: Optional[FirewallMap] = None,
        principal_loader: Optional[PrincipalLoader] = None) -> FastAPI:
    """Install the firewall middleware, defaulting to the default map."""
    app.add_middleware(
        FirewallMiddleware,
        firewall_map=firewall_map if firewall_map is not None else get_default_map(),
        principal_loader=principal_loader
    )
    return app
