"""
FastAPI wiring for the strategy: /auth/{provider}, the callback path and /auth/failure.
This is the host side; it owns the session, reads the query string, and turns
strategy results into redirects.
"""
import html
import logging
from collections.abc import Callable
from urllib.parse import urlencode

from fastapi import APIRouter, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from scalus_auth.strategy import AuthFailure, AuthResult, ScalusStrategy

logger = logging.getLogger(__name__)

FAILURE_PATH = "/auth/failure"

SuccessHandler = Callable[[Request, AuthResult], Response]


def failure_redirect(reason: str, provider: str) -> RedirectResponse:
    params = {"message": reason, "strategy": provider}
    return RedirectResponse(url=f"{FAILURE_PATH}?{urlencode(params)}", status_code=302)


def default_success(request: Request, result: AuthResult) -> Response:
    """Report who logged in; the access token stays server side."""
    return JSONResponse({"status": "ok", "provider": result.provider, "uid": result.uid})


def _full_host(request: Request) -> str:
    return str(request.base_url).rstrip("/")


def build_router(strategy: ScalusStrategy, on_success: SuccessHandler | None = None) -> APIRouter:
    router = APIRouter(tags=["auth"])
    handle_success = on_success or default_success

    def request_phase(request: Request):
        """Validate organization and redirect to the provider authorize page."""
        params = dict(request.query_params)
        result = strategy.request_phase(params, request.session, _full_host(request))
        if isinstance(result, AuthFailure):
            return failure_redirect(result.reason, strategy.name)
        return RedirectResponse(url=result.url, status_code=result.status_code)

    def callback_phase(request: Request):
        """
        Verify state and signature, then exchange the code.
        Only query parameters are considered; a request body is never read.
        """
        params = dict(request.query_params)
        result = strategy.callback_phase(params, request.session, _full_host(request))
        if isinstance(result, AuthFailure):
            return failure_redirect(result.reason, strategy.name)
        request.state.scalus_auth = result
        return handle_success(request, result)

    router.add_api_route(f"/auth/{strategy.name}", request_phase, methods=["GET"])
    router.add_api_route(strategy.config.callback_path, callback_phase, methods=["GET"])
    return router


failure_router = APIRouter(tags=["auth"])


@failure_router.get(FAILURE_PATH, response_class=HTMLResponse)
def auth_failure(message: str = "unknown_error", strategy: str = ""):
    """Generic failure page for any strategy."""
    logger.info("auth failure page: message=%s strategy=%s", message, strategy)
    return HTMLResponse(
        f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Login failed</title></head>
<body>
  <h1>Login failed</h1>
  <p>Reason: <code>{html.escape(message)}</code></p>
  <p>Provider: {html.escape(strategy)}</p>
  <p><a href="/">Home</a></p>
</body>
</html>""",
        status_code=401,
    )
