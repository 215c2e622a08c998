"""
Demo host application for the Scalus strategy.
GET / (organization form), /auth/scalus, /auth/scalus/callback, /auth/failure.
Run with: uvicorn scalus_auth.main:get_app --factory
Configure with SCALUS_CLIENT_ID / SCALUS_CLIENT_SECRET (see config.py).
"""
from fastapi import FastAPI
from fastapi.responses import HTMLResponse
from starlette.middleware.sessions import SessionMiddleware

from scalus_auth.config import SESSION_SECRET, StrategyConfig
from scalus_auth.router import SuccessHandler, build_router, failure_router
from scalus_auth.strategy import ScalusStrategy


def create_app(
    strategy: ScalusStrategy,
    *,
    on_success: SuccessHandler | None = None,
    session_secret: str = SESSION_SECRET,
) -> FastAPI:
    """Mount the strategy routes behind a signed-cookie session."""
    app = FastAPI(title="Scalus Login", version="0.1.0")
    app.add_middleware(SessionMiddleware, secret_key=session_secret, same_site="lax")
    app.include_router(build_router(strategy, on_success=on_success))
    app.include_router(failure_router)

    @app.get("/health")
    def health():
        """Health check endpoint."""
        return {"status": "ok", "service": "scalus_auth"}

    @app.get("/", response_class=HTMLResponse)
    def home():
        """Organization prompt that starts the login."""
        return HTMLResponse(
            f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Scalus login</title></head>
<body>
  <h1>Log in with Scalus</h1>
  <form method="get" action="/auth/{strategy.name}">
    <label>Organization: <input type="text" name="organization" placeholder="snowdevil.{strategy.config.domain_suffix}" required/></label>
    <button type="submit">Log in</button>
  </form>
</body>
</html>"""
        )

    return app


def get_app() -> FastAPI:
    """
    App factory for uvicorn (--factory). Reads SCALUS_* at call time, so importing this
    module never requires credentials; a missing SCALUS_CLIENT_ID fails here instead.
    """
    return create_app(ScalusStrategy(StrategyConfig.from_env()))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "scalus_auth.main:get_app",
        factory=True,
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
