# doorway/main.py
import logging
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from .auth import AdminAuthRequired
from .auth import router as auth_router
from .clients import router as clients_router
from .config import Config, configure_logging
from .errors import DoorwayError
from .intake import QuoteIntake
from .jobs import router as jobs_router
from .payments import router as payments_router
from .quotes import router as quotes_router
from .routers.health import router as health_router
from .services.geocoding import Geocoder
from .services.integrations import Integrations, build_integrations
from .store import SupabaseStore, utcnow
from .stripe_webhook import router as stripe_router
from .workflow import JobWorkflow

log = logging.getLogger("uvicorn.error")


def create_app(
    config: Optional[Config] = None,
    store=None,
    integrations: Optional[Integrations] = None,
    geocoder: Optional[Geocoder] = None,
    clock: Callable = utcnow,
) -> FastAPI:
    config = config or Config.from_env()
    store = store if store is not None else SupabaseStore.from_config(config)
    integrations = integrations if integrations is not None else build_integrations(config)
    geocoder = geocoder if geocoder is not None else Geocoder.from_config(config)

    app = FastAPI(title="Doorway Ops API", version="1.0.0", docs_url="/docs", redoc_url=None)
    app.state.config = config
    app.state.store = store
    app.state.integrations = integrations
    app.state.geocoder = geocoder
    app.state.intake = QuoteIntake(store, config, geocoder=geocoder, clock=clock)
    app.state.workflow = JobWorkflow(store, integrations, config, clock=clock)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(DoorwayError)
    async def doorway_error(request: Request, exc: DoorwayError):
        if exc.status_code >= 500:
            log.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(AdminAuthRequired)
    async def admin_auth_required(request: Request, exc: AdminAuthRequired):
        if "text/html" in request.headers.get("accept", ""):
            return RedirectResponse("/login", status_code=303)
        return JSONResponse(status_code=401, content={"detail": "Admin session required"})

    @app.get("/", tags=["default"])
    def read_root():
        return {"ok": True, "service": "doorway-ops"}

    # routers
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(quotes_router)
    app.include_router(clients_router)
    app.include_router(jobs_router)
    app.include_router(payments_router)
    app.include_router(stripe_router)

    return app


# ──────────────────────────────────────────────────────────────────────────────
# Local dev entrypoint: `python -m doorway.main` (relative imports need -m),
# or `uvicorn doorway.main:create_app --factory`
# ──────────────────────────────────────────────────────────────────────────────
if __name__ == "__main__":
    import uvicorn

    settings = Config.from_env()
    configure_logging(settings.log_level)
    uvicorn.run(
        "doorway.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=settings.port,
        reload=True,
    )
