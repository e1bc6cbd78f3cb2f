# storefront/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional
from urllib.parse import urlencode

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from . import __version__, admin, routes, webhooks
from .config import Settings
from .context import Storefront
from .deps import get_storefront, require_admin
from .errors import NotFound, PartialOrderError, RemoteError, ValidationFailed
from .log import configure_logging
from .remote import DataClient
from .seed import seed_demo

logger = logging.getLogger(__name__)


def _is_admin_page(path: str) -> bool:
    return path == "/admin" or path.startswith("/admin/")


def create_app(settings: Optional[Settings] = None, client: Optional[DataClient] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    sf = Storefront(settings, client)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.seed:
            await seed_demo(sf)
        yield
        await sf.close()

    app = FastAPI(title="storefront", version=__version__, lifespan=lifespan)
    app.state.storefront = sf

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ---------------------------
    # Admin page gate
    # ---------------------------
    @app.middleware("http")
    async def admin_pages(request: Request, call_next):
        if _is_admin_page(request.url.path):
            session = sf.auth.session(request)
            if session is None:
                query = urlencode({"redirect_url": str(request.url)})
                return RedirectResponse(f"/sign-in?{query}")
            if not await sf.auth.is_admin(session):
                logger.info("Non-admin %s redirected away from %s", session.subject, request.url.path)
                return RedirectResponse("/")
        return await call_next(request)

    # ---------------------------
    # Error mapping
    # ---------------------------
    @app.exception_handler(ValidationFailed)
    async def validation_failed(request: Request, exc: ValidationFailed):
        return JSONResponse(status_code=400, content={"detail": str(exc), "errors": exc.errors})

    @app.exception_handler(PartialOrderError)
    async def partial_order(request: Request, exc: PartialOrderError):
        return JSONResponse(
            status_code=502,
            content={
                "detail": str(exc),
                "order_id": exc.order.get("id"),
                "items_written": len(exc.inserted_items),
                "items_expected": exc.expected_items,
                "compensated": exc.compensated,
            },
        )

    @app.exception_handler(NotFound)
    async def not_found(request: Request, exc: NotFound):
        return JSONResponse(status_code=404, content={"detail": exc.message})

    @app.exception_handler(RemoteError)
    async def remote_error(request: Request, exc: RemoteError):
        # constraint violations are the caller's fault; everything else is upstream
        status = exc.status if exc.status in (400, 409) else 502
        return JSONResponse(status_code=status, content={"detail": exc.message})

    # ---------------------------
    # Routes
    # ---------------------------
    @app.get("/")
    async def root():
        return {"service": "storefront", "version": __version__, "backend": sf.client.backend}

    @app.get("/admin", dependencies=[Depends(require_admin)])
    async def admin_dashboard(sf: Storefront = Depends(get_storefront)):
        stats = await sf.orders.stats()
        recent = await sf.orders.list(page=1, per_page=5)
        return {"stats": stats.model_dump(), "recent_orders": recent.model_dump()["items"]}

    app.include_router(routes.router)
    app.include_router(admin.router)
    app.include_router(webhooks.router)
    return app


def run() -> None:
    import uvicorn

    settings = Settings.from_env()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
