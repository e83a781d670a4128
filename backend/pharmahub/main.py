"""
PharmaHub Backend: multi-tenant pharmacy inventory and price comparison.

ARCHITECTURE:
- FastAPI: HTTP surface, authentication, request validation
- Services: business rules, each operation one transaction
- SQL database: source of truth for stock, movements, sales, bookings

SAFETY MODEL:
- Every owner operation runs through a TenantScope built from the token
- Stock never goes negative; decrements are conditional UPDATEs
- Every quantity change writes an append-only stock movement
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pharmahub.api.routes import admin, auth, bookings, dashboard, inventory, sales, search
from pharmahub.api.routes import settings as settings_routes
from pharmahub.core.config import settings
from pharmahub.core.exceptions import BusinessError, PharmaHubError
from pharmahub.db.init_db import init_db
from pharmahub.db.session import Database

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Build the application around one Database.

    Tests pass their own in-memory Database; the server process builds one
    from DATABASE_URL at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = database or Database(settings.DATABASE_URL)
        logger.info("[*] Initializing database...")
        init_db(db)
        app.state.database = db
        logger.info("[OK] Database initialized")

        yield

        if database is None:
            db.dispose()

    app = FastAPI(
        title="PharmaHub API",
        description="Pharmacy inventory, counter sales, pickup bookings and public price comparison.",
        version="0.1.0",
        lifespan=lifespan,
    )
    if database is not None:
        app.state.database = database

    # SECURITY: Restrict CORS to specific methods and headers (not wildcards)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Accept", "Origin"],
        max_age=600,
        expose_headers=["Content-Type"],
    )

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response

    @app.exception_handler(PharmaHubError)
    async def domain_error_handler(request: Request, exc: PharmaHubError):
        http_exc = BusinessError.from_domain(exc)
        return JSONResponse(
            status_code=http_exc.status_code,
            content={"detail": http_exc.detail},
            headers=http_exc.headers,
        )

    app.include_router(auth.router, prefix="/auth", tags=["auth"])
    app.include_router(inventory.router, prefix="/inventory", tags=["inventory"])
    app.include_router(sales.router, prefix="/sales", tags=["sales"])
    app.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
    app.include_router(search.router, tags=["search"])
    app.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
    app.include_router(settings_routes.router, prefix="/settings", tags=["settings"])
    app.include_router(admin.router, prefix="/admin", tags=["admin"])

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()
