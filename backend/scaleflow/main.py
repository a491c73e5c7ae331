import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from scaleflow.core.config import settings
from scaleflow.core.logging import configure_logging
import scaleflow.models  # noqa: F401  # force model registration

from scaleflow.api.v1.admin import router as admin_router
from scaleflow.api.v1.auth import router as auth_router
from scaleflow.api.v1.companies import router as companies_router
from scaleflow.api.v1.employees import router as employees_router
from scaleflow.api.v1.feature_flags import router as feature_flags_router
from scaleflow.api.v1.invitations import router as invitations_router
from scaleflow.api.v1.permissions import router as permissions_router
from scaleflow.api.v1.preferences import router as preferences_router
from scaleflow.api.v1.roles import router as roles_router
from scaleflow.api.v1.shift_templates import router as shift_templates_router
from scaleflow.api.v1.shifts import router as shifts_router
from scaleflow.api.v1.swap_requests import router as swap_requests_router
from scaleflow.api.v1.workload import router as workload_router

logger = logging.getLogger(__name__)


def integrity_error_message(exc: IntegrityError) -> str:
    """
    Map driver-specific constraint messages onto something a user can act on.
    """
    text = str(getattr(exc, "orig", exc)).lower()
    if "unique" in text or "duplicate" in text:
        return "This record already exists"
    if "foreign key" in text:
        return "Cannot delete: related records exist"
    if "not null" in text or "null value" in text:
        return "Required field is missing"
    return "The request conflicts with existing data"


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("scaleflow api starting (environment=%s)", settings.ENVIRONMENT)
    yield


def create_application() -> FastAPI:
    app = FastAPI(title="ScaleFlow API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError):
        logger.warning("integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": {"code": "integrity_error", "message": integrity_error_message(exc)}},
        )

    @app.get("/")
    def root():
        return {"status": "ok", "service": "scaleflow"}

    # Routers
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(roles_router, prefix="/api/v1")
    app.include_router(permissions_router, prefix="/api/v1")
    app.include_router(companies_router, prefix="/api/v1")
    app.include_router(employees_router, prefix="/api/v1")
    app.include_router(invitations_router, prefix="/api/v1")
    app.include_router(shifts_router, prefix="/api/v1")
    app.include_router(shift_templates_router, prefix="/api/v1")
    app.include_router(preferences_router, prefix="/api/v1")
    app.include_router(swap_requests_router, prefix="/api/v1")
    app.include_router(workload_router, prefix="/api/v1")
    app.include_router(feature_flags_router, prefix="/api/v1")
    app.include_router(admin_router, prefix="/api/v1")

    return app


app = create_application()
