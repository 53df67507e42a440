import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import models  # noqa: F401  registers tables on Base.metadata
from . import schemas
from .config import DEV_JWT_SECRET, settings
from .database import Base, engine
from .errors import AppError
from .routes import auth as auth_routes
from .routes import projects as projects_routes

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    description="Personal project tracking with bearer-token authentication.",
    version="1.0.0",
)


@app.on_event("startup")
def on_startup() -> None:
    if settings.is_production and settings.jwt_secret == DEV_JWT_SECRET:
        raise RuntimeError("JWT_SECRET must be set when APP_ENV=production")
    if settings.jwt_secret == DEV_JWT_SECRET:
        logger.warning("Using the development JWT secret; set JWT_SECRET outside dev.")

    Base.metadata.create_all(bind=engine)
    logger.info("%s started in %s mode", settings.app_name, settings.environment)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("Request failed: %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse({"message": exc.message}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        {"message": schemas.first_error_message(exc.errors())},
        status_code=status.HTTP_400_BAD_REQUEST,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        {"message": str(exc.detail)},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled application error", exc_info=exc)
    return JSONResponse(
        {"message": "Internal server error"},
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


@app.get("/api/health", response_model=schemas.HealthOut, tags=["health"])
def health():
    return schemas.HealthOut()


app.include_router(auth_routes.router)
app.include_router(projects_routes.router)
