import logging
import os
import uuid

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from fitlink.auth import router as auth_router
from fitlink.config import settings
from fitlink.core import exceptions
from fitlink.database import AsyncSessionLocal
from fitlink.routers.clients import router as clients_router
from fitlink.routers.coaches import router as coaches_router
from fitlink.routers.dashboard import router as dashboard_router
from fitlink.routers.exercises import router as exercises_router
from fitlink.routers.gyms import router as gyms_router
from fitlink.routers.invitations import router as invitations_router
from fitlink.routers.search import router as search_router
from fitlink.routers.users import router as users_router
from fitlink.routers.workout_plans import router as workout_plans_router
from fitlink.routers.workouts import router as workouts_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json"
)

# Mount static files for profile pictures
os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount("/static", StaticFiles(directory=settings.UPLOAD_DIR), name="static")

# CORS must be added before other middleware
configured_origins = [str(origin).rstrip("/") for origin in settings.BACKEND_CORS_ORIGINS]
default_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:8000",
    "http://127.0.0.1:8000",
]
allow_origins = configured_origins if settings.APP_ENV == "production" else list(dict.fromkeys([*default_origins, *configured_origins]))

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def attach_request_id(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response

# Exception Handlers
app.add_exception_handler(RequestValidationError, exceptions.validation_exception_handler)  # type: ignore
app.add_exception_handler(IntegrityError, exceptions.integrity_exception_handler)  # type: ignore

# Routers
app.include_router(auth_router.router, prefix=f"{settings.API_V1_STR}/auth", tags=["Auth"])
app.include_router(users_router, prefix=f"{settings.API_V1_STR}/users", tags=["Users"])
app.include_router(gyms_router, prefix=f"{settings.API_V1_STR}/gyms", tags=["Gyms"])
app.include_router(coaches_router, prefix=f"{settings.API_V1_STR}/coaches", tags=["Coaches"])
app.include_router(clients_router, prefix=f"{settings.API_V1_STR}/clients", tags=["Clients"])
app.include_router(exercises_router, prefix=f"{settings.API_V1_STR}/exercises", tags=["Exercises"])
app.include_router(workout_plans_router, prefix=f"{settings.API_V1_STR}/workout-plans", tags=["WorkoutPlans"])
app.include_router(workouts_router, prefix=f"{settings.API_V1_STR}/workouts", tags=["Workouts"])
app.include_router(invitations_router, prefix=f"{settings.API_V1_STR}/invitations", tags=["Invitations"])
app.include_router(search_router, prefix=f"{settings.API_V1_STR}/search", tags=["Search"])
app.include_router(dashboard_router, prefix=f"{settings.API_V1_STR}/dashboard", tags=["Dashboard"])


@app.get("/health")
async def health_check():
    return {"status": "ok"}


@app.get("/healthz")
async def healthz():
    try:
        async with AsyncSessionLocal() as db:
            await db.execute(text("SELECT 1"))
    except Exception as exc:
        logger.exception("Health check failed")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="database unavailable",
        ) from exc
    return {"status": "ok", "database": "ok"}

@app.get("/")
async def root():
    return {"message": "Welcome to the FitLink API", "docs": "/docs"}


@app.on_event("startup")
async def startup_checks() -> None:
    _validate_security_settings()
    logger.info("%s %s started (env=%s)", settings.PROJECT_NAME, settings.VERSION, settings.APP_ENV)


def _validate_security_settings() -> None:
    if settings.APP_ENV != "production":
        return

    errors: list[str] = []
    if len(settings.SECRET_KEY.strip()) < 24:
        errors.append("SECRET_KEY must be at least 24 characters in production.")
    if not settings.BACKEND_CORS_ORIGINS:
        errors.append("BACKEND_CORS_ORIGINS must be explicitly configured in production.")

    if errors:
        raise RuntimeError("; ".join(errors))
