from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import time

from .core.config import settings
from .core.cache import cache_manager
from .core.database import AsyncSessionLocal, close_db_connections, init_models
from .core.error_handlers import register_exception_handlers
from .core.logging import logger, setup_logging
from .services.auth_service import AuthService

# Import all routers
from .routers import auth, health, realtime
from .routers.admin import (
    attendance as admin_attendance, classes, courses, enrollments as admin_enrollments, seasons, students
)
from .routers.student_portal import attendance, enrollments, notifications, profile

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name} {settings.app_version} ({settings.environment})")

    await cache_manager.initialize()
    logger.info("Cache initialized" if settings.cache_enabled else "Cache disabled")

    # Production schemas are managed by Alembic
    if settings.environment == "development":
        await init_models()

    if settings.superadmin_email and settings.superadmin_password:
        async with AsyncSessionLocal() as db:
            await AuthService(db).ensure_superadmin(settings.superadmin_email, settings.superadmin_password)

    yield

    logger.info(f"Shutting down {settings.app_name}")
    await cache_manager.close()
    await close_db_connections()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Academy Enrollment API",
    description="Course enrollment, approval and attendance for an academy",
    version=settings.app_version,
    lifespan=lifespan
)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    logger.info(f"{request.method} {request.url.path} - {process_time:.3f}s")
    return response

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=3600,
)

register_exception_handlers(app)

# Include all routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(profile.router)
app.include_router(enrollments.router)
app.include_router(notifications.router)
app.include_router(attendance.router)
app.include_router(students.router)
app.include_router(courses.router)
app.include_router(classes.router)
app.include_router(seasons.router)
app.include_router(admin_enrollments.router)
app.include_router(admin_attendance.router)
app.include_router(realtime.router)


@app.get("/")
async def root():
    return {
        "message": "Academy Enrollment API",
        "version": settings.app_version,
        "status": "active"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("academy.main:app", host="0.0.0.0", port=8000, reload=settings.environment == "development")
