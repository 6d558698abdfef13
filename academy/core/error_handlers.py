from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
import logging

from .exceptions import AcademyException

logger = logging.getLogger(__name__)


async def academy_exception_handler(request: Request, exc: AcademyException):
    """Handle domain exceptions"""
    if exc.status_code >= 500:
        logger.error(f"{exc.code}: {exc.message} - Path: {request.url.path}")
    else:
        logger.warning(f"{exc.code}: {exc.message} - Path: {request.url.path}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "message": exc.message, "details": exc.details},
        headers=exc.headers
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """Database failures that escaped a service are infrastructure errors"""
    logger.error(f"Database error: {exc} - Path: {request.url.path}")
    return JSONResponse(
        status_code=503,
        content={"error": "InfrastructureError", "message": "Database unavailable", "details": {}}
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions"""
    logger.exception(f"Unexpected error: {exc} - Path: {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "InternalError", "message": "Internal server error", "details": {}}
    )


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(AcademyException, academy_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
