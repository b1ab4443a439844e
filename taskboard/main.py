"""
FastAPI Application Entry Point - Application initialization and configuration
"""

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import logging
import sys
import time

from taskboard.core.config import settings, validate_config, is_production
from taskboard.core.exceptions import (
    AuthenticationFailed,
    DuplicateUsername,
    NotFound,
    PermissionDenied,
    StoreFailure,
    TaskboardError,
    ValidationError,
)
from taskboard.database import check_db_connection, close_db_connections, get_pool_stats, init_db

# Configure application logging with timestamp and log level
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)

def create_application() -> FastAPI:
    """
    Factory function to create and configure FastAPI application.
    Using factory pattern allows easier testing with different configurations.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        docs_url="/api/docs" if not is_production() else None,  # Hide Swagger docs in production
        redoc_url="/api/redoc" if not is_production() else None,
        description="Scrum task board with field-level locks and an audit trail"
    )

    setup_middleware(app)
    setup_exception_handlers(app)
    setup_event_handlers(app)
    setup_routers(app)

    return app

def setup_middleware(app: FastAPI) -> None:
    """Configure application middleware - runs on every request/response"""

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,  # Frontend origins from config
        allow_credentials=True,  # Authorization header is sent cross-origin
        allow_methods=["*"],  # GET, POST, PATCH, PUT, DELETE
        allow_headers=["*"],  # Including Authorization and Content-Type
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log every request with method, path, status, and processing time"""
        start_time = time.time()  # Start timer
        logger.info(f"➡️  {request.method} {request.url.path}")

        response = await call_next(request)  # Run the endpoint

        process_time = time.time() - start_time  # Seconds spent in the app
        logger.info(
            f"⬅️  {request.method} {request.url.path} "
            f"- Status: {response.status_code} - Time: {process_time:.2f}s"
        )
        response.headers["X-Process-Time"] = str(process_time)  # Expose timing to clients
        return response

def error_status(exc: TaskboardError) -> int:
    """
    HTTP status for a domain error.

    Subclasses are checked before their parents (DuplicateUsername before
    ValidationError). A locked account failing login is 403, not 401.

    Example:
        error_status(NotFound("task", task_id))  # 404
    """
    if isinstance(exc, PermissionDenied):
        return status.HTTP_403_FORBIDDEN
    if isinstance(exc, NotFound):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, DuplicateUsername):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, AuthenticationFailed):
        return status.HTTP_403_FORBIDDEN if exc.locked else status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, StoreFailure):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR

def error_body(exc: TaskboardError) -> dict:
    """
    JSON body for a domain error.

    Returns:
        {"error": kind, "detail": message, "timestamp": ...} plus "fields"
        (and per-field "reasons" for PermissionDenied) so the client can
        highlight the rejected inputs
    """
    content = {"error": exc.kind, "detail": exc.message, "timestamp": time.time()}
    if isinstance(exc, PermissionDenied):
        content["fields"] = exc.fields
        content["reasons"] = exc.reasons
    elif isinstance(exc, ValidationError) and exc.field:
        content["fields"] = [exc.field]
    return content

def setup_exception_handlers(app: FastAPI) -> None:
    """Configure global exception handlers for consistent error responses"""

    @app.exception_handler(TaskboardError)
    async def taskboard_exception_handler(request: Request, exc: TaskboardError):
        """
        Map service-layer failures to HTTP responses.
        Store failures are logged in full but returned with a generic message.
        """
        code = error_status(exc)  # 4xx for caller mistakes, 503 for the store
        if isinstance(exc, StoreFailure):
            logger.error(f"❌ Store error on {request.method} {request.url.path}: {exc.message}")
            content = {
                "error": exc.kind,
                "detail": "The data store is unavailable. Please try again later.",
                "timestamp": time.time()
            }
            return JSONResponse(status_code=code, content=content)

        logger.warning(f"⚠️  {exc.kind} on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=code, content=error_body(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """
        Handle Pydantic validation errors (invalid request data).
        Returns field-level error details.
        """
        errors = []
        for error in exc.errors():
            errors.append({
                "field": ".".join(str(x) for x in error["loc"]),  # Field path (e.g., "body.status")
                "message": error["msg"],
                "type": error["type"]
            })

        logger.warning(f"❌ Validation error on {request.url.path}: {errors}")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"error": "Validation Error", "detail": errors, "timestamp": time.time()}
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """
        Catch-all handler for unexpected exceptions.
        Prevents app crashes and logs full error details for debugging.
        """
        logger.error(
            f"❌ Unhandled exception on {request.method} {request.url.path}: {str(exc)}",
            exc_info=True
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Internal Server Error",
                "detail": "An unexpected error occurred.",
                "timestamp": time.time()
            }
        )

def setup_event_handlers(app: FastAPI) -> None:
    """Configure startup and shutdown event handlers"""

    @app.on_event("startup")
    async def startup_event():
        """
        Validate config and check the database on startup.
        Fail fast: If checks fail, application won't start.
        """
        logger.info("🚀 Starting Scrum Task Board...")

        try:
            validate_config()  # Secret strength, username/password length rules
        except ValueError as e:
            logger.error(f"❌ Configuration validation failed: {e}")
            sys.exit(1)  # Exit with error code

        if not is_production():
            init_db()  # Production schemas are managed outside the app

        if not check_db_connection():
            logger.error("❌ Cannot connect to database. Exiting.")
            sys.exit(1)

        pool_stats = get_pool_stats()
        logger.info(f"📊 Database pool: {pool_stats}")
        logger.info("✅ Application started successfully")
        logger.info(f"🌍 Environment: {settings.ENVIRONMENT}")
        logger.info(f"🔧 Debug mode: {settings.DEBUG}")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Run on application shutdown - clean up resources gracefully"""
        logger.info("🛑 Shutting down Scrum Task Board...")
        close_db_connections()
        logger.info("✅ Shutdown complete")

def setup_routers(app: FastAPI) -> None:
    """Mount API routers"""

    @app.get("/health", tags=["Health"])
    async def health_check():
        """
        Health check endpoint for monitoring and load balancers.
        Returns application status, database connectivity, and version info.
        """
        db_healthy = check_db_connection()  # SELECT 1 round trip
        pool_stats = get_pool_stats()  # Connection usage

        return {
            "status": "healthy" if db_healthy else "unhealthy",
            "database": "connected" if db_healthy else "disconnected",
            "pool_stats": pool_stats,
            "timestamp": time.time(),
            "version": settings.APP_VERSION
        }

    from taskboard.api import auth, groups, tasks, users, audit
    app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
    app.include_router(groups.router, prefix="/api/groups", tags=["Groups"])
    app.include_router(tasks.router, prefix="/api/tasks", tags=["Tasks"])
    app.include_router(users.router, prefix="/api/users", tags=["Users"])
    app.include_router(audit.router, prefix="/api/audit", tags=["Audit Logs"])

# Create application instance
app = create_application()

if __name__ == "__main__":
    """
    Direct execution entry point - for development only.
    Production: Use `uvicorn taskboard.main:app --host 0.0.0.0 --port 8000`
    """
    import uvicorn
    uvicorn.run(
        "taskboard.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
