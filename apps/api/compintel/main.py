from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from compintel.core.config import get_settings
from compintel.core.errors import CompIntelError
from compintel.routers.health import router as health_router
from compintel.routers.inventory import router as inventory_router

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Competitive intelligence for dispensary retail - competitor inventory levels, stock-outs, and depletion trends.",
    version="0.1.0",
    debug=settings.DEBUG,
)


@app.exception_handler(CompIntelError)
async def compintel_exception_handler(request: Request, exc: CompIntelError):
    """Return domain errors as {"success": false, "error": ...}."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message},
    )


def format_validation_error(exc: RequestValidationError) -> str:
    """Describe the first bad parameter, e.g. "Invalid days: Input should be a valid integer"."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("query", "body", "path")]
    field = ".".join(loc) if loc else "request"
    return f"Invalid {field}: {first.get('msg', 'invalid value')}"


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed query parameters and bodies get the same 400 shape as domain errors."""
    message = format_validation_error(exc)
    logger.info(f"{request.method} {request.url.path} rejected: {message}")
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": message},
    )


# Global exception handler for unhandled errors
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected server errors with structured response."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again later.",
            "request_id": request.headers.get("X-Request-ID"),
        }
    )

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Dashboard is served from a separate origin
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(inventory_router, prefix="/api")


@app.get("/")
def read_root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "docs": "/docs",
        "health": "/health"
    }
