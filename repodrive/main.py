"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, Response
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from repodrive import views
from repodrive.config import get_settings
from repodrive.db.session import init_db
from repodrive.errors import (
    AccessDenied,
    ConfigurationError,
    RemoteError,
    ShareExpired,
    ShareInactive,
    ShareNotFound,
    ShareUpstreamFailure,
    UnexpectedContent,
)
from repodrive.files.paths import RouteKind, classify_request
from repodrive.files.routes import router as files_router
from repodrive.limiter import limiter
from repodrive.shares.routes import admin_router as shares_admin_router
from repodrive.shares.routes import public_router as shares_public_router

log = logging.getLogger(__name__)


def _setup_logging() -> None:
    """Configure logging from settings (stderr always; optional file)."""
    settings = get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    fmt = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    root = logging.getLogger("repodrive")
    root.setLevel(level)
    root.handlers.clear()
    sh = logging.StreamHandler()
    sh.setLevel(level)
    sh.setFormatter(fmt)
    root.addHandler(sh)
    if settings.log_file and str(settings.log_file).strip():
        try:
            fh = logging.FileHandler(settings.log_file, encoding="utf-8")
            fh.setLevel(level)
            fh.setFormatter(fmt)
            root.addHandler(fh)
            root.info("Logging to file %s", settings.log_file)
        except OSError as e:
            root.warning("Could not open log file %s: %s", settings.log_file, e)
    else:
        root.debug("Logging to stderr only (no log_file set)")


_setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the key-value table on startup."""
    log.info("Startup: initializing key-value store")
    await init_db()
    if not get_settings().remote_configured:
        log.warning("Remote host not configured; browsing and shares will answer 500")
    log.info("Startup complete")
    yield
    log.info("Shutdown")


app = FastAPI(title="RepoDrive", version="0.1.0", lifespan=lifespan)

settings = get_settings()
if settings.cors_origins_list:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Add security headers to all responses."""
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    return response


def _is_api(request: Request) -> bool:
    return classify_request(request.method, request.url.path) is RouteKind.API


def _error_response(request: Request, status_code: int, title: str, message: str) -> Response:
    """JSON {success, message} for the API, a small HTML page for browsers."""
    if _is_api(request):
        return JSONResponse(status_code=status_code, content={"success": False, "message": message})
    return HTMLResponse(views.render_message(title, message), status_code=status_code)


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    return _error_response(request, 500, "Configuration error", str(exc))


@app.exception_handler(AccessDenied)
async def access_denied_handler(request: Request, exc: AccessDenied):
    """Forbidden JSON for the API; a token prompt for browser pages."""
    if _is_api(request):
        return JSONResponse(status_code=403, content={"success": False, "message": "Access denied"})
    return HTMLResponse(views.render_denied(request.url.path), status_code=403)


@app.exception_handler(ShareNotFound)
async def share_not_found_handler(request: Request, exc: ShareNotFound):
    return _error_response(request, 404, "Not found", "This link does not exist or was removed.")


@app.exception_handler(ShareInactive)
async def share_inactive_handler(request: Request, exc: ShareInactive):
    return _error_response(request, 403, "Link disabled", "This link has been disabled by the administrator.")


@app.exception_handler(ShareExpired)
async def share_expired_handler(request: Request, exc: ShareExpired):
    return _error_response(request, 410, "Link expired", "This link has expired.")


@app.exception_handler(ShareUpstreamFailure)
async def share_upstream_handler(request: Request, exc: ShareUpstreamFailure):
    return _error_response(request, 502, "Unavailable", "The shared file cannot be reached.")


@app.exception_handler(RemoteError)
async def remote_error_handler(request: Request, exc: RemoteError):
    """Remote statuses pass through; 404 stays 404."""
    if exc.status_code == 404:
        return _error_response(request, 404, "Not found", "File or directory does not exist.")
    return _error_response(request, exc.status_code, "Remote error", f"Remote host error: {exc.status_code}")


@app.exception_handler(UnexpectedContent)
async def unexpected_content_handler(request: Request, exc: UnexpectedContent):
    log.error("Unexpected remote content: %s", exc)
    return _error_response(request, 500, "Unsupported content", str(exc))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Return generic 500 without leaking stack trace or internals."""
    if isinstance(exc, HTTPException):
        raise exc
    log.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.get("/health")
@limiter.exempt
def health() -> JSONResponse:
    """Health check. Unauthenticated and exempt from rate limiting."""
    return JSONResponse(content={"status": "ok"})


app.include_router(shares_public_router)
app.include_router(shares_admin_router)
# Catch-all browse route: must be registered last
app.include_router(files_router)
