from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from contextlib import asynccontextmanager
from urllib.parse import urlencode
import time
import logging

from .api.deps import GateRejected
from .api.v1.auth import router as auth_router
from .api.v1.portal import router as portal_router
from .core.config import settings
from .core.exceptions import AuthError, InvalidTransitionError, RemoteError, ValidationError
from .core.storage import get_token_storage
from .services.access_gate import GateOutcome
from .services.api_client import CampusCareAPI
from .services.appointment_service import AppointmentService
from .services.record_service import RecordService
from .services.session_store import SessionStore

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})

def create_app(storage=None, transport=None) -> FastAPI:
    """Build the portal application.

    ``storage`` and ``transport`` replace the credential slot and the HTTP
    transport to the CampusCare service, mainly for tests.
    """
    # One session per process, shared by every view
    store = SessionStore(
        storage if storage is not None else get_token_storage(),
        CampusCareAPI(transport=transport),
    )

    # Startup and shutdown
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting CampusCare Portal...")
        store.initialize()
        claim = store.session.identity_claim
        logger.info(f"Session ready ({'logged in as ' + claim.role.value if claim else 'logged out'})")
        yield
        logger.info("Shutting down CampusCare Portal...")
        await store.api.aclose()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.VERSION,
        description="Campus medical unit portal for students and doctors",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.session_store = store
    app.state.appointment_service = AppointmentService(store)
    app.state.record_service = RecordService(store)

    # Middleware setup
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Only add TrustedHostMiddleware in production, not in testing
    if not settings.TESTING:
        app.add_middleware(
            TrustedHostMiddleware,
            allowed_hosts=["localhost", "127.0.0.1", "*.localhost", "testserver"]
        )

    # Custom middleware for request logging and timing
    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)

        # Log request
        logger.info(
            f"{request.method} {request.url.path} - "
            f"Status: {response.status_code} - "
            f"Time: {process_time:.4f}s"
        )

        return response

    # Access gate outcomes
    @app.exception_handler(GateRejected)
    async def gate_rejected_handler(request: Request, exc: GateRejected):
        decision = exc.decision
        if decision.outcome == GateOutcome.LOADING:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "loading", "message": "Loading..."}
            )

        target = decision.target
        if decision.return_path:
            target = f"{target}?{urlencode({'from': decision.return_path})}"
        return RedirectResponse(url=target, status_code=status.HTTP_303_SEE_OTHER)

    # Exception handlers
    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        return _error(status.HTTP_401_UNAUTHORIZED, exc.message)

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return _error(422, exc.message)

    @app.exception_handler(InvalidTransitionError)
    async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
        return _error(status.HTTP_409_CONFLICT, exc.message)

    @app.exception_handler(RemoteError)
    async def remote_error_handler(request: Request, exc: RemoteError):
        logger.warning(f"Remote failure on {request.url.path}: {exc.message}")
        return _error(status.HTTP_502_BAD_GATEWAY, exc.message)

    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=404,
            content={
                "error": "Not Found",
                "message": "The requested resource was not found",
                "path": str(request.url.path)
            }
        )

    @app.exception_handler(500)
    async def internal_error_handler(request: Request, exc: Exception):
        logger.error(f"Internal server error: {str(exc)}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "message": "An unexpected error occurred"
            }
        )

    # Include routers
    app.include_router(auth_router)
    app.include_router(portal_router)

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "timestamp": time.time(),
            "version": settings.VERSION,
            "session_ready": store.session.ready
        }

    # Landing page
    @app.get("/")
    async def root():
        """Public landing page."""
        claim = store.session.identity_claim
        return {
            "message": "Welcome to CampusCare, the campus medical unit portal",
            "version": settings.VERSION,
            "user": claim,
            "login": settings.LOGIN_PATH,
            "doctor_login": "/doctor-login",
            "register": "/register"
        }

    return app

# Create FastAPI application
app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "campuscare.main:app",
        host="127.0.0.1",
        port=8000,
        reload=settings.DEBUG,
        log_level="info"
    )
