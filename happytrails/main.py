from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.sessions import SessionMiddleware

from happytrails.api import auth, bookings, pages
from happytrails.core.config import Settings, settings
from happytrails.core.errors import AuthError, LoginRequired, StoreError, ValidationError
from happytrails.core.logger import logger, setup_logging
from happytrails.services.auth_service import AuthProvider, LocalAuthProvider, SupabaseAuthProvider
from happytrails.services.booking_service import BookingStore, LocalBookingStore, SupabaseBookingStore
from happytrails.services.db_service import db_service
from happytrails.services.local_storage import LocalStorage

setup_logging()


def build_backend(config: Settings) -> Tuple[AuthProvider, BookingStore]:
    """Pick the identity provider and booking store for the configured backend."""
    if config.BACKEND == "supabase":
        return SupabaseAuthProvider(db_service), SupabaseBookingStore(db_service)
    if config.BACKEND != "local":
        raise ValueError(f"Unknown BACKEND '{config.BACKEND}', expected 'local' or 'supabase'")
    storage = LocalStorage(config.LOCAL_STORAGE_PATH)
    return LocalAuthProvider(storage), LocalBookingStore(storage)


def create_app(auth_provider: Optional[AuthProvider] = None,
               booking_store: Optional[BookingStore] = None) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info(f"🚀 Starting {settings.PROJECT_NAME} ({settings.BACKEND} backend)")
        provider, store = auth_provider, booking_store
        if provider is None or store is None:
            default_auth, default_store = build_backend(settings)
            provider = provider or default_auth
            store = store or default_store
        app.state.auth = provider
        app.state.bookings = store
        yield
        # Shutdown
        logger.info("🛑 Shutting down")

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="0.1.0",
        lifespan=lifespan
    )

    # Identity lives in a signed cookie, one per browser
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY,
        session_cookie=settings.SESSION_COOKIE,
        same_site="lax",
        https_only=settings.ENVIRONMENT == "production",
    )

    @app.exception_handler(LoginRequired)
    async def login_required_handler(request: Request, exc: LoginRequired):
        return RedirectResponse("/login", status_code=303)

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422, content={"message": exc.message})

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        return JSONResponse(status_code=401, content={"message": exc.message})

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        return JSONResponse(status_code=502, content={"message": exc.message})

    # Global Exception Handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.opt(exception=exc).error(f"🔥 UNHANDLED ERROR: {exc!r}")
        return JSONResponse(
            status_code=500,
            content={"message": "Internal Server Error", "detail": "An unexpected error occurred."}
        )

    @app.get("/health")
    async def health_check():
        return {
            "status": "ok",
            "environment": settings.ENVIRONMENT,
            "backend": settings.BACKEND,
            "timestamp": datetime.now().isoformat(),
        }

    app.include_router(bookings.router, prefix="/api", tags=["Bookings"])
    app.include_router(auth.router, tags=["Auth"])
    app.include_router(pages.router, tags=["Pages"])

    # Anything else goes home; must stay the last route
    @app.get("/{full_path:path}", include_in_schema=False)
    async def fallback(full_path: str):
        return RedirectResponse("/", status_code=303)

    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("happytrails.main:app", host="0.0.0.0", port=settings.PORT, reload=True)
