# streamrokuo_admin/main.py
import os
import time
import logging
from typing import Optional

from dotenv import load_dotenv
import httpx
import uvicorn

# =====================================================
# ENV + LOGGING
# =====================================================
load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
log = logging.getLogger("streamrokuo_admin.main")

# =====================================================
# FASTAPI CORE
# =====================================================
from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.sessions import SessionMiddleware

from streamrokuo_admin.api import auto_register_routes
from streamrokuo_admin.backend import SupabaseClient
from streamrokuo_admin.config import Settings, load_settings
from streamrokuo_admin.errors import BackendError, InputValidationError, LoginRequired, NotAuthorized
from streamrokuo_admin.services.watch_url import WatchUrlClient


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    settings = settings or load_settings()
    logging.getLogger("streamrokuo_admin").setLevel(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings

    # =================================================
    # MIDDLEWARE
    # =================================================
    app.add_middleware(SessionMiddleware, secret_key=settings.session_secret, same_site="lax")

    allowed_origins = [
        settings.frontend_url,
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    if settings.cors_allow_all:
        allowed_origins = ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =================================================
    # ERROR MAPPING
    # =================================================
    @app.exception_handler(LoginRequired)
    async def _login_required(request: Request, exc: LoginRequired):
        return RedirectResponse(url=settings.login_path, status_code=303)

    @app.exception_handler(NotAuthorized)
    async def _not_authorized(request: Request, exc: NotAuthorized):
        return JSONResponse(status_code=403, content={"title": exc.title, "detail": exc.message})

    @app.exception_handler(InputValidationError)
    async def _invalid_input(request: Request, exc: InputValidationError):
        return JSONResponse(status_code=400, content={"detail": exc.message})

    @app.exception_handler(BackendError)
    async def _backend_error(request: Request, exc: BackendError):
        return JSONResponse(status_code=502, content={"detail": exc.message})

    # =================================================
    # ROUTES
    # =================================================
    api_router = APIRouter()
    auto_register_routes(api_router)
    app.include_router(api_router)

    @app.get("/health")
    def health():
        return {"ok": True, "app": settings.app_name, "time": int(time.time())}

    # =================================================
    # STARTUP / SHUTDOWN
    # =================================================
    @app.on_event("startup")
    async def startup():
        app.state.http = httpx.AsyncClient(timeout=settings.backend_timeout, transport=transport)
        app.state.supabase = SupabaseClient(settings, app.state.http)
        app.state.watch_client = WatchUrlClient(app.state.http, settings.backend_base_url)
        log.info("%s started (backend=%s)", settings.app_name, settings.supabase_url)

    @app.on_event("shutdown")
    async def shutdown():
        await app.state.http.aclose()
        log.info("%s stopped", settings.app_name)

    return app


app = create_app()

# =====================================================
# ENTRYPOINT
# =====================================================
if __name__ == "__main__":
    uvicorn.run(
        "streamrokuo_admin.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=True,
    )
