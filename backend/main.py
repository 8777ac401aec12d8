from dotenv import load_dotenv
load_dotenv()

import asyncio
import logging
import time
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from database import close_db, connect_db, get_db

# ENV
from config.env import ENV, CORS_ALLOWED_ORIGINS, LOG_LEVEL, validate_env

# ROUTES
from routes.auth import router as auth_router
from routes.users import router as users_router
from routes.products import router as products_router
from routes.markets import router as markets_router
from routes.price_submissions import router as price_submissions_router

from utils.errors import register_exception_handlers
from utils.indexes import ensure_indexes

# WORKERS
from workers.audit_cleanup_worker import audit_cleanup_worker

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("pricewatch")


def create_app(db=None, start_workers: bool = True) -> FastAPI:
    """
    Build the API. Passing `db` injects an already-open database and
    skips connecting to MongoDB at startup.
    """
    app = FastAPI(
        title="Market Price Watch API",
        version="1.0.0",
        docs_url=None if ENV == "production" else "/docs",
        redoc_url=None if ENV == "production" else "/redoc",
        openapi_url=None if ENV == "production" else "/openapi.json",
    )

    app.state.db = db
    app.state.mongo_client = None
    app.state.workers = []

    # -----------------------------
    # CORS
    # -----------------------------

    allowed_origins = [origin.strip() for origin in CORS_ALLOWED_ORIGINS if origin.strip()]
    if not allowed_origins:
        allowed_origins = [
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------------
    # REQUEST LOGGING
    # -----------------------------

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(
            level,
            "%s %s -> %s (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response

    register_exception_handlers(app)

    # -----------------------------
    # ROUTES
    # -----------------------------

    app.include_router(auth_router, prefix="/api")
    app.include_router(users_router, prefix="/api")
    app.include_router(products_router, prefix="/api")
    app.include_router(markets_router, prefix="/api")
    app.include_router(price_submissions_router, prefix="/api")

    # -----------------------------
    # HEALTH CHECKS
    # -----------------------------

    @app.get("/health")
    @app.get("/api/health")
    async def health():
        return {"status": "ok", "env": ENV}

    @app.get("/api/health/db")
    async def health_db(db=Depends(get_db)):
        await db.command("ping")
        return {"status": "mongodb connected"}

    # -----------------------------
    # LIFECYCLE
    # -----------------------------

    @app.on_event("startup")
    async def startup():
        if app.state.db is None:
            validate_env()
            client, database = connect_db()
            try:
                await database.command("ping")
            except Exception:
                close_db(client)
                logger.exception("MONGODB_CONNECT_FAILED")
                raise
            app.state.mongo_client = client
            app.state.db = database
            logger.info("MongoDB connected: %s", database.name)

        await ensure_indexes(app.state.db)

        if start_workers:
            app.state.workers.append(asyncio.create_task(audit_cleanup_worker(app.state.db)))

        logger.info("ENV: %s", ENV)

    @app.on_event("shutdown")
    async def shutdown():
        for task in app.state.workers:
            task.cancel()
        app.state.workers = []

        if app.state.mongo_client is not None:
            close_db(app.state.mongo_client)
            app.state.mongo_client = None
            app.state.db = None

    return app


app = create_app()
