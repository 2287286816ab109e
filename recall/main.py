"""
Recall — Main Application
FastAPI app. Mounts routers, CORS, maps data-layer errors to HTTP.
Database initialization and admin seeding on startup.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from recall import __version__
from recall.config import ADMIN_PASSWORD, ADMIN_USERNAME, CORS_ORIGINS, LOG_LEVEL
from recall.database import SessionLocal, init_db
from recall.errors import RecallError
from recall.models import User
from recall.routers import assignments, auth, memorization, practices, view

logger = logging.getLogger("recall")


# ─── Lifespan (startup/shutdown) ─────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: init DB + seed the first admin. Shutdown: nothing to clean."""
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    logger.info("Initializing database...")
    init_db()

    db = SessionLocal()
    try:
        if db.query(User).count() == 0:
            _seed_admin(db)
            logger.info(f"Seeded admin user {ADMIN_USERNAME!r} (password change required)")
    finally:
        db.close()

    logger.info(f"Recall v{__version__} ready")
    yield
    logger.info("Shutting down")


def _seed_admin(db):
    admin = User(
        username=ADMIN_USERNAME,
        password_hash=auth.hash_password(ADMIN_PASSWORD),
        display_name="Administrator",
        role="admin",
        can_access_proofreading=True,
        can_access_spelling=True,
        can_access_learning_hub=True,
        force_password_change=True,
    )
    db.add(admin)
    db.commit()


# ─── App ─────────────────────────────────────────────────────────────────────

app = FastAPI(
    title="Recall",
    description="Memorization, spelling and proofreading practice",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RecallError)
async def recall_error_handler(request: Request, exc: RecallError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(auth.router)
app.include_router(view.router)
app.include_router(memorization.router)
app.include_router(practices.router)
app.include_router(assignments.router)


@app.get("/health")
@app.get("/healthz")
async def health():
    return {"status": "ok", "version": __version__}
