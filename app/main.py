"""FastAPI application — main entry point."""

import structlog
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.config import get_settings
from app.infrastructure.database import engine, Base, SessionLocal
from app.core.logging import configure_logging
from app.core.middleware import setup_middleware
from app.core.exceptions import register_exception_handlers

# Import all models so SQLAlchemy knows about them
from app.domain.models.activity_log import ActivityLog
from app.domain.models.product import Product
from app.domain.models.revoked_token import RevokedToken
from app.domain.models.role import Permission, Role
from app.domain.models.user import User

from app.infrastructure.repositories.user_repository import SQLAlchemyUserRepository
from app.infrastructure.storage import get_public_disk
from app.application.services.access_control import seed_roles_and_permissions
from app.application.services.auth_service import ensure_admin_user
from app.interfaces.api.router import api_router

settings = get_settings()

# Configure logging immediately
configure_logging()
logger = structlog.get_logger(__name__)


def seed_database() -> None:
    """Default roles, permissions and the administrator account."""
    db = SessionLocal()
    try:
        seed_roles_and_permissions(db)
        ensure_admin_user(SQLAlchemyUserRepository(db, User))
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan — startup and shutdown events."""
    logger.info("Starting Catalog Admin API...", env=settings.ENVIRONMENT)

    # Create DB tables (dev only, use migrations in production)
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    seed_database()

    yield

    logger.info("Catalog Admin API stopped")


app = FastAPI(
    title="Catalog Admin API",
    description="Product catalog administration — auth, roles, users, products, images and reports",
    version="1.0.0",
    lifespan=lifespan,
)

# Setup Middleware (Correlation ID, Logging)
setup_middleware(app)

# Error envelope for every exception type
register_exception_handlers(app)

# CORS is added last so it runs outermost
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)

# Public disk: avatars and generated exports
app.mount("/storage", StaticFiles(directory=str(get_public_disk().root)), name="storage")


@app.get("/")
def root():
    return {
        "name": "Catalog Admin API",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
def health():
    return {"status": "healthy"}
