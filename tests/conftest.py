"""
Pytest configuration and fixtures for the catalog admin API tests.
"""
import io
import os
import tempfile

import pytest
from PIL import Image

# Set test environment before importing app modules
_storage_root = tempfile.mkdtemp(prefix="catalog-tests-")
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-only"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["APP_URL"] = "http://testserver"
os.environ["PUBLIC_STORAGE_DIR"] = os.path.join(_storage_root, "public")
os.environ["PRODUCT_IMAGE_DISK"] = "local"
os.environ["PRODUCT_IMAGE_DIR"] = os.path.join(_storage_root, "products")
os.environ["ADMIN_EMAIL"] = "admin@example.com"
os.environ["ADMIN_PASSWORD"] = "12345678"

from fastapi.testclient import TestClient  # noqa: E402

from app.main import app  # noqa: E402
from app.infrastructure.database import Base, SessionLocal, engine, get_db  # noqa: E402
from app.infrastructure.storage import LocalStorage  # noqa: E402
from app.infrastructure.repositories.product_repository import SQLAlchemyProductRepository  # noqa: E402
from app.infrastructure.repositories.user_repository import SQLAlchemyUserRepository  # noqa: E402
from app.application.services import token_service  # noqa: E402
from app.application.services.access_control import seed_roles_and_permissions  # noqa: E402
from app.application.services.auth_service import ensure_admin_user, register  # noqa: E402
from app.domain.models.product import Product  # noqa: E402
from app.domain.models.user import User  # noqa: E402
from app.domain.schemas.auth import RegisterRequest  # noqa: E402
from app.interfaces.deps import get_product_storage, get_public_storage  # noqa: E402


def image_bytes(kind: str = "PNG", size=(4, 4)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, (200, 120, 40)).save(buffer, format=kind)
    return buffer.getvalue()


PNG_BYTES = image_bytes("PNG")
JPEG_BYTES = image_bytes("JPEG")


@pytest.fixture
def db():
    """Fresh schema with seeded roles and the admin account."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    seed_roles_and_permissions(session)
    ensure_admin_user(SQLAlchemyUserRepository(session, User))
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user_repo(db):
    return SQLAlchemyUserRepository(db, User)


@pytest.fixture
def product_repo(db):
    return SQLAlchemyProductRepository(db, Product)


@pytest.fixture
def public_disk(tmp_path):
    return LocalStorage(str(tmp_path / "public"), "http://testserver/storage")


@pytest.fixture
def product_disk(tmp_path):
    return LocalStorage(str(tmp_path / "products"), "http://testserver/v1/products/images")


@pytest.fixture
def client(db, public_disk, product_disk):
    """Test client sharing the fixture session; lifespan is not run."""
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_public_storage] = lambda: public_disk
    app.dependency_overrides[get_product_storage] = lambda: product_disk
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin(db):
    return db.query(User).filter(User.email == "admin@example.com").one()


@pytest.fixture
def member(user_repo):
    """A registered account holding only the default "user" role."""
    return register(
        user_repo,
        RegisterRequest(
            first_name="Jane",
            last_name="Doe",
            email="jane@example.com",
            password="password123",
            password_confirmation="password123",
        ),
    )


def bearer(user: User) -> dict:
    return {"Authorization": f"Bearer {token_service.issue(user)}"}


@pytest.fixture
def admin_headers(admin):
    return bearer(admin)


@pytest.fixture
def member_headers(member):
    return bearer(member)


def png(name: str = "photo.png"):
    return (name, PNG_BYTES, "image/png")


def jpeg(name: str = "photo.jpg"):
    return (name, JPEG_BYTES, "image/jpeg")
