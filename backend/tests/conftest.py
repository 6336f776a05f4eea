import os
import shutil
import tempfile
from pathlib import Path

import pytest
import pytest_asyncio

# Configure storage and auth for tests before importing tonypoem modules.
# Use the system temp directory to avoid cluttering the repo tree.
_SESSION_DIR = Path(tempfile.mkdtemp(prefix="tonypoem_pytest_"))

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("BLOB_BACKEND", "filesystem")
os.environ.setdefault("MEDIA_ROOT", str(_SESSION_DIR / "media"))
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from tonypoem.config import Settings  # noqa: E402
from tonypoem.core.content.repository import ContentRepository  # noqa: E402
from tonypoem.core.shared.database_service import DatabaseService  # noqa: E402
from tonypoem.core.storage.blob_store import FilesystemBlobStore  # noqa: E402

ADMIN_EMAIL = "admin@tonypoem.org"
ADMIN_PASSWORD = "correct horse battery"


@pytest.fixture
def settings(tmp_path):
    """Isolated settings: in-memory database, media under tmp_path, bootstrap admin."""
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite://",
        blob_backend="filesystem",
        media_root=str(tmp_path / "media"),
        jwt_secret_key="test-secret-key",
        bcrypt_rounds=4,
        admin_email=ADMIN_EMAIL,
        admin_password=ADMIN_PASSWORD,
    )


@pytest.fixture
def blob_store(tmp_path):
    return FilesystemBlobStore(tmp_path / "media", "/media")


@pytest_asyncio.fixture
async def database():
    """Fresh in-memory database with tables created."""
    db = DatabaseService("sqlite+aiosqlite://")
    await db.init_db()
    yield db
    await db.close()


@pytest.fixture
def repository(database, blob_store):
    return ContentRepository(database, blob_store)


def pytest_sessionfinish(session, exitstatus):
    """Cleanup temporary test files after the test session."""
    shutil.rmtree(_SESSION_DIR, ignore_errors=True)
