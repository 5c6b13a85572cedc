"""Shared test fixtures for the device factory engine."""

import os
import pytest
from httpx import ASGITransport, AsyncClient


API_KEY = "test-admin-api-key"
USER_ID = "factory-admin-1"


@pytest.fixture
def api_key():
    return API_KEY


@pytest.fixture
def app():
    """Create a test app with in-memory DB in default creation mode."""
    os.environ["DFM_DB_URL"] = "sqlite+aiosqlite://"
    os.environ["DFM_API_KEY"] = API_KEY
    os.environ["DFM_DEVICE_CREATION_TYPE"] = "default"
    os.environ["DFM_SWM_INTEGRATION_ENABLED"] = "false"

    # Clear caches and singletons so new env vars take effect
    from device_factory.common.config import get_settings
    get_settings.cache_clear()

    from device_factory.deps import reset_singletons
    reset_singletons()

    from device_factory.app import create_app
    return create_app()


@pytest.fixture
async def client(app):
    # Manually init DB since ASGITransport doesn't run lifespan
    from device_factory.deps import get_db
    db = get_db()
    await db.init()
    await db.create_all()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await db.close()


@pytest.fixture
def admin_headers():
    return {"X-Dfm-Api-Key": API_KEY}


@pytest.fixture
def user_headers():
    return {"X-Dfm-Api-Key": API_KEY, "user-id": USER_ID}
