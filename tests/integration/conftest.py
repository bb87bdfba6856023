"""
Integration Test Fixtures.

Fixtures for integration tests - the real application, real database
(in-memory SQLite unless TEST_DATABASE_URL is set) and real file storage
under a temporary directory.
"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine

from notegraph.backend.core.database import Database
from notegraph.backend.core.dependencies import get_file_storage
from notegraph.backend.core.storage import FileStorage

ALLOWED_TEST_MIME_TYPES = ["text/plain", "application/pdf", "image/png"]
TEST_MAX_FILE_SIZE = 10 * 1024 * 1024


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def file_storage(upload_dir: Path) -> FileStorage:
    return FileStorage(
        root=upload_dir,
        max_file_size=TEST_MAX_FILE_SIZE,
        allowed_mime_types=ALLOWED_TEST_MIME_TYPES,
        chunk_size=64 * 1024,
    )


@pytest.fixture
async def client(
    db_engine: AsyncEngine,
    file_storage: FileStorage,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client bound to the test database.

    ASGITransport does not run the lifespan, so the database handle is
    placed on app.state here, the way the lifespan does. Each request
    gets its own committed session, as in production.

    Usage:
        async def test_health_endpoint(client: AsyncClient):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    from notegraph.backend.main import create_app

    app = create_app()
    app.state.database = Database(db_engine)
    app.dependency_overrides[get_file_storage] = lambda: file_storage

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# User and Note Helpers
# =============================================================================


RegisterUser = Callable[..., Awaitable[dict[str, str]]]


@pytest.fixture
def register_user(client: AsyncClient) -> RegisterUser:
    """
    Register a user through the API and return bearer headers.

    Usage:
        headers = await register_user("ada@example.com")
    """

    async def _register(email: str, password: str = "secret123", name: str | None = None) -> dict[str, str]:
        response = await client.post(
            "/api/v1/auth/register",
            json={"email": email, "password": password, "name": name},
        )
        assert response.status_code == 201, response.text
        token = response.json()["data"]["tokens"]["access_token"]
        return {"Authorization": f"Bearer {token}"}

    return _register


@pytest.fixture
async def alice(register_user: RegisterUser) -> dict[str, str]:
    return await register_user("alice@example.com", name="Alice")


@pytest.fixture
async def bob(register_user: RegisterUser) -> dict[str, str]:
    return await register_user("bob@example.com", name="Bob")


CreateNote = Callable[..., Awaitable[dict[str, Any]]]


@pytest.fixture
def create_note(client: AsyncClient) -> CreateNote:
    """Create a note through the API and return its data."""

    async def _create(headers: dict[str, str], title: str, **fields: Any) -> dict[str, Any]:
        response = await client.post(
            "/api/v1/notes",
            json={"title": title, **fields},
            headers=headers,
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


# =============================================================================
# API Response Assertion Helpers
# =============================================================================


class ApiAssertions:
    """Helper class for API response assertions."""

    @staticmethod
    def assert_success(response: Any, expected_status: int = 200) -> dict[str, Any]:
        """
        Assert API response is successful.

        Returns:
            Response JSON data
        """
        assert response.status_code == expected_status, (
            f"Expected status {expected_status}, got {response.status_code}: "
            f"{response.text}"
        )
        data = response.json()
        assert data.get("success") is True, f"Response not successful: {data}"
        return data

    @staticmethod
    def assert_error(
        response: Any,
        expected_status: int,
        expected_code: str | None = None,
    ) -> dict[str, Any]:
        """
        Assert API response is an error.

        Returns:
            Response JSON data
        """
        assert response.status_code == expected_status, (
            f"Expected status {expected_status}, got {response.status_code}: "
            f"{response.text}"
        )
        data = response.json()
        assert data.get("success") is False, f"Response should be error: {data}"
        assert data.get("error") is not None, f"Missing error details: {data}"

        if expected_code:
            actual_code = data["error"].get("code")
            assert actual_code == expected_code, (
                f"Expected error code {expected_code}, got {actual_code}"
            )

        return data

    @staticmethod
    def assert_validation_error(
        response: Any,
        field: str | None = None,
    ) -> dict[str, Any]:
        """Assert API response is a request validation error (400)."""
        data = ApiAssertions.assert_error(response, 400, "VAL_REQUEST_INVALID")

        if field:
            errors = data["error"].get("details", {}).get("validation_errors", [])
            fields = [e.get("field", "") for e in errors]
            assert any(field in f for f in fields), (
                f"Expected validation error for field '{field}', "
                f"got errors for: {fields}"
            )

        return data


@pytest.fixture
def api() -> ApiAssertions:
    """Provide API assertion helpers."""
    return ApiAssertions()
