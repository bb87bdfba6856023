"""
Unit Test Fixtures.

Fixtures for unit tests - all external dependencies are mocked.
Unit tests should be fast and isolated, never touching real databases.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from notegraph.backend.core.config_schema import NotesSchema


# =============================================================================
# Database Mock Fixtures
# =============================================================================


class _NestedTransaction:
    """Stand-in for ``session.begin_nested()``; rolls nothing back."""

    async def __aenter__(self) -> "_NestedTransaction":
        return self

    async def __aexit__(self, *exc_info) -> bool:
        return False


@pytest.fixture
def mock_db_session() -> AsyncMock:
    """
    Mock database session for unit tests.

    Provides a fully mocked AsyncSession with common methods.

    Usage:
        def test_service(mock_db_session: AsyncMock):
            service = NoteService(mock_db_session, notes_config=notes_config)
            # Patch service.repo methods and test the service
    """
    session = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.execute = AsyncMock()
    session.add = MagicMock()
    session.delete = AsyncMock()
    session.begin_nested = MagicMock(side_effect=lambda: _NestedTransaction())
    return session


@pytest.fixture
def mock_db_result() -> MagicMock:
    """
    Mock database query result.

    Use this to mock the result of session.execute().

    Usage:
        def test_query(mock_db_session, mock_db_result):
            mock_db_result.scalar_one_or_none.return_value = user
            mock_db_session.execute.return_value = mock_db_result
    """
    result = MagicMock()
    result.scalar_one_or_none = MagicMock(return_value=None)
    result.scalars = MagicMock()
    result.scalars.return_value.all = MagicMock(return_value=[])
    return result


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def notes_config() -> NotesSchema:
    """Note limits matching config/settings/application.yaml."""
    return NotesSchema(
        max_tags=10,
        max_tag_length=50,
        search_limit=20,
        text_search_config="english",
        import_max_notes=1000,
        import_max_errors=50,
    )


@pytest.fixture
def mock_settings() -> MagicMock:
    """
    Mock secrets from config/.env.

    Usage:
        def test_with_settings(mock_settings):
            with patch("module.get_settings", return_value=mock_settings):
                # Test code that uses settings
    """
    settings = MagicMock()
    settings.db_password = "test_pass"
    settings.jwt_secret = "test-secret-key-for-testing-only-0123456789"
    return settings


# =============================================================================
# Domain Object Fixtures
# =============================================================================


@pytest.fixture
def make_user():
    """
    Build a lightweight user stand-in.

    Usage:
        owner = make_user("u1")
    """

    def _make(user_id: str = "user-1", email: str | None = None, name: str | None = None):
        return SimpleNamespace(
            id=user_id,
            email=email or f"{user_id}@example.com",
            name=name,
            password_hash="hash",
        )

    return _make


@pytest.fixture
def make_note():
    """
    Build a lightweight note stand-in with the fields the access policy reads.

    Usage:
        note = make_note("n1", owner_id="u1", is_private=True)
    """

    def _make(note_id: str = "note-1", owner_id: str = "user-1", is_private: bool = False, **fields):
        note = MagicMock()
        note.id = note_id
        note.owner_id = owner_id
        note.is_private = is_private
        note.title = fields.pop("title", "A note")
        for key, value in fields.items():
            setattr(note, key, value)
        return note

    return _make


# =============================================================================
# Logging Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_logger() -> MagicMock:
    """
    Mock logger for testing logging calls.

    Usage:
        def test_logging(mock_logger):
            with patch("module.get_logger", return_value=mock_logger):
                # Test code that logs
                mock_logger.info.assert_called_once()
    """
    logger = MagicMock()
    logger.debug = MagicMock()
    logger.info = MagicMock()
    logger.warning = MagicMock()
    logger.error = MagicMock()
    logger.exception = MagicMock()
    return logger
