"""
Unit Tests for Configuration Management.

Tests run against the real YAML files under config/settings/.
Failure scenarios use tmp_path to create controlled filesystems.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from notegraph.backend.core.config import (
    AppConfig,
    Settings,
    find_project_root,
    get_app_config,
    get_database_url,
    get_settings,
    get_upload_root,
    load_yaml_config,
    validate_project_root,
)
from notegraph.backend.core.config_schema import (
    ApplicationSchema,
    ConcurrencySchema,
    DatabaseSchema,
    FeaturesSchema,
    LoggingSchema,
    NotesSchema,
    SecuritySchema,
)

CONFIG_FILES = [
    "application.yaml",
    "database.yaml",
    "logging.yaml",
    "features.yaml",
    "security.yaml",
    "concurrency.yaml",
]


@pytest.fixture(autouse=True)
def _clear_config_cache():
    """Clear lru_cache between tests so each test gets a fresh load."""
    get_settings.cache_clear()
    get_app_config.cache_clear()
    yield
    get_settings.cache_clear()
    get_app_config.cache_clear()


def write_project(tmp_path, files: dict[str, str]):
    (tmp_path / ".project_root").touch()
    settings_dir = tmp_path / "config" / "settings"
    settings_dir.mkdir(parents=True)
    for name, body in files.items():
        (settings_dir / name).write_text(body)
    return tmp_path


class TestProjectRoot:
    """Tests for .project_root marker discovery."""

    def test_finds_root_with_config(self):
        root = find_project_root()

        assert (root / ".project_root").exists()
        assert (root / "config" / "settings").is_dir()

    def test_raises_when_no_marker_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        with pytest.raises(RuntimeError, match="Project root not found"):
            find_project_root()

    def test_validate_exits_when_marker_missing(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        with pytest.raises(SystemExit):
            validate_project_root()


class TestLoadYamlConfig:
    @pytest.mark.parametrize("filename", CONFIG_FILES)
    def test_every_file_loads(self, filename):
        data = load_yaml_config(filename)

        assert isinstance(data, dict)
        assert data

    def test_raises_for_nonexistent_file(self):
        with pytest.raises(FileNotFoundError, match="Configuration file not found"):
            load_yaml_config("does_not_exist.yaml")

    def test_empty_yaml_is_empty_dict(self, tmp_path, monkeypatch):
        monkeypatch.chdir(write_project(tmp_path, {"empty.yaml": ""}))

        assert load_yaml_config("empty.yaml") == {}


class TestAppConfig:
    def test_sections_are_typed(self):
        config = AppConfig()

        assert isinstance(config.application, ApplicationSchema)
        assert isinstance(config.database, DatabaseSchema)
        assert isinstance(config.logging, LoggingSchema)
        assert isinstance(config.features, FeaturesSchema)
        assert isinstance(config.security, SecuritySchema)
        assert isinstance(config.concurrency, ConcurrencySchema)

    def test_note_limits(self):
        notes = AppConfig().application.notes

        assert isinstance(notes, NotesSchema)
        assert notes.max_tags == 10
        assert notes.max_tag_length == 50

    def test_attachment_limits(self):
        attachments = AppConfig().application.attachments

        assert attachments.max_file_size_bytes == 10 * 1024 * 1024
        assert "application/pdf" in attachments.allowed_mime_types
        assert "application/x-msdownload" not in attachments.allowed_mime_types

    def test_rejects_missing_required_fields(self, tmp_path, monkeypatch):
        monkeypatch.chdir(
            write_project(
                tmp_path,
                {
                    "application.yaml": "name: 'Incomplete'",
                    "database.yaml": "host: localhost",
                    "logging.yaml": "level: INFO",
                    "features.yaml": "api_detailed_errors: true",
                    "security.yaml": "jwt:\n  algorithm: HS256",
                    "concurrency.yaml": "thread_pool:\n  max_workers: 4",
                },
            )
        )

        with pytest.raises(ValueError, match="Invalid configuration in application.yaml"):
            AppConfig()

    def test_rejects_unknown_fields(self):
        data = load_yaml_config("features.yaml")
        data["events_enabled"] = True

        with pytest.raises(PydanticValidationError, match="Extra inputs are not permitted"):
            FeaturesSchema(**data)

    def test_thread_pool_needs_a_worker(self):
        with pytest.raises(PydanticValidationError, match="greater than or equal to 1"):
            ConcurrencySchema(thread_pool={"max_workers": 0})


class TestCachedAccessors:
    def test_settings_read_jwt_secret_from_environment(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", "from-the-environment")

        settings = get_settings()

        assert isinstance(settings, Settings)
        assert settings.jwt_secret == "from-the-environment"
        assert get_settings() is settings

    def test_app_config_is_cached(self):
        assert get_app_config() is get_app_config()


class TestDerivedValues:
    def test_composed_postgres_url(self, monkeypatch):
        monkeypatch.setenv("DB_PASSWORD", "pw")
        db = get_app_config().database
        monkeypatch.setattr(db, "url", None)

        assert get_database_url() == f"postgresql+asyncpg://{db.user}:pw@{db.host}:{db.port}/{db.name}"
        assert get_database_url(async_driver=False).startswith("postgresql://")

    def test_explicit_url_wins(self, monkeypatch):
        monkeypatch.setattr(get_app_config().database, "url", "sqlite+aiosqlite:///./local.db")

        assert get_database_url() == "sqlite+aiosqlite:///./local.db"

    def test_upload_root_relative_to_project(self):
        assert get_upload_root() == find_project_root() / "uploads"

    def test_absolute_upload_root(self, tmp_path, monkeypatch):
        monkeypatch.setattr(get_app_config().application.attachments, "upload_dir", str(tmp_path))

        assert get_upload_root() == tmp_path
