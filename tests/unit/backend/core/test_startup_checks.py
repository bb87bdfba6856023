"""
Unit Tests for Startup Security Validation.
"""

from types import SimpleNamespace

import pytest

from notegraph.backend.core.config import get_app_config
from notegraph.backend.core.startup_checks import StartupSecurityError, run_startup_checks

STRONG_SECRET = SimpleNamespace(jwt_secret="x" * 32)


def production_config(**application_overrides):
    """Real config sections, copied and switched to a safe production setup."""
    base = get_app_config()
    application = base.application.model_copy(
        update={
            "environment": "production",
            "debug": False,
            "docs_enabled": False,
            "cors": base.application.cors.model_copy(update={"origins": ["https://notes.example.com"]}),
            **application_overrides,
        }
    )
    return SimpleNamespace(
        application=application,
        database=base.database.model_copy(update={"url": None}),
        features=base.features.model_copy(update={"api_detailed_errors": False}),
        security=base.security,
    )


class TestSecretStrength:
    def test_short_secret_blocks_startup(self):
        with pytest.raises(StartupSecurityError, match="JWT_SECRET is 5 chars"):
            run_startup_checks(get_app_config(), SimpleNamespace(jwt_secret="short"))

    def test_development_config_passes(self):
        run_startup_checks(get_app_config(), STRONG_SECRET)


class TestProductionSafety:
    def test_safe_production_passes(self):
        run_startup_checks(production_config(), STRONG_SECRET)

    @pytest.mark.parametrize(
        ("overrides", "message"),
        [
            ({"debug": True}, "debug is true"),
            ({"docs_enabled": True}, "docs_enabled is true"),
        ],
    )
    def test_unsafe_application_settings(self, overrides, message):
        with pytest.raises(StartupSecurityError, match=message):
            run_startup_checks(production_config(**overrides), STRONG_SECRET)

    def test_localhost_cors(self):
        config = production_config()
        config.application = config.application.model_copy(
            update={"cors": config.application.cors.model_copy(update={"origins": ["http://localhost:3000"]})}
        )

        with pytest.raises(StartupSecurityError, match="CORS origins contain localhost"):
            run_startup_checks(config, STRONG_SECRET)

    def test_sqlite_in_production(self):
        config = production_config()
        config.database = config.database.model_copy(update={"url": "sqlite+aiosqlite:///./notes.db"})

        with pytest.raises(StartupSecurityError, match="SQLite"):
            run_startup_checks(config, STRONG_SECRET)

    def test_all_failures_reported_together(self):
        config = production_config(debug=True, docs_enabled=True)

        with pytest.raises(StartupSecurityError, match="2 security check"):
            run_startup_checks(config, SimpleNamespace(jwt_secret="x" * 32))
