"""
Startup Security Validation.

Checks security invariants before the application accepts traffic.
If any check fails, the application refuses to start with a clear
error message.

Called during FastAPI lifespan initialization when the
``security_startup_checks_enabled`` feature flag is on.
"""

from notegraph.backend.core.config import AppConfig, Settings, get_app_config, get_settings
from notegraph.backend.core.logging import get_logger

logger = get_logger(__name__)


class StartupSecurityError(RuntimeError):
    """Raised when a startup security check fails."""


def run_startup_checks(
    app_config: AppConfig | None = None,
    settings: Settings | None = None,
) -> None:
    """
    Validate all security invariants at startup.

    Raises:
        StartupSecurityError: If any check fails
    """
    app_config = app_config or get_app_config()
    settings = settings or get_settings()
    environment = app_config.application.environment

    errors: list[str] = []

    _check_secret_strength(settings, app_config, errors)
    _check_production_safety(app_config, environment == "production", errors)

    if errors:
        for error in errors:
            logger.error("Startup security check failed", extra={"check": error})
        raise StartupSecurityError(
            f"Startup blocked: {len(errors)} security check(s) failed:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )

    logger.info(
        "Startup security checks passed",
        extra={"environment": environment},
    )


def _check_secret_strength(settings: Settings, app_config: AppConfig, errors: list[str]) -> None:
    """Validate that the JWT secret meets the minimum length."""
    jwt_min = app_config.security.secrets_validation.jwt_secret_min_length
    if len(settings.jwt_secret) < jwt_min:
        errors.append(
            f"JWT_SECRET is {len(settings.jwt_secret)} chars, "
            f"minimum is {jwt_min}"
        )


def _check_production_safety(app_config: AppConfig, is_production: bool, errors: list[str]) -> None:
    """Validate production environment safety constraints."""
    if not is_production:
        return

    app = app_config.application
    if app.debug:
        errors.append("debug is true in production environment")

    if app_config.features.api_detailed_errors:
        errors.append("api_detailed_errors is true in production environment")

    if app.docs_enabled:
        errors.append("docs_enabled is true in production environment")

    if app_config.features.security_cors_enforce_production:
        localhost_origins = [o for o in app.cors.origins if "localhost" in o]
        if localhost_origins:
            errors.append(
                f"CORS origins contain localhost in production: {localhost_origins}"
            )

    if app_config.database.url and app_config.database.url.startswith("sqlite"):
        errors.append("SQLite database URL configured in production environment")
