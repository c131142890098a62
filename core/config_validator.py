# core/config_validator.py

from typing import List
from core.config import settings
from core.logging_config import logger


def validate_required_config() -> List[str]:
    """
    Settings the permission engine cannot run without.
    Returns the names of missing / invalid variables.
    """
    problems = []

    if not settings.SUPABASE_URL:
        problems.append("SUPABASE_URL")
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        problems.append("SUPABASE_SERVICE_ROLE_KEY")

    for name in ("FEATURE_FLAGS_TABLE", "USER_OVERRIDES_TABLE", "USER_TABS_TABLE"):
        if not getattr(settings, name):
            problems.append(name)

    if settings.PERMISSION_FETCH_TIMEOUT_SECONDS <= 0:
        problems.append("PERMISSION_FETCH_TIMEOUT_SECONDS (must be > 0)")

    return problems


def validate_optional_config() -> List[str]:
    warnings = []

    if not settings.SUPABASE_ANON_KEY:
        warnings.append("SUPABASE_ANON_KEY (optional but recommended)")
    if not settings.BACKEND_CORS_ORIGINS:
        warnings.append("DESKTOP_ORIGINS (no CORS origins configured)")

    return warnings


def validate_config_on_startup():
    """
    Raises RuntimeError if critical config is missing.
    Skipped entirely when ENV == "test".
    """
    if settings.ENV == "test":
        logger.debug("Configuration validation skipped (ENV=test)")
        return

    missing_required = validate_required_config()
    missing_optional = validate_optional_config()

    if missing_required:
        error_msg = f"Missing or invalid environment variables: {', '.join(missing_required)}"
        logger.error(error_msg)
        raise RuntimeError(error_msg)

    for warning in missing_optional:
        logger.warning(f"Optional configuration missing: {warning}")

    logger.info("Configuration validation passed")
