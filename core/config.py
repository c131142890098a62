from typing import List, Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # -------------------------------------------------
    # General
    # -------------------------------------------------
    PROJECT_NAME: str = "Consultancy Access API"
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # -------------------------------------------------
    # Local desktop client origins (CORS)
    # -------------------------------------------------
    DESKTOP_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "app://.",
    ]

    BACKEND_CORS_ORIGINS: List[str] = []

    # -------------------------------------------------
    # Supabase (persistence + auth)
    # -------------------------------------------------
    SUPABASE_URL: Optional[str] = None
    SUPABASE_ANON_KEY: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None

    # -------------------------------------------------
    # Permission tables
    # -------------------------------------------------
    FEATURE_FLAGS_TABLE: str = "feature_flags"
    USER_OVERRIDES_TABLE: str = "user_permission_overrides"
    USER_TABS_TABLE: str = "user_tab_permissions"

    # -------------------------------------------------
    # Routes the guard always lets through
    # -------------------------------------------------
    ROOT_ROUTE: str = "/"
    LOGIN_ROUTE: str = "/login"

    # A fetch slower than this fails the resolution closed
    PERMISSION_FETCH_TIMEOUT_SECONDS: float = 10.0

    # -------------------------------------------------
    # Model Config
    # -------------------------------------------------
    class Config:
        case_sensitive = True


# Instantiate settings
settings = Settings()

# -------------------------------------------------
# Build CORS list after loading settings
# -------------------------------------------------
settings.BACKEND_CORS_ORIGINS = sorted(
    list(set(o.rstrip("/") for o in settings.DESKTOP_ORIGINS))
)
