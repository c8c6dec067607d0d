from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

DATA_DIR = Path(__file__).parent / "data"


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="OPERALOG_")

    app_name: str = "OperaLog"
    debug: bool = False

    database_url: str = "postgresql+asyncpg://localhost:5432/operalog"

    # Static catalog produced by `python -m operalog.jobs.build_catalog`
    catalog_path: Path = DATA_DIR / "all_operas.json"
    openopus_dump_url: str = "https://api.openopus.org/work/dump.json"

    # The OAuth proxy in front of the app forwards the signed-in user id here
    auth_user_header: str = "X-Auth-Request-User"

    # Client side
    api_base_url: str = "http://localhost:8000"
    request_timeout: float = 30.0
    state_dir: Path = Path.home() / ".operalog"


settings = Settings()


# =============================================================================
# DOMAIN CONSTANTS
# =============================================================================

MIN_RATING = 1
MAX_RATING = 3

# Key under which the client snapshot is persisted
STORAGE_NAME = "opera-storage"

CATALOG_ENDPOINT = "/data/all_operas.json"
WISHLIST_ENDPOINT = "/api/wishlist"
WATCHED_ENDPOINT = "/api/watched"
SESSION_ENDPOINT = "/api/auth/session"

PLACEHOLDER_IMAGE = "/images/placeholder.jpg"
