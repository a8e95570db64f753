from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
import logging

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    # Persistence / auth
    supabase_url: str = ""
    supabase_service_key: str = ""

    # Deep-analysis orchestrator
    orchestrator_url: str = ""
    orchestrator_secret: str = ""
    orchestrator_timeout: float = 10.0

    # Anonymous fingerprinting
    fingerprint_salt: str = "vaas"

    # App
    frontend_url: str = "http://localhost:3000"
    debug: bool = False

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()


_supabase_client = None
_supabase_attempted = False


def get_supabase_client():
    """Get Supabase admin client. Returns None if not configured or keys are invalid."""
    global _supabase_client, _supabase_attempted

    if _supabase_attempted:
        return _supabase_client

    _supabase_attempted = True
    s = get_settings()

    if not s.supabase_url or not s.supabase_service_key:
        logger.warning("Supabase URL or service key not configured. Submissions and subscriber quotas disabled.")
        return None

    try:
        from supabase import create_client
        _supabase_client = create_client(s.supabase_url, s.supabase_service_key)
        logger.info("Supabase client initialized successfully.")
        return _supabase_client
    except Exception as e:
        logger.error(
            f"Failed to initialize Supabase client: {e}. "
            "Submission recording and paid-tier quotas will be disabled. "
            "Check that SUPABASE_URL and SUPABASE_SERVICE_KEY are correct."
        )
        return None
