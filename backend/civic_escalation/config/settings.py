"""Application Settings - Central Configuration"""
from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


# Worker interval defaults (seconds)
DEFAULT_PRODUCTION_INTERVAL_SECONDS = 3600
PILOT_OVERRIDE_MAX_INTERVAL_SECONDS = 30


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # MongoDB
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "civic_escalation_dev"

    # Logging
    logs_path: str = "./logs"
    log_level: str = "INFO"

    # CORS - set to "*" to allow all origins
    cors_origins: str = "*"

    # Frontend URL (for authority dashboard links in emails)
    frontend_url: str = ""

    # Static admin token for operator endpoints (empty = admin endpoints disabled)
    admin_token: str = ""

    # Pilot / test overrides
    pilot_dry_run: bool = False
    pilot_dry_run_sla_override_minutes: int = 0  # 0 = disabled
    test_escalation_override_minutes: int = 0  # 0 = disabled

    # Escalation worker
    escalation_worker_interval_seconds: int = 0  # 0 = derive from mode
    escalation_scheduler_enabled: bool = True
    escalation_idempotency_window_hours: int = 1
    escalation_max_level: int = 2  # 0=L1, 1=L2, 2=L3
    escalation_candidate_timeout_seconds: float = 30.0
    escalation_lock_duration_seconds: int = 120

    # Email shadow mode: every authority email goes to the pilot inbox
    email_shadow_mode: bool = True
    pilot_inbox_email: str = "pilot-inbox@example.org"

    # Environment
    environment: str = "development"
    debug: bool = True

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string to list"""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def escalation_interval_seconds(self) -> int:
        """
        Escalation worker interval.

        A test override forces a short interval (30s, or the configured
        value when smaller) so minute-scale SLAs fire promptly.
        """
        configured = self.escalation_worker_interval_seconds
        if self.test_escalation_override_minutes > 0:
            if 0 < configured < PILOT_OVERRIDE_MAX_INTERVAL_SECONDS:
                return configured
            return PILOT_OVERRIDE_MAX_INTERVAL_SECONDS
        if configured > 0:
            return configured
        return DEFAULT_PRODUCTION_INTERVAL_SECONDS

    @property
    def escalation_interval_reason(self) -> str:
        """Human readable reason for the chosen interval"""
        if self.test_escalation_override_minutes > 0:
            return "pilot override"
        if self.escalation_worker_interval_seconds > 0:
            return "configured"
        return "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
