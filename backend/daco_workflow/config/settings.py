"""Application Settings - Central Configuration"""
from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # MongoDB (transactions require a replica set)
    mongo_uri: str = "mongodb://localhost:27017/?replicaSet=rs0"
    mongo_db: str = "daco_workflow_dev"
    transaction_timeout_ms: int = 5000

    # Service Mailbox (Graph sendMail via ROPC)
    aad_tenant_id: str = ""
    aad_client_id: str = ""
    aad_client_secret: str = ""
    service_mailbox_email: str = ""
    service_mailbox_password: str = ""

    # Bearer token validation for incoming requests
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    jwt_audience: str = ""

    # Logging
    logs_path: str = "./logs"
    log_level: str = "INFO"

    # CORS - set to "*" to allow all origins
    cors_origins: str = "*"

    # Frontend URL (for email links)
    frontend_url: str = "http://localhost:3000"

    # Workflow
    approval_validity_days: int = 365

    # Reminder scheduler
    reminder_scheduler_enabled: bool = True
    reminder_interval_hours: int = 24
    reminder_threshold_days: int = 7
    dac_notification_email: str = ""

    # Environment
    environment: str = "development"
    debug: bool = True

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string to list"""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.environment.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
