# ==================================================================================
# core/config.py: ProgPath configuration (Pydantic v2 settings + typed engine configs)
# ==================================================================================
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, EmailStr, Field, ValidationError
from typing import Optional
import sys


# ------------------------
# ENGINE CONFIG STRUCTS
# ------------------------
class QuotaConfig(BaseModel):
    """Free-tier limits handed to WorkspaceQuotaManager."""

    free_workspace_limit: int = Field(default=2, ge=0)
    free_collaborator_limit: int = Field(default=2, ge=0)


class AnalyticsConfig(BaseModel):
    """Calendar settings handed to AnalyticsAggregator."""

    week_start_day: int = Field(default=0, ge=0, le=6)  # 0 = Monday


class Settings(BaseSettings):
    # ------------------------
    # DATABASE CONFIG
    # ------------------------
    DATABASE_URL: str = "sqlite:///./progpath.db"

    # ------------------------
    # SECURITY CONFIG
    # ------------------------
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # ------------------------
    # SENDGRID EMAIL CONFIG
    # ------------------------
    SENDGRID_API_KEY: Optional[str] = None
    MAIL_FROM: Optional[EmailStr] = None

    # ------------------------
    # FRONTEND & STORAGE CONFIG
    # ------------------------
    FRONTEND_URL: str = "http://localhost:5173"
    UPLOAD_DIR: str = "./uploads"

    # ------------------------
    # QUOTA / ANALYTICS CONFIG
    # ------------------------
    FREE_WORKSPACE_LIMIT: int = 2
    FREE_COLLABORATOR_LIMIT: int = 2
    WEEK_START_DAY: int = 0
    ADMIN_PAGE_SIZE: int = 10

    # ------------------------
    # ENVIRONMENT SETTINGS
    # ------------------------
    ENVIRONMENT: str = "development"  # 'development' | 'production'
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    @property
    def IS_PRODUCTION(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def quota_config(self) -> QuotaConfig:
        return QuotaConfig(
            free_workspace_limit=self.FREE_WORKSPACE_LIMIT,
            free_collaborator_limit=self.FREE_COLLABORATOR_LIMIT,
        )

    @property
    def analytics_config(self) -> AnalyticsConfig:
        return AnalyticsConfig(week_start_day=self.WEEK_START_DAY)

    # ------------------------
    # Pydantic v2 Settings
    # ------------------------
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# ------------------------
# Global Settings Loader
# ------------------------
try:
    settings = Settings()
except ValidationError as e:
    print("❌ Environment configuration error: missing or invalid settings!")
    print(e)
    sys.exit(1)
