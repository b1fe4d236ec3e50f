"""
HRFlow - Configuration Settings

This module handles all application configuration using Pydantic Settings.
Environment variables are loaded from .env file.
"""

from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
    
    # ===========================================
    # APPLICATION CONFIGURATION
    # ===========================================
    app_name: str = "HRFlow Payroll"
    app_env: str = "development"
    debug: bool = False
    api_version: str = "v1"
    
    # ===========================================
    # DATABASE CONFIGURATION
    # ===========================================
    database_url_async: str = "sqlite+aiosqlite:///./hrflow.db"
    database_echo: bool = False
    
    # ===========================================
    # JWT AUTHENTICATION
    # Tokens are issued by the identity service; we only verify them.
    # ===========================================
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    
    # ===========================================
    # APPROVAL WORKFLOW
    # ===========================================
    rejection_reason_max_length: int = 500
    
    # Directory lookups for the HR and Finance approval levels
    hr_department_names: List[str] = ["Human Resources", "HR"]
    hr_manager_titles: List[str] = [
        "hr manager",
        "head of hr",
        "hr head",
        "head of human resources",
    ]
    finance_department_names: List[str] = [
        "Finance",
        "Finance and Accounting",
        "Accounting",
    ]
    finance_director_titles: List[str] = [
        "finance director",
        "head of finance",
        "finance head",
    ]
    department_head_titles: List[str] = ["head", "director", "manager"]
    
    # ===========================================
    # CORS SETTINGS
    # ===========================================
    cors_origins: str = "http://localhost:3000,http://localhost:5173"
    
    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string into list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]
    
    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env.lower() == "production"
    
    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env.lower() == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to avoid reading .env file on every call.
    """
    return Settings()


# Export settings instance
settings = get_settings()
