"""
Configuration settings using Pydantic BaseSettings.

光伏测试管理系统 - 配置模块
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application configuration settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_name: str = "PV Test Manager"
    app_version: str = "1.0.0"
    debug: bool = True
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Database
    database_url: str = "sqlite:///./pv_test_manager.db"

    # CORS
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000"
    ]

    # Measurement derivation
    reference_area_m2: float = 1.0  # standard test area for efficiency

    # Alert thresholds
    temperature_critical: float = 85.0  # °C
    temperature_warning: float = 75.0  # °C
    current_critical: float = 150.0  # A
    voltage_critical: float = 1000.0  # V
    efficiency_low: float = 10.0  # %

    # 0 disables suppression: one alert per violating point
    alert_suppression_seconds: float = 0.0

    # Device polling
    poll_interval_seconds: float = 1.0
    poll_queue_size: int = 100


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
