"""
Application Configuration
Loads settings from environment variables
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from .env file"""
    
    # Application
    APP_ENV: str = "development"
    APP_NAME: str = "CertiCraft"
    APP_URL: str = "http://localhost:8000"
    FRONTEND_URL: str = "http://localhost:5173"  # Base for verification links
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    
    # Database
    DATABASE_URL: str = "sqlite:///./certicraft.db"
    
    # Email relay
    MAIL_BACKEND: str = "smtp"  # "smtp" or "console"
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_START_TLS: bool = True
    SMTP_TIMEOUT_SECONDS: int = 60
    EMAIL_FROM: Optional[str] = None
    MAIL_BATCH_SIZE: int = 100
    MAIL_SEND_INTERVAL_SECONDS: float = 0.5
    
    # Storage (Supabase, falls back to local disk when unset)
    SUPABASE_URL: Optional[str] = None
    SUPABASE_KEY: Optional[str] = None
    CERTIFICATE_BUCKET: str = "certificates"
    CERTIFICATE_FOLDER: str = "pdfs"
    LOCAL_STORAGE_DIR: str = "./uploads"
    TEMP_DIR: str = "./uploads/tmp"
    STORAGE_TIMEOUT_SECONDS: int = 30
    
    # Rendering
    CERTIFICATE_FONT: str = "DejaVuSans.ttf"
    DEFAULT_FONT_SIZE: int = 40
    DEFAULT_FONT_COLOR: str = "#000000"
    DEFAULT_QR_SIZE: int = 100
    GENERATION_CONCURRENCY: int = 4
    
    @property
    def remote_storage_enabled(self) -> bool:
        return bool(self.SUPABASE_URL and self.SUPABASE_KEY)
    
    class Config:
        env_file = ".env"
        case_sensitive = True


# Create global settings instance
settings = Settings()
