from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8080
    ENV: str = "development"
    DATABASE_URL: str = "sqlite:///./famli.db"

    # Authentication
    JWT_SECRET: str = "famli-dev-secret-change-in-production"
    JWT_EXPIRES_IN: str = "7d"
    JWT_ALGORITHM: str = "HS256"
    JWT_RENEWAL_THRESHOLD_HOURS: int = 24
    SESSION_COOKIE_NAME: str = "famli_session"

    # WhatsApp / Twilio
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_PHONE_NUMBER: str = ""  # whatsapp:+14155238886 (sandbox)
    TWILIO_API_BASE_URL: str = "https://api.twilio.com"
    TWILIO_VALIDATE_SIGNATURE: bool = True
    WEBHOOK_BASE_URL: str = "http://localhost:8080"
    WHATSAPP_HTTP_TIMEOUT: float = 15.0
    LINK_CODE_TTL_MINUTES: int = 10
    APP_PUBLIC_URL: str = "famli.net"

    # Rate limiting (fixed window per IP)
    API_RATE_LIMIT_REQUESTS: int = 60
    API_RATE_LIMIT_WINDOW_SECONDS: int = 60
    API_RATE_LIMIT_BLOCK_SECONDS: int = 300
    WEBHOOK_RATE_LIMIT_REQUESTS: int = 200
    WEBHOOK_RATE_LIMIT_WINDOW_SECONDS: int = 60
    WEBHOOK_RATE_LIMIT_BLOCK_SECONDS: int = 60

    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",  # Vite
        "http://localhost:8080",
    ]

    @property
    def whatsapp_enabled(self) -> bool:
        """A integração só fica ativa quando há credenciais Twilio."""
        return bool(self.TWILIO_ACCOUNT_SID)

    @property
    def is_development(self) -> bool:
        return self.ENV == "development"

    @property
    def webhook_url(self) -> str:
        return f"{self.WEBHOOK_BASE_URL.rstrip('/')}/api/whatsapp/webhook"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
