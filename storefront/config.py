# storefront/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar, Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    SESSION_COOKIE_NAME: str = "access_token"
    DATABASE_URL: str = "sqlite:///./storefront.db"

    # Razorpay credentials; the key secret doubles as the HMAC key for payment signatures
    RAZORPAY_API_URL: str = "https://api.razorpay.com"
    RAZORPAY_KEY_ID: str = "rzp_test_key"
    RAZORPAY_KEY_SECRET: str = "rzp_test_secret"
    PAYMENT_CURRENCY: str = "INR"

    # Gateway calls are the only remote dependency of the core
    GATEWAY_TIMEOUT_SECONDS: float = 10.0
    GATEWAY_MAX_ATTEMPTS: int = 3

    # Optional admin account created by `python -m storefront.seed`
    ADMIN_EMAIL: Optional[str] = None
    ADMIN_PASSWORD: Optional[str] = None

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

settings = Settings()
