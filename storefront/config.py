"""
Configuration management for the storefront application.
Loads settings from environment variables and AWS Secrets Manager.
"""
import os
import json
import logging
import boto3
from typing import Optional

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Application configuration"""

    # Application settings
    APP_PORT: int = int(os.getenv("APP_PORT", "5000"))
    PROJECT_NAME: str = os.getenv("PROJECT_NAME", "storefront")
    REGION: str = os.getenv("REGION", "ap-southeast-2")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    FRONTEND_URL: Optional[str] = os.getenv("FRONTEND_URL")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Redis settings
    REDIS_HOST: str = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
    REDIS_AUTH_TOKEN: Optional[str] = os.getenv("REDIS_AUTH_TOKEN")
    REDIS_DB: int = int(os.getenv("REDIS_DB", "0"))
    REDIS_SSL: bool = _env_bool("REDIS_SSL", "false")

    # Redis connection settings
    REDIS_SOCKET_CONNECT_TIMEOUT: int = 5
    REDIS_SOCKET_TIMEOUT: int = 5
    REDIS_RETRY_ON_TIMEOUT: bool = True
    REDIS_MAX_CONNECTIONS: int = 50

    # Auth settings
    JWT_SECRET: str = os.getenv("JWT_SECRET", "change-me")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRES_MINUTES: int = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

    # Cart settings
    CART_TOKEN_COOKIE: str = "cartToken"
    CART_TOKEN_HEADER: str = "x-cart-token"
    CART_TOKEN_MAX_AGE_SECONDS: int = int(os.getenv("CART_TOKEN_MAX_AGE_SECONDS", str(30 * 24 * 60 * 60)))  # 30 days
    CART_TRANSACTION_RETRIES: int = int(os.getenv("CART_TRANSACTION_RETRIES", "5"))

    # Email settings
    EMAIL_BACKEND: str = os.getenv("EMAIL_BACKEND", "log")  # log | smtp | ses
    FROM_EMAIL: str = os.getenv("FROM_EMAIL", "orders@storefront.local")
    SMTP_HOST: Optional[str] = os.getenv("EMAIL_HOST")
    SMTP_PORT: int = int(os.getenv("EMAIL_PORT", "587"))
    SMTP_USER: Optional[str] = os.getenv("EMAIL_USER")
    SMTP_PASSWORD: Optional[str] = os.getenv("EMAIL_PASS")
    SMTP_USE_STARTTLS: bool = _env_bool("EMAIL_STARTTLS", "true")
    NOTIFICATION_WORKERS: int = int(os.getenv("NOTIFICATION_WORKERS", "2"))

    @classmethod
    def load_secrets(cls) -> None:
        """Load Redis and SMTP credentials from AWS Secrets Manager"""
        secret_name = os.getenv("STOREFRONT_SECRET_NAME")
        if not secret_name:
            return  # No secret name provided, keep environment values

        try:
            client = boto3.client("secretsmanager", region_name=cls.REGION)
            response = client.get_secret_value(SecretId=secret_name)
            secret_data = json.loads(response["SecretString"])
        except Exception as e:
            logger.warning("Could not load secrets from Secrets Manager: %s", e)
            return

        if not cls.REDIS_AUTH_TOKEN:
            cls.REDIS_AUTH_TOKEN = secret_data.get("redis_auth_token")
        if "redis_endpoint" in secret_data:
            cls.REDIS_HOST = secret_data["redis_endpoint"]
        if "jwt_secret" in secret_data:
            cls.JWT_SECRET = secret_data["jwt_secret"]
        if "smtp_user" in secret_data:
            cls.SMTP_USER = secret_data["smtp_user"]
            cls.SMTP_PASSWORD = secret_data.get("smtp_password")

    @classmethod
    def redis_url(cls) -> str:
        """Build the Redis connection URL"""
        scheme = "rediss" if cls.REDIS_SSL else "redis"
        auth = f":{cls.REDIS_AUTH_TOKEN}@" if cls.REDIS_AUTH_TOKEN else ""
        return f"{scheme}://{auth}{cls.REDIS_HOST}:{cls.REDIS_PORT}/{cls.REDIS_DB}"
