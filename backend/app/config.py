"""
Application configuration
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "Project Onboarding"
    APP_VERSION: str = "1.0.0"
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:3001"]

    # Database (MongoDB)
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DB_NAME: str = "onboarding"
    INTAKE_FORM_COLLECTION: str = "intake_forms"

    # Object storage (GridFS)
    INTAKE_ASSET_BUCKET: str = "intake_form_assets"
    ASSET_BASE_URL: str = "http://localhost:8000/api/onboarding/assets"

    # GitHub
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_GRAPHQL_URL: str = "https://api.github.com/graphql"
    GITHUB_PAGE_SIZE: int = 100
    GITHUB_TIMEOUT_SECONDS: float = 10.0
    REPO_MIN_STARS: int = 2

    # Security
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Intake form limits
    INTAKE_MAX_IMAGES: int = 5
    INTAKE_MAX_IMAGE_BYTES: int = 5 * 1024 * 1024
    INTAKE_ALLOWED_IMAGE_TYPES: List[str] = [
        "image/png",
        "image/jpeg",
        "image/gif",
        "image/webp",
        "image/svg+xml",
    ]

    # Email (SMTP with App Password)
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    GMAIL_NOTIFICATIONS_ENABLED: bool = False
    GMAIL_USER: Optional[str] = None
    GMAIL_APP_PASSWORD: Optional[str] = None
    NOTIFICATION_FROM_EMAIL: str = "team@example.com"
    OPERATIONS_EMAIL: str = "team@example.com"
    INTAKE_CONFIRMATION_TEMPLATE: str = "intake_confirmation"

    # Values rendered into the confirmation email
    PRODUCT_NAME: str = "Project Onboarding"
    PRODUCT_URL: str = "http://localhost:3000"
    SUPPORT_EMAIL: str = "team@example.com"
    COMPANY_NAME: str = "Project Onboarding Team"
    COMPANY_ADDRESS: str = ""
    SENDER_NAME: str = "Project Onboarding Team"
    HELP_URL: str = "http://localhost:3000/docs"

    # Edge caching for the repository listing
    REPOS_CACHE_MAX_AGE: int = 300
    REPOS_CACHE_STALE_WHILE_REVALIDATE: int = 1800

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
