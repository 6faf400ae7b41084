from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # App settings
    PROJECT_NAME: str = "ExpenseTracker"
    API_PREFIX: str = "/api"
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")
    CORS_ORIGINS: List[str] = Field(default=["*"])

    # AWS
    AWS_REGION: str = Field(default="us-east-1")
    DYNAMO_ENDPOINT_URL: Optional[str] = None
    S3_ENDPOINT_URL: Optional[str] = None

    # DynamoDB
    DYNAMO_EXPENSES_TABLE: str = Field(default="expense-tracker-expenses")
    DYNAMO_CATEGORIES_TABLE: str = Field(default="expense-tracker-categories")
    DYNAMO_FILES_TABLE: str = Field(default="expense-tracker-files")
    EXPENSES_DATE_INDEX: str = "UserIdDateIndex"
    USER_ID_INDEX: str = "UserIdIndex"

    # S3
    FILES_BUCKET: str = Field(default="expense-tracker-files")
    REPORTS_BUCKET: str = Field(default="expense-tracker-reports")

    # Presigned URL lifetimes, in seconds
    UPLOAD_URL_EXPIRES: int = 300
    DOWNLOAD_URL_EXPIRES: int = 3600
    MAX_SHARE_EXPIRES: int = 60 * 60 * 24 * 7

    MAX_FILE_SIZE: int = 100 * 1024 * 1024
    ANALYTICS_DEFAULT_MONTHS: int = 6

    # Tokens are issued by the identity provider; we only verify them
    JWT_SECRET_KEY: str = Field(default="change-me")
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: Optional[str] = None
    JWT_ISSUER: Optional[str] = None


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
