from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App settings
    PROJECT_NAME: str = "PersonalFinanceTracker"
    API_PREFIX: str = "/api"
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")
    CORS_ORIGINS: List[str] = Field(default=["http://localhost:3000", "http://localhost:8000"])

    # DynamoDB
    DYNAMO_REGION: str = Field(default="eu-west-1")
    DYNAMO_USERS_TABLE: str = Field(default="finance-tracker-users")
    DYNAMO_TRANSACTIONS_TABLE: str = Field(default="finance-tracker-transactions")
    DYNAMO_ASSETS_TABLE: str = Field(default="finance-tracker-assets")

    # JWT Authentication
    JWT_SECRET_KEY: str = Field(default="change-me-in-production")
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days

    # Bedrock (insight generation)
    BEDROCK_REGION: str = Field(default="eu-west-1")
    BEDROCK_MODEL_ID: str = Field(default="anthropic.claude-3-haiku-20240307-v1:0")
    INSIGHTS_MAX_TOKENS: int = 512

    # New accounts start with demo transactions and assets
    SEED_DEMO_DATA: bool = True
    DEFAULT_CURRENCY: str = "USD"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


settings = Settings()
