from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
	model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

	APP_NAME: str = Field(default="Curated Recommendations API")
	DEBUG: bool = Field(default=False)
	API_PREFIX: str = Field(default="")

	# Database
	DATABASE_URL: str = Field(default="")

	# Platform app credentials; the secret signs session tokens and proxy requests
	SHOPIFY_API_KEY: str = Field(default="")
	SHOPIFY_API_SECRET: str = Field(default="dev-change-me")
	JWT_ALGORITHM: str = Field(default="HS256")
	VERIFY_PROXY_SIGNATURE: bool = Field(default=True)

	# Usage metering
	BILLING_CYCLE_DAYS: int = Field(default=30, ge=1)

	# Analytics
	ANALYTICS_RECENT_DAYS: int = Field(default=30, ge=1)
	TOP_PRODUCTS_LIMIT: int = Field(default=10, ge=1)

	# Recommendation overrides
	OVERRIDE_PAGE_SIZE: int = Field(default=20, ge=1)
	DEFAULT_PROXY_LIMIT: int = Field(default=4, ge=1)

	# Azure Monitor / Application Insights
	AZURE_MONITOR_CONN_STR: str = Field(default="")
	ENABLE_APP_INSIGHTS: bool = Field(default=True)
	SAMPLING_RATIO: float = Field(default=1.0)


settings = Settings()
