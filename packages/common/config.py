from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Strongly-typed settings model loaded from env / .env.

    Notes:
        - The BaaS endpoint and anon key must be provided via environment variables.
        - Storage credentials are optional; audio uploads are disabled without them.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        protected_namespaces=()
    )

    ENV: str = Field(default="dev", description="Deployment environment, e.g. dev/staging/prod")
    SERVICE_NAME: str = Field(default="linguafabric", description="Service name")
    LOG_LEVEL: str = Field(default="INFO", description="Root log level")

    BAAS_URL: str = Field(..., description="Backend-as-a-service base URL")
    BAAS_ANON_KEY: str = Field(..., description="Public anon API key for the BaaS")
    BAAS_JWT_SECRET: str = Field(default="", description="Secret used to verify session JWTs (HS256)")
    OIDC_AUDIENCE: str = Field(default="authenticated", description="Expected JWT audience")
    REQUEST_TIMEOUT: float = Field(default=20.0, description="Timeout in seconds for BaaS calls")
    OAUTH_REDIRECT_URL: str = Field(
        default="http://localhost:5173/auth/callback",
        description="Where the OAuth provider sends the user back to",
    )
    FRONTEND_ORIGINS: str = Field(default="http://localhost:5173", description="Comma-separated CORS origins")

    S3_ENDPOINT: str | None = Field(default=None, description="S3-compatible endpoint URL")
    S3_BUCKET: str = Field(default="phoneme-audio", description="Bucket for phoneme audio and cover images")
    S3_ACCESS_KEY: str | None = Field(default=None, description="S3 access key")
    S3_SECRET_KEY: str | None = Field(default=None, description="S3 secret key")


@lru_cache()
def get_settings() -> Settings:
    """Return a cached singleton `Settings` instance."""
    return Settings()
