from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=None, extra="ignore")

    # Runtime
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")
    port: int = Field(default=8080, validation_alias="PORT")

    # CORS / Frontend
    frontend_base_url: str = Field(
        default="https://listo.app", validation_alias="FRONTEND_BASE_URL"
    )
    frontend_urls: str | None = Field(default=None, validation_alias="FRONTEND_URLS")

    # AWS / data
    aws_region: str = Field(default="us-east-1", validation_alias="AWS_REGION")
    ddb_table_name: str | None = Field(default=None, validation_alias="DDB_TABLE_NAME")
    # Local DynamoDB (e.g. http://localhost:8000) for development.
    ddb_endpoint_url: str | None = Field(default=None, validation_alias="DDB_ENDPOINT_URL")

    # Share-code cache (Redis). Use a rediss:// URL to enable TLS.
    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias="REDIS_URL")
    redis_password: str | None = Field(default=None, validation_alias="REDIS_PASSWORD")
    redis_db: int | None = Field(default=None, validation_alias="REDIS_DB")
    redis_timeout_seconds: float = Field(default=5.0, validation_alias="REDIS_TIMEOUT_SECONDS")

    # Auth (Auth0)
    auth0_domain: str | None = Field(default=None, validation_alias="AUTH0_DOMAIN")
    auth0_audience: str | None = Field(default=None, validation_alias="AUTH0_AUDIENCE")

    # Signing secret for share tokens (HS256).
    jwt_secret: str | None = Field(default=None, validation_alias="JWT_SECRET")

    # ---- helpers / derived flags ----
    @property
    def normalized_environment(self) -> str:
        v = (self.environment or "").strip().lower()
        if v in ("prod", "production"):
            return "production"
        if v in ("stage", "staging"):
            return "staging"
        if v in ("dev", "development"):
            return "development"
        return v or "development"

    @property
    def is_production(self) -> bool:
        return self.normalized_environment == "production"

    def require_signing_secret(self) -> str:
        """
        Share tokens cannot be issued or verified without a secret, in any
        environment. Called at startup so a missing secret fails fast.
        """
        secret = str(self.jwt_secret or "").strip()
        if not secret:
            raise RuntimeError("Missing required environment variable: JWT_SECRET")
        return secret

    def require_in_production(self) -> None:
        """
        Enforce required settings in production.

        Development/staging are allowed to run with partial config for local work,
        but production must be fully configured.
        """
        if not self.is_production:
            return

        missing: list[str] = []

        if not self.ddb_table_name:
            missing.append("DDB_TABLE_NAME")
        if not self.auth0_domain:
            missing.append("AUTH0_DOMAIN")
        if not self.auth0_audience:
            missing.append("AUTH0_AUDIENCE")
        if not self.jwt_secret:
            missing.append("JWT_SECRET")

        if missing:
            raise RuntimeError(
                "Missing required production environment variables: "
                + ", ".join(missing)
            )

    def to_log_safe_dict(self) -> dict[str, object]:
        """
        A redacted representation safe for structured logs / diagnostics.
        """
        def _has(v: object) -> bool:
            return v is not None and str(v).strip() != ""

        return {
            "environment": self.normalized_environment,
            "port": self.port,
            "aws_region": self.aws_region,
            "ddb_table_name": self.ddb_table_name,
            "ddb_endpoint_url": self.ddb_endpoint_url if _has(self.ddb_endpoint_url) else None,
            "redis_tls": str(self.redis_url or "").startswith("rediss://"),
            "redis_password_configured": _has(self.redis_password),
            "auth0_domain": self.auth0_domain if _has(self.auth0_domain) else None,
            "auth0_audience_configured": _has(self.auth0_audience),
            "jwt_secret_configured": _has(self.jwt_secret),
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    s = Settings()
    s.require_in_production()
    return s


# Module-level singleton.
settings = get_settings()
