"""Application settings and configuration.

This module defines all configuration options for the scheduled transaction
module. Settings are loaded from environment variables with sensible defaults.
"""

from functools import cached_property
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from scheduled_tx.services.typed_data import DomainContext

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class VaultConfig(BaseModel):
    """An in-process vault registered when the API starts."""

    address: str = Field(..., pattern=r"^0x[0-9a-fA-F]{40}$")
    owners: list[str] = Field(..., min_length=1, description="Hex Ed25519 public keys")
    threshold: int = Field(default=1, ge=1)
    funds: int = Field(default=0, ge=0, description="Native balance credited on registration")
    enable_module: bool = True

    @field_validator("owners")
    @classmethod
    def _validate_owners(cls, value: list[str]) -> list[str]:
        normalized = []
        for owner in value:
            cleaned = owner[2:] if owner.startswith(("0x", "0X")) else owner
            try:
                raw = bytes.fromhex(cleaned)
            except ValueError as err:
                raise ValueError(f"Invalid owner key: {owner}") from err
            if len(raw) != 32:
                raise ValueError(f"Owner key must be 32 bytes: {owner}")
            normalized.append(raw.hex())
        return normalized

    @property
    def owner_keys(self) -> list[bytes]:
        return [bytes.fromhex(owner) for owner in self.owners]


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Scheduled Tx Module", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Deployment parameters bound into every signing digest
    chain_id: int = Field(default=1, ge=0, alias="CHAIN_ID")
    module_address: str = Field(default=ZERO_ADDRESS, alias="MODULE_ADDRESS")

    # Where consumed nonces live
    registry_backend: Literal["memory", "database", "redis"] = Field(
        default="memory", alias="REGISTRY_BACKEND"
    )

    # Vaults served by this process, as a JSON list in VAULTS
    vaults: list[VaultConfig] = Field(default_factory=list, alias="VAULTS")

    # Database configuration
    database_url: str = Field(default="sqlite:///./scheduled_tx.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Redis configuration for the replay registry
    redis_url: str = Field(default="redis://localhost:6379", alias="REDIS_URL")
    redis_key_prefix: str = Field(default="scheduled_tx", alias="REDIS_KEY_PREFIX")

    # CORS configuration for relayer frontends
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(default=["GET", "POST", "OPTIONS"], alias="CORS_ALLOW_METHODS")
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling such as Alembic."""
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @cached_property
    def domain_context(self) -> "DomainContext":
        """Return the domain this deployment signs under.

        Derived from immutable deployment parameters, so it is built once.
        """
        from scheduled_tx.services.typed_data import DomainContext

        return DomainContext(chain_id=self.chain_id, verifying_contract=self.module_address)


settings = Settings()
