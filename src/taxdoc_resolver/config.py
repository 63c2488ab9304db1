"""Configuration system for the tax document resolver.

This module provides Pydantic Settings-based configuration with environment
variable support and sensible defaults. Configuration is built explicitly
and handed to the analyzer and resolver at construction time.

Usage:
    from taxdoc_resolver.config import TaxDocConfig

    # Load from environment variables and .env file
    config = TaxDocConfig()

    # Access service settings
    print(config.document_intelligence.endpoint)

    # Access heuristic thresholds
    print(config.reconciler.tolerance)
"""

from decimal import Decimal
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DocumentIntelligenceConfig(BaseSettings):
    """Document-understanding service settings.

    Environment Variables:
        TAXDOC_DI_ENDPOINT: Service endpoint URL
        TAXDOC_DI_API_KEY: API key for the service
        TAXDOC_DI_GENERIC_MODEL_ID: Model used for unrecognized subtypes
        TAXDOC_DI_FALLBACK_MODEL_ID: Full-text read model used on fallback
        TAXDOC_DI_POLLING_TIMEOUT: Seconds to wait for an analysis to finish
    """

    model_config = SettingsConfigDict(
        env_prefix="TAXDOC_DI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    endpoint: Optional[str] = Field(
        default=None,
        description="Document Intelligence endpoint URL",
    )
    api_key: Optional[str] = Field(
        default=None,
        description="API key for the Document Intelligence resource",
    )
    generic_model_id: str = Field(
        default="prebuilt-document",
        description="Model used when the claimed subtype is not recognized",
    )
    fallback_model_id: str = Field(
        default="prebuilt-read",
        description="Full-text model used when the primary model is not found",
    )
    polling_timeout: float = Field(
        default=120.0,
        gt=0,
        description="Seconds to wait for a long-running analysis",
    )

    @field_validator("generic_model_id", "fallback_model_id")
    @classmethod
    def validate_model_id(cls, v: str) -> str:
        """Ensure model identifiers are not empty."""
        if not v or not v.strip():
            raise ValueError("Model identifier cannot be empty")
        return v.strip()

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: Optional[str]) -> Optional[str]:
        """Normalize the endpoint and require an http(s) scheme."""
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not v.startswith(("https://", "http://")):
            raise ValueError(f"Endpoint must be an http(s) URL: {v}")
        return v.rstrip("/") + "/"


class CascadeConfig(BaseSettings):
    """Thresholds for the pattern-cascade fallback tiers.

    Environment Variables:
        TAXDOC_CASCADE_CONTEXT_FLOOR: Minimum amount accepted from a label window
        TAXDOC_CASCADE_CONTEXT_WINDOW_CHARS: Window length when no closing label exists
        TAXDOC_CASCADE_GLOBAL_BAND_MIN: Lower bound of the whole-document scan
        TAXDOC_CASCADE_GLOBAL_BAND_MAX: Upper bound of the whole-document scan
        TAXDOC_CASCADE_SUSPICIOUS_RATIO: How much larger a later amount must be
            to replace the first candidate of the whole-document scan
        TAXDOC_CASCADE_AMOUNT_CEILING: Amounts at or above this are rejected
    """

    model_config = SettingsConfigDict(
        env_prefix="TAXDOC_CASCADE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    context_floor: Decimal = Field(
        default=Decimal("100"),
        ge=0,
        description="Smallest amount accepted from a label context window",
    )
    context_window_chars: int = Field(
        default=400,
        gt=0,
        le=5000,
        description="Characters scanned after a label with no closing label",
    )
    global_band_min: Decimal = Field(
        default=Decimal("1"),
        ge=0,
        description="Lower bound for the whole-document amount scan",
    )
    global_band_max: Decimal = Field(
        default=Decimal("10000000"),
        gt=0,
        description="Upper bound for the whole-document amount scan",
    )
    suspicious_ratio: Decimal = Field(
        default=Decimal("100"),
        gt=1,
        description="Ratio at which a larger amount replaces a small first hit",
    )
    amount_ceiling: Decimal = Field(
        default=Decimal("100000000"),
        gt=0,
        description="Amounts at or above this value fail validation",
    )

    @model_validator(mode="after")
    def validate_band(self) -> "CascadeConfig":
        """The scan band must be a non-empty interval."""
        if self.global_band_min >= self.global_band_max:
            raise ValueError("global_band_min must be below global_band_max")
        return self


class ReconcilerConfig(BaseSettings):
    """Cross-source reconciliation settings.

    Environment Variables:
        TAXDOC_RECONCILER_TOLERANCE: Dollar difference tolerated between sources
        TAXDOC_RECONCILER_RECLASSIFY_AMBIGUOUS: Let a tied subtype score
            override the claimed subtype
    """

    model_config = SettingsConfigDict(
        env_prefix="TAXDOC_RECONCILER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    tolerance: Decimal = Field(
        default=Decimal("1.00"),
        ge=0,
        description="Absolute dollar difference treated as agreement",
    )
    reclassify_ambiguous: bool = Field(
        default=True,
        description="Apply the default subtype when level-2 scores tie",
    )


class TaxDocConfig(BaseSettings):
    """Root configuration for the resolver.

    Environment Variables:
        TAXDOC_ENV: Environment name (development, staging, production, test)
        TAXDOC_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)

    Example:
        config = TaxDocConfig(
            reconciler=ReconcilerConfig(tolerance=Decimal("5")),
        )
    """

    model_config = SettingsConfigDict(
        env_prefix="TAXDOC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    env: str = Field(
        default="development",
        description="Environment name (development, staging, production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    document_intelligence: DocumentIntelligenceConfig = Field(
        default_factory=DocumentIntelligenceConfig
    )
    cascade: CascadeConfig = Field(default_factory=CascadeConfig)
    reconciler: ReconcilerConfig = Field(default_factory=ReconcilerConfig)

    @field_validator("env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment name."""
        valid_envs = {"development", "staging", "production", "test"}
        v_lower = v.lower().strip()
        if v_lower not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of: {valid_envs}")
        return v_lower

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper().strip()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of: {valid_levels}")
        return v_upper

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.env == "production"

    @property
    def is_debug(self) -> bool:
        """Check if debug logging is enabled."""
        return self.log_level == "DEBUG"
