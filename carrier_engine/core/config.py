"""
Configuration management for the carrier performance engine.

Handles loading and accessing:
- Business configuration (config.yaml): scoring weights, tier thresholds,
  compliance window and match point budgets
- Environment variables
"""

from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class ScoringWeights(BaseModel):
    """Weights of the seven scorecard sub-metrics. Must sum to 1.0."""

    on_time_pickup: Decimal = Decimal("0.20")
    on_time_delivery: Decimal = Decimal("0.20")
    communication: Decimal = Decimal("0.10")
    claim_ratio: Decimal = Decimal("0.15")
    doc_timeliness: Decimal = Decimal("0.10")
    acceptance_rate: Decimal = Decimal("0.10")
    gps_compliance: Decimal = Decimal("0.15")

    @field_validator("*", mode="before")
    @classmethod
    def float_to_decimal(cls, value: Any) -> Any:
        # YAML yields floats; go through str so 0.2 stays exactly 0.2
        if isinstance(value, float):
            return Decimal(str(value))
        return value

    @model_validator(mode="after")
    def check_sum(self) -> "ScoringWeights":
        total = sum(self.model_dump().values(), Decimal("0"))
        if total != Decimal("1"):
            raise ValueError(f"scoring weights must sum to 1.0, got {total}")
        return self


class ScoringConfig(BaseModel):
    """Scorecard calculation settings."""

    weights: ScoringWeights = Field(default_factory=ScoringWeights)
    bonus_amounts: dict[str, Decimal] = Field(
        default_factory=lambda: {"PLATINUM": Decimal("150"), "GOLD": Decimal("75")}
    )


class TierConfig(BaseModel):
    """Tier thresholds and promotion/demotion policy."""

    # Minimum overall score per tier; BRONZE is the floor for scored carriers
    thresholds: dict[str, float] = Field(
        default_factory=lambda: {"PLATINUM": 98.0, "GOLD": 95.0, "SILVER": 90.0}
    )
    min_safety_score: dict[str, float] = Field(default_factory=dict)
    demotion_window: int = Field(2, ge=1)
    guest_min_scorecards: int = Field(3, ge=1)
    guest_min_average: float = 70.0


class ComplianceConfig(BaseModel):
    """Compliance gate settings."""

    expiry_warning_days: int = Field(30, ge=0)


class MatchPoints(BaseModel):
    """Point budget of each match factor."""

    equipment: int = 30
    region: int = 15
    performance: int = 25
    compliance: int = 10
    source_bonus: int = 5
    availability: int = 5
    tier: dict[str, int] = Field(
        default_factory=lambda: {"PLATINUM": 10, "GOLD": 7, "SILVER": 4, "BRONZE": 2, "GUEST": 0}
    )


class MatchingConfig(BaseModel):
    """Carrier matcher settings."""

    points: MatchPoints = Field(default_factory=MatchPoints)
    max_results: int = Field(10, ge=1)
    suggest_dat_below: int = Field(3, ge=0)
    parallel_workers: int = Field(0, ge=0)


class EngineConfig(BaseModel):
    """All business rules consumed by the scoring kernel."""

    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    tiers: TierConfig = Field(default_factory=TierConfig)
    compliance: ComplianceConfig = Field(default_factory=ComplianceConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)


class EnvironmentSettings(BaseSettings):
    """Environment variables configuration."""

    config_dir: Optional[Path] = Field(None, alias="CARRIER_ENGINE_CONFIG_DIR")

    # Logging
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(True, alias="LOG_JSON")

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


class ConfigManager:
    """
    Central configuration manager for the carrier engine.

    Loads and provides access to:
    - Business configuration from config/config.yaml
    - Environment variables from .env
    """

    def __init__(self, config_dir: Optional[Path] = None) -> None:
        """
        Initialize the configuration manager.

        Args:
            config_dir: Optional path to config directory. Defaults to
                CARRIER_ENGINE_CONFIG_DIR, then project root/config.
        """
        self._env_settings: Optional[EnvironmentSettings] = None

        if config_dir is None:
            config_dir = self.env.config_dir
        if config_dir is None:
            # Default to config/ directory in project root
            project_root = Path(__file__).parent.parent.parent
            config_dir = project_root / "config"

        self.config_dir = Path(config_dir)
        self._business_config: Optional[dict[str, Any]] = None
        self._engine_config: Optional[EngineConfig] = None

    @property
    def business_config(self) -> dict[str, Any]:
        """Load and return business configuration from config.yaml."""
        if self._business_config is None:
            config_path = self.config_dir / "config.yaml"
            if config_path.exists():
                with open(config_path, "r") as f:
                    self._business_config = yaml.safe_load(f) or {}
            else:
                self._business_config = {}
        return self._business_config

    @property
    def env(self) -> EnvironmentSettings:
        """Load and return environment settings."""
        if self._env_settings is None:
            self._env_settings = EnvironmentSettings()
        return self._env_settings

    @property
    def engine(self) -> EngineConfig:
        """
        Validated business rules.

        Raises:
            pydantic.ValidationError: If config.yaml holds invalid values
        """
        if self._engine_config is None:
            self._engine_config = EngineConfig(**self.business_config)
        return self._engine_config

    def get_scoring_config(self) -> ScoringConfig:
        """Get scorecard weights and bonus amounts."""
        return self.engine.scoring

    def get_tier_config(self) -> TierConfig:
        """Get tier thresholds and promotion policy."""
        return self.engine.tiers

    def get_compliance_config(self) -> ComplianceConfig:
        """Get compliance gate settings."""
        return self.engine.compliance

    def get_matching_config(self) -> MatchingConfig:
        """Get carrier matcher settings."""
        return self.engine.matching


# Global config instance
_config_manager: Optional[ConfigManager] = None


def get_config() -> ConfigManager:
    """
    Get the global configuration manager instance.

    Returns:
        ConfigManager singleton instance
    """
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def reset_config() -> None:
    """Drop the global instance so the next get_config() reloads from disk."""
    global _config_manager
    _config_manager = None
