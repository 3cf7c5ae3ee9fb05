# src/config/settings.py
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SystemConfig(BaseModel):
    name: str = "Trading Journal Risk Engine"
    version: str = "1.0.0"
    timezone: str = "UTC"


class RiskProfileDefaults(BaseModel):
    """Onboarding defaults for a new user's risk profile."""

    risk_per_trade_percent: float = Field(default=2.0, ge=0)
    max_daily_loss_percent: float = Field(default=5.0, ge=0)
    max_weekly_drawdown_percent: float = Field(default=10.0, ge=0)
    max_position_size_percent: float = Field(default=40.0, ge=0)
    max_correlated_exposure: float = Field(default=0.75, ge=0.0, le=1.0)
    max_concurrent_positions: int = Field(default=3, ge=0)


class PositionSizingSettings(BaseModel):
    """Settings for the position sizer."""

    far_stop_percent: float = Field(default=10.0, gt=0)
    max_capital_deployment_percent: float = Field(default=40.0, gt=0)


class DailyRiskSettings(BaseModel):
    """Loss-limit usage thresholds (percent) for the daily risk tracker."""

    warning_threshold: float = Field(default=70.0, gt=0)
    danger_threshold: float = Field(default=90.0, gt=0)
    disabled_threshold: float = Field(default=100.0, gt=0)

    @model_validator(mode="after")
    def validate_threshold_order(self) -> "DailyRiskSettings":
        """Thresholds must be strictly ascending."""
        if not (
            self.warning_threshold < self.danger_threshold < self.disabled_threshold
        ):
            raise ValueError(
                "Thresholds must satisfy warning < danger < disabled, got "
                f"{self.warning_threshold}, {self.danger_threshold}, {self.disabled_threshold}"
            )
        return self


class SignalOrchestratorSettings(BaseModel):
    """Annualized volatility breakpoints for the volatility multiplier."""

    extreme_volatility_percent: float = Field(default=120.0, gt=0)
    high_volatility_percent: float = Field(default=80.0, gt=0)

    @model_validator(mode="after")
    def validate_breakpoints(self) -> "SignalOrchestratorSettings":
        if self.high_volatility_percent >= self.extreme_volatility_percent:
            raise ValueError(
                "high_volatility_percent must be below extreme_volatility_percent"
            )
        return self


class StorageConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RISK_STORE_")

    data_dir: str = "data/risk"


class Settings(BaseModel):
    system: SystemConfig = Field(default_factory=SystemConfig)
    profile_defaults: RiskProfileDefaults = Field(default_factory=RiskProfileDefaults)
    position_sizing: PositionSizingSettings = Field(default_factory=PositionSizingSettings)
    daily_risk: DailyRiskSettings = Field(default_factory=DailyRiskSettings)
    signal_orchestrator: SignalOrchestratorSettings = Field(
        default_factory=SignalOrchestratorSettings
    )
    storage: StorageConfig = Field(default_factory=StorageConfig)

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from YAML file with env var overrides."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        data.pop("storage", None)
        storage = StorageConfig()

        return cls(
            **data,
            storage=storage,
        )
