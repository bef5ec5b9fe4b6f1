"""Settings for the PriceLens analytics engine.

Values come from environment variables prefixed with ``PRICELENS_`` (nested
sections use ``__``, e.g. ``PRICELENS_INDICATORS__RSI_PERIOD=10``) and can be
overridden by a YAML file passed to ``load_settings``.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict
from yaml import YAMLError

from pricelens.exceptions import ConfigError
from pricelens.utils.logging import get_logger

logger = get_logger(__name__, component="Settings")


class IndicatorSettings(BaseModel):
    """Periods and factors for technical indicators."""

    rsi_period: int = Field(default=14, gt=0)
    macd_fast: int = Field(default=12, gt=0)
    macd_slow: int = Field(default=26, gt=0)
    macd_signal: int = Field(default=9, gt=0)
    bollinger_period: int = Field(default=20, gt=0)
    bollinger_std: float = Field(default=2.0, gt=0)
    stochastic_period: int = Field(default=14, gt=0)


class PatternSettings(BaseModel):
    """Parameters for level, trend and retracement detection."""

    support_resistance_lookback: int = Field(default=5, gt=0)
    support_resistance_tolerance: float = Field(default=0.02, ge=0)
    trend_period: int = Field(default=30, gt=0)
    fibonacci_period: int = Field(default=30, gt=0)


class RiskSettings(BaseModel):
    """Risk metric and backtest parameters."""

    periods_per_year: int = Field(default=365, gt=0)
    risk_free_rate: float = 0.0
    min_points: int = Field(default=30, gt=0)
    market_volatility: float = Field(default=0.16, gt=0)
    initial_investment: float = Field(default=10000.0, gt=0)


class SignalSettings(BaseModel):
    """Thresholds used when deriving trading signals."""

    rsi_overbought: float = 70.0
    rsi_oversold: float = 30.0
    level_proximity: float = Field(default=0.02, ge=0)


class ThresholdSettings(BaseModel):
    """Minimum series lengths before the engine attempts each computation."""

    basic: int = Field(default=2, gt=0)
    rsi: int = Field(default=14, gt=0)
    macd: int = Field(default=26, gt=0)
    bollinger: int = Field(default=20, gt=0)
    support_resistance: int = Field(default=10, gt=0)


class Settings(BaseSettings):
    """Top-level PriceLens settings."""

    model_config = SettingsConfigDict(
        env_prefix="PRICELENS_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    indicators: IndicatorSettings = Field(default_factory=IndicatorSettings)
    patterns: PatternSettings = Field(default_factory=PatternSettings)
    risk: RiskSettings = Field(default_factory=RiskSettings)
    signals: SignalSettings = Field(default_factory=SignalSettings)
    thresholds: ThresholdSettings = Field(default_factory=ThresholdSettings)
    log_level: str = "INFO"
    log_json: bool = False


def load_settings(path: str | Path | None = None) -> Settings:
    """
    Load settings from the environment, optionally overridden by a YAML file.

    Values from the YAML file take precedence over environment variables.

    Args:
        path: Optional path to a YAML settings file

    Returns:
        Validated Settings instance

    Raises:
        ConfigError: If the file is missing, malformed or fails validation
    """
    overrides: dict[str, Any] = {}

    if path is not None:
        file_path = Path(path)
        if not file_path.exists():
            logger.error("settings_file_not_found", path=str(file_path))
            raise ConfigError("Settings file not found", file_path=str(file_path))

        try:
            with open(file_path) as f:
                data = yaml.safe_load(f)
        except YAMLError as e:
            logger.error("yaml_parse_error", path=str(file_path), error=str(e))
            raise ConfigError(f"Invalid YAML: {e}", file_path=str(file_path)) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(
                "Settings file must contain a mapping",
                file_path=str(file_path),
                details={"type": type(data).__name__},
            )
        overrides = data

    try:
        settings = Settings(**overrides)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid settings: {e.error_count()} validation error(s)",
            file_path=str(path) if path is not None else None,
            details={"errors": e.errors()},
        ) from e

    logger.debug("settings_loaded", path=str(path) if path else None)
    return settings
