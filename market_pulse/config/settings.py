"""
MARKET PULSE — Central Configuration
All settings are loaded from environment variables with sensible defaults.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional


class SimulationSettings(BaseSettings):
    """Synthetic market-data simulation and refresh cadence."""
    default_symbol: str = "AAPL"
    default_timeframe: str = "5m"
    refresh_latency_seconds: float = Field(default=1.0, ge=0)
    analysis_latency_seconds: float = Field(default=2.0, ge=0)
    refresh_divisor: int = Field(default=10, gt=0)  # refreshes per timeframe interval
    min_refresh_interval_seconds: float = Field(default=5.0, gt=0)
    seed: Optional[int] = None

    model_config = SettingsConfigDict(env_prefix="SIM_", env_file=".env", extra="ignore")


class SignalSettings(BaseSettings):
    """Signal ensemble weights and thresholds."""
    rsi_weight: float = 0.20
    macd_weight: float = 0.25
    order_flow_weight: float = 0.30
    volume_weight: float = 0.15
    market_profile_weight: float = 0.10

    action_threshold: float = 0.2
    confidence_cap: float = 95.0
    low_confidence_pct: float = 60.0

    high_risk_volatility: float = 0.02
    medium_risk_volatility: float = 0.01

    target_pct: float = 0.02
    stop_loss_pct: float = 0.01

    model_config = SettingsConfigDict(env_prefix="SIGNAL_", env_file=".env", extra="ignore")

    @property
    def weights(self) -> dict:
        return {
            "rsi": self.rsi_weight,
            "macd": self.macd_weight,
            "order_flow": self.order_flow_weight,
            "volume": self.volume_weight,
            "market_profile": self.market_profile_weight,
        }


class AppSettings(BaseSettings):
    """Top-level application settings."""
    app_name: str = "MARKET PULSE"
    version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    simulation: SimulationSettings = SimulationSettings()
    signals: SignalSettings = SignalSettings()

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Singleton
_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    global _settings
    if _settings is None:
        _settings = AppSettings()
    return _settings
