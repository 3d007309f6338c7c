"""Project configuration and paths.

Loads settings from config/settings.yaml and environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

# === Paths ===
PROJECT_ROOT = Path(__file__).parent.parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"
DATA_DIR = PROJECT_ROOT / "data"
DATA_EXPORTS_DIR = DATA_DIR / "exports"

# Load .env from project root
load_dotenv(PROJECT_ROOT / ".env")


class ClassifierSettings(BaseModel):
    """Settings for old/new price list classification."""
    anomaly_threshold_pct: float = Field(default=50.0, gt=0)
    # Units for potential impact when a record carries no inventory level
    # (12 monthly reorders per year)
    default_impact_units: int = Field(default=12, ge=0)


class AnalyzerSettings(BaseModel):
    """Settings for cross-supplier statistics."""
    min_correlation_overlap: int = Field(default=2, ge=2)
    psychological_endings: list[int] = Field(default_factory=lambda: [99, 98, 95])
    # Category keyword -> peak months (1-12)
    seasonal_calendar: dict[str, list[int]] = Field(default_factory=lambda: {
        "fragrance": [11, 12],
        "gift": [11, 12],
        "suncare": [5, 6, 7, 8],
        "sunscreen": [5, 6, 7, 8],
        "skincare": [10, 11, 12, 1],
        "haircare": [6, 7, 8],
        "makeup": [11, 12],
        "garden": [4, 5, 6],
        "heating": [11, 12, 1, 2],
    })


class EnrichmentSettings(BaseModel):
    """Settings for batched market data enrichment."""
    batch_size: int = Field(default=50, ge=1)
    max_concurrent_batches: int = Field(default=5, ge=1)
    item_concurrency: int = Field(default=10, ge=1)
    inter_round_delay_seconds: float = Field(default=0.25, ge=0)
    fingerprint_cache_enabled: bool = True
    cache_max_entries: int = Field(default=100, ge=1)
    cache_ttl_seconds: float = Field(default=300.0, gt=0)


class MarketDataSettings(BaseModel):
    """Market data API settings."""
    base_url: str = ""
    request_timeout: int = 15
    rate_limit_rpm: int = 120
    max_attempts: int = Field(default=1, ge=1)
    position_band: float = Field(default=0.05, ge=0, lt=1)


class Settings(BaseModel):
    """Top-level application settings."""
    classifier: ClassifierSettings = Field(default_factory=ClassifierSettings)
    analyzer: AnalyzerSettings = Field(default_factory=AnalyzerSettings)
    enrichment: EnrichmentSettings = Field(default_factory=EnrichmentSettings)
    market_data: MarketDataSettings = Field(default_factory=MarketDataSettings)

    @classmethod
    def load(cls, path: Path | None = None) -> Settings:
        """Load settings from config/settings.yaml, falling back to defaults.

        Environment variables override values from the YAML file.
        """
        settings_path = path or CONFIG_DIR / "settings.yaml"
        data: dict = {}
        if settings_path.exists():
            with open(settings_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        loaded = cls(**data)
        loaded._apply_env_overrides()
        return loaded

    def _apply_env_overrides(self) -> None:
        if threshold := os.getenv("PRICE_INTEL_ANOMALY_THRESHOLD"):
            self.classifier.anomaly_threshold_pct = float(threshold)
        if batch_size := os.getenv("PRICE_INTEL_BATCH_SIZE"):
            self.enrichment.batch_size = int(batch_size)
        if in_flight := os.getenv("PRICE_INTEL_MAX_CONCURRENT_BATCHES"):
            self.enrichment.max_concurrent_batches = int(in_flight)
        if url := os.getenv("MARKET_DATA_BASE_URL"):
            self.market_data.base_url = url
        if timeout := os.getenv("MARKET_DATA_REQUEST_TIMEOUT"):
            self.market_data.request_timeout = int(timeout)
        if rpm := os.getenv("MARKET_DATA_RATE_LIMIT_RPM"):
            self.market_data.rate_limit_rpm = int(rpm)


def get_market_data_api_key() -> str:
    """Get the market data API key from environment."""
    key = os.getenv("MARKET_DATA_API_KEY", "")
    if not key:
        raise ValueError("MARKET_DATA_API_KEY not set in environment")
    return key


# Singleton settings instance
settings = Settings.load()
