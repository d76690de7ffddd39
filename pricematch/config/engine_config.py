"""Engine configuration settings for the pricing match engine."""

from dataclasses import dataclass
import logging
import os

from dotenv import load_dotenv


load_dotenv()


@dataclass
class MatchingConfig:
    """Similarity thresholds used by the matcher."""
    auto_match_threshold: float = 0.85
    review_threshold: float = 0.4
    sku_match_score: float = 0.9

    def __post_init__(self):
        if not 0.0 <= self.review_threshold <= self.auto_match_threshold <= 1.0:
            raise ValueError(
                f"Thresholds must satisfy 0 <= review ({self.review_threshold}) "
                f"<= auto ({self.auto_match_threshold}) <= 1"
            )
        if not 0.0 <= self.sku_match_score <= 1.0:
            raise ValueError(f"sku_match_score must be in [0, 1], got {self.sku_match_score}")


@dataclass
class PricingConfig:
    """Pricing policy parameters."""
    min_margin_fraction: float = 0.15
    same_direction_band: float = 0.01
    wide_spread_fraction: float = 0.25

    def __post_init__(self):
        if not 0.0 <= self.min_margin_fraction < 1.0:
            raise ValueError(
                f"min_margin_fraction must be in [0, 1), got {self.min_margin_fraction}"
            )


@dataclass
class ImportConfig:
    """CSV catalog import configuration."""
    default_currency: str = "USD"


@dataclass
class ReportConfig:
    """Per-run report configuration."""
    max_samples: int = 5


@dataclass
class EngineSettings:
    """Main engine configuration settings."""
    log_level: str = "INFO"
    matching: MatchingConfig = None
    pricing: PricingConfig = None
    importing: ImportConfig = None
    report: ReportConfig = None

    def __post_init__(self):
        """Initialize nested configs if not provided."""
        if self.matching is None:
            self.matching = MatchingConfig()
        if self.pricing is None:
            self.pricing = PricingConfig()
        if self.importing is None:
            self.importing = ImportConfig()
        if self.report is None:
            self.report = ReportConfig()


# Default engine configuration
ENGINE_CONFIG = {
    "log_level": os.getenv("PRICEMATCH_LOG_LEVEL", "INFO"),
    "matching": {
        "auto_match_threshold": float(os.getenv("PRICEMATCH_AUTO_MATCH_THRESHOLD", "0.85")),
        "review_threshold": float(os.getenv("PRICEMATCH_REVIEW_THRESHOLD", "0.4")),
        "sku_match_score": float(os.getenv("PRICEMATCH_SKU_MATCH_SCORE", "0.9")),
    },
    "pricing": {
        "min_margin_fraction": float(os.getenv("PRICEMATCH_MIN_MARGIN_FRACTION", "0.15")),
        "same_direction_band": float(os.getenv("PRICEMATCH_SAME_DIRECTION_BAND", "0.01")),
        "wide_spread_fraction": float(os.getenv("PRICEMATCH_WIDE_SPREAD_FRACTION", "0.25")),
    },
    "importing": {
        "default_currency": os.getenv("PRICEMATCH_DEFAULT_CURRENCY", "USD"),
    },
    "report": {
        "max_samples": int(os.getenv("PRICEMATCH_REPORT_MAX_SAMPLES", "5")),
    },
}


def get_engine_settings() -> EngineSettings:
    """Get engine settings from configuration."""
    return EngineSettings(
        log_level=ENGINE_CONFIG["log_level"],
        matching=MatchingConfig(**ENGINE_CONFIG["matching"]),
        pricing=PricingConfig(**ENGINE_CONFIG["pricing"]),
        importing=ImportConfig(**ENGINE_CONFIG["importing"]),
        report=ReportConfig(**ENGINE_CONFIG["report"]),
    )


def configure_logging(level: str = None, settings: EngineSettings = None) -> int:
    """Configure root logging for applications embedding the engine.

    Args:
        level: Log level name; overrides settings.log_level when given
        settings: Engine settings (loaded from configuration if omitted)

    Returns:
        The numeric log level that was applied
    """
    settings = settings or get_engine_settings()
    numeric_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    return numeric_level
