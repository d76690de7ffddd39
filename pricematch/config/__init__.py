"""Configuration module for the pricing match engine."""

from .engine_config import (
    ENGINE_CONFIG,
    EngineSettings,
    MatchingConfig,
    PricingConfig,
    ImportConfig,
    ReportConfig,
    configure_logging,
    get_engine_settings,
)

__all__ = [
    'ENGINE_CONFIG',
    'EngineSettings',
    'MatchingConfig',
    'PricingConfig',
    'ImportConfig',
    'ReportConfig',
    'configure_logging',
    'get_engine_settings',
]
