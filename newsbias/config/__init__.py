"""Configuration management for newsbias."""

from .loader import Config, load_config, parse_duration, save_config
from .models import (
    ConfigModel,
    InferenceConfig,
    InferenceSettings,
    IngestionSettings,
    NewsSourceConfig,
    ObjectStoreConfig,
    PipelineConfig,
    PostgresConfig,
)

__all__ = [
    "Config",
    "ConfigModel",
    "InferenceConfig",
    "InferenceSettings",
    "IngestionSettings",
    "NewsSourceConfig",
    "ObjectStoreConfig",
    "PipelineConfig",
    "PostgresConfig",
    "load_config",
    "parse_duration",
    "save_config",
]
