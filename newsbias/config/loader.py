"""Configuration loader."""

import os
import re
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import pendulum
import yaml
from pydantic import ValidationError

from ..errors import ConfigError
from .models import (
    DEFAULT_INFERENCE_URL,
    DEFAULT_PRESIGN_TTL,
    ConfigModel,
    InferenceSettings,
    IngestionSettings,
)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "newsbias" / "config.yaml"

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: str) -> Optional[timedelta]:
    """
    Parse a duration such as ``24h``, ``1h30m`` or ``PT2H``.

    Returns:
        The duration, or None if the value is not a recognizable duration
    """
    text = value.strip()
    if not text:
        return None

    if text[0] in "Pp":
        try:
            parsed = pendulum.parse(text.upper())
        except (ValueError, TypeError):
            return None
        if isinstance(parsed, timedelta):
            return parsed
        return None

    position = 0
    seconds = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            return None
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position == 0 or position != len(text):
        return None
    return timedelta(seconds=seconds)


def _first_env(names: Iterable[Optional[str]]) -> str:
    """Return the first non-blank value among the named environment variables."""
    for name in names:
        if not name:
            continue
        value = os.environ.get(name, "").strip()
        if value:
            return value
    return ""


def _resolve(explicit: Optional[str], *env_names: Optional[str]) -> str:
    """Environment takes precedence over a value written in the config file."""
    value = _first_env(env_names)
    if value:
        return value
    return (explicit or "").strip()


class Config:
    """Configuration manager."""

    def __init__(self, config_path: Optional[Path] = None, config: Optional[ConfigModel] = None) -> None:
        """Initialize config manager."""
        if config_path is None:
            config_path = Path(os.environ.get("NEWSBIAS_CONFIG", DEFAULT_CONFIG_PATH))
        self.config_path = config_path
        self._config: Optional[ConfigModel] = config

    @property
    def config(self) -> ConfigModel:
        """Get loaded config, falling back to defaults when no file exists."""
        if self._config is None:
            if self.config_path.exists():
                self._config = load_config(self.config_path)
            else:
                self._config = ConfigModel()
        return self._config

    def get_db_config(self) -> Dict[str, Any]:
        """Get database configuration dict."""
        db_config = self.config.postgres.model_dump()

        if db_config.get("url_env"):
            url = os.environ.get(db_config["url_env"], "").strip()
            if url:
                db_config["url"] = url

        # Handle password from environment if specified
        if db_config.get("password_env"):
            password = os.environ.get(db_config["password_env"])
            if password:
                db_config["password"] = password

        return db_config

    def get_presign_ttl(self) -> timedelta:
        """Retrieval URL lifetime; 24 hours when unset or invalid."""
        store = self.config.object_store
        raw = _resolve(store.presign_ttl, store.presign_ttl_env)
        if not raw:
            return DEFAULT_PRESIGN_TTL

        ttl = parse_duration(raw)
        if ttl is None or ttl.total_seconds() <= 0:
            return DEFAULT_PRESIGN_TTL
        return ttl

    def get_ingestion_settings(self) -> IngestionSettings:
        """
        Resolve settings for an ingestion run.

        Raises:
            ConfigError: If the content credential, bucket or region is missing
        """
        source = self.config.news_source
        store = self.config.object_store
        pipeline = self.config.pipeline

        api_key = _resolve(source.api_key, source.api_key_env)
        if not api_key:
            setting = source.api_key_env or "news_source.api_key"
            raise ConfigError(f"{setting} must be set", setting=setting)

        bucket = _resolve(store.bucket, store.bucket_env)
        region = _resolve(store.region, store.region_env)
        if not bucket or not region:
            missing = store.bucket_env if not bucket else store.region_env
            raise ConfigError(
                f"{store.bucket_env} and {store.region_env} must be set",
                setting=missing or ("object_store.bucket" if not bucket else "object_store.region"),
            )

        return IngestionSettings(
            api_key=api_key,
            base_url=source.base_url,
            page=_resolve(source.page, source.page_env) or None,
            source_timeout=source.timeout,
            bucket=bucket,
            region=region,
            presign_ttl=self.get_presign_ttl(),
            max_articles=pipeline.max_articles,
            topic_timeout=pipeline.topic_timeout,
        )

    def get_inference_settings(self) -> InferenceSettings:
        """
        Resolve settings for the inference endpoint.

        Raises:
            ConfigError: If no token is configured
        """
        inference = self.config.inference

        token = _resolve(inference.token, *inference.token_env)
        if not token:
            names = " or ".join(inference.token_env) or "inference.token"
            raise ConfigError(f"{names} must be set", setting=names)

        api_url = _resolve(inference.url, *inference.url_env)
        if not api_url:
            api_url = DEFAULT_INFERENCE_URL

        return InferenceSettings(
            api_url=api_url,
            api_token=token,
            timeout=inference.timeout,
            max_attempts=inference.max_attempts,
            backoff_seconds=inference.backoff_seconds,
        )


def load_config(config_path: Path) -> ConfigModel:
    """Load configuration from YAML file."""
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path) as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            config_data = {}

        return ConfigModel(**config_data)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}")
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}")


def save_config(config: ConfigModel, config_path: Path) -> None:
    """Save configuration to YAML file."""
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        yaml.dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)
