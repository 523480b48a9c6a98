"""Configuration loaded from YAML with environment variable overrides."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import structlog
import yaml

from .cache import DEFAULT_CLEANUP_INTERVAL, DEFAULT_TTL_MS

logger = structlog.get_logger()

DEFAULT_CONFIG_PATH = Path.home() / ".tradelytics" / "config.yaml"
ENV_PREFIX = "TRADELYTICS_"


def load_config(config_path: Path = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """Load configuration from YAML file"""
    if not config_path.exists():
        return {}

    with open(config_path, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        logger.warning("Ignoring malformed config file", path=str(config_path))
        return {}
    return data


def get_config_value(
    config: Mapping[str, Any],
    key: str,
    default: Any = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Any:
    """Get a dotted configuration value, environment variable first.

    ``cache.default_ttl_ms`` is overridden by ``TRADELYTICS_CACHE_DEFAULT_TTL_MS``.
    """
    environ = os.environ if environ is None else environ
    env_key = f"{ENV_PREFIX}{key.upper().replace('.', '_')}"
    if env_key in environ:
        return environ[env_key]

    val: Any = config
    for k in key.split("."):
        if isinstance(val, dict) and k in val:
            val = val[k]
        else:
            return default
    return val


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


@dataclass
class CacheConfig:
    default_ttl_ms: float = DEFAULT_TTL_MS
    cleanup_interval_seconds: float = DEFAULT_CLEANUP_INTERVAL
    enabled: bool = True


@dataclass
class AnalyticsConfig:
    """Settings for an analytics context."""
    account_id: str = "default"
    starting_balance: float = 0.0
    cache: CacheConfig = field(default_factory=CacheConfig)
    mirror_path: Optional[Path] = None

    @classmethod
    def load(cls, path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> "AnalyticsConfig":
        """Load config from file. Missing files and keys fall back to defaults."""
        data = load_config(path or DEFAULT_CONFIG_PATH)

        def value(key: str, default: Any) -> Any:
            return get_config_value(data, key, default, environ)

        try:
            mirror = value("mirror.path", None)
            return cls(
                account_id=str(value("account_id", "default")),
                starting_balance=float(value("starting_balance", 0.0)),
                cache=CacheConfig(
                    default_ttl_ms=float(value("cache.default_ttl_ms", DEFAULT_TTL_MS)),
                    cleanup_interval_seconds=float(
                        value("cache.cleanup_interval_seconds", DEFAULT_CLEANUP_INTERVAL)
                    ),
                    enabled=_as_bool(value("cache.enabled", True)),
                ),
                mirror_path=Path(mirror).expanduser() if mirror else None,
            )
        except (TypeError, ValueError) as e:
            logger.warning("Invalid config value, using defaults", error=str(e))
            return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account_id": self.account_id,
            "starting_balance": self.starting_balance,
            "cache": {
                "default_ttl_ms": self.cache.default_ttl_ms,
                "cleanup_interval_seconds": self.cache.cleanup_interval_seconds,
                "enabled": self.cache.enabled,
            },
            "mirror": {"path": str(self.mirror_path) if self.mirror_path else None},
        }

    def save(self, path: Optional[Path] = None) -> None:
        path = path or DEFAULT_CONFIG_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False)
