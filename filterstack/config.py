"""
Configuration for FilterStack.

Settings live in a small YAML file. Lookup order: explicit path, then the
``FILTERSTACK_CONFIG`` environment variable, then built-in defaults.
String values may reference environment variables as ``${VAR_NAME}``.
"""

from __future__ import annotations

import logging
import os
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from .engine import AdjustmentEngine
from .kernels import KERNELS, FilterKernel, make_kernel
from .session import Dispatch, EditSession

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "FILTERSTACK_CONFIG"
_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class FilterStackConfig:
    kernel: str = "numpy"
    async_render: bool = False
    log_level: str = "INFO"
    color_logs: bool = True
    pixellate_block: int = 8
    comic_levels: int = 4


def _expand_env_vars(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    if isinstance(obj, str):
        return _ENV_PATTERN.sub(lambda m: os.getenv(m.group(1), m.group(0)), obj)
    return obj


def _coerce(name: str, expected: type, value: Any) -> Any:
    if expected is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "yes", "1", "on", "false", "no", "0", "off"):
            return value.strip().lower() in ("true", "yes", "1", "on")
        raise ConfigError(f"{name}: expected a boolean, got {value!r}")
    if expected is int:
        if isinstance(value, bool):
            raise ConfigError(f"{name}: expected an integer, got {value!r}")
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ConfigError(f"{name}: expected an integer, got {value!r}") from None
    if not isinstance(value, str):
        raise ConfigError(f"{name}: expected a string, got {value!r}")
    return value


_FIELD_TYPES: dict[str, type] = {
    "kernel": str,
    "async_render": bool,
    "log_level": str,
    "color_logs": bool,
    "pixellate_block": int,
    "comic_levels": int,
}


def config_from_mapping(data: dict[str, Any] | None) -> FilterStackConfig:
    config = FilterStackConfig()
    if not data:
        return config
    if not isinstance(data, dict):
        raise ConfigError(f"Config root must be a mapping, got {type(data).__name__}")

    known = {f.name for f in fields(FilterStackConfig)}
    updates: dict[str, Any] = {}
    for key, value in _expand_env_vars(data).items():
        if key not in known:
            logger.warning("Ignoring unknown config key: %s", key)
            continue
        updates[key] = _coerce(key, _FIELD_TYPES[key], value)

    config = replace(config, **updates)
    if config.kernel not in KERNELS:
        raise ConfigError(f"kernel: expected one of {sorted(KERNELS)}, got {config.kernel!r}")
    if config.pixellate_block < 1:
        raise ConfigError("pixellate_block must be >= 1")
    if config.comic_levels < 2:
        raise ConfigError("comic_levels must be >= 2")
    return config


def load_config(config_path: Path | str | None = None) -> FilterStackConfig:
    """Load configuration, falling back to defaults when no file is configured."""

    if config_path is None:
        env_path = os.getenv(CONFIG_ENV_VAR)
        if not env_path:
            return FilterStackConfig()
        config_path = env_path

    path = Path(config_path)
    if not path.exists():
        logger.warning("Config file not found: %s. Using defaults.", path)
        return FilterStackConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    config = config_from_mapping(data)
    logger.info("Loaded configuration from %s", path)
    return config


def build_kernel(config: FilterStackConfig) -> FilterKernel:
    return make_kernel(
        config.kernel,
        pixellate_block=config.pixellate_block,
        comic_levels=config.comic_levels,
    )


def build_session(config: FilterStackConfig | None = None, dispatch: Dispatch | None = None) -> EditSession:
    """Assemble an EditSession from ``config``.

    With ``async_render`` the session owns a single-worker render thread.
    Without ``dispatch``, render completions and session listeners run on that
    thread, so GUI callers must pass a dispatcher such as
    :class:`filterstack.qt.QtDispatcher`.
    """
    config = config or FilterStackConfig()
    engine = AdjustmentEngine(build_kernel(config))
    if not config.async_render:
        return EditSession(engine=engine)
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="filterstack-render")
    return EditSession(engine=engine, executor=executor, dispatch=dispatch, owns_executor=True)
