"""
Configuration management for FormCraft.

Settings come from two places:
1. config.json next to the project root (or the executable when frozen)
2. Environment variables, which win over the file

Environment variables:
  FORMCRAFT_HOST, FORMCRAFT_PORT, FORMCRAFT_LOG_LEVEL,
  FORMCRAFT_PALETTE, FORMCRAFT_STRICT_CHECKS, FORMCRAFT_EXPORT_INDENT
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from formcraft.paths import get_config_path, get_default_palette_path

logger = logging.getLogger(__name__)

TRUTHY = ('1', 'true', 'yes', 'on')


@dataclass
class Settings:
    host: str = '127.0.0.1'
    port: int = 8080
    log_level: str = 'INFO'
    export_indent: int = 2
    palette_path: Optional[Path] = None
    strict_checks: bool = False


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration from config.json. Missing or broken files give {}."""
    config_path = config_path or get_config_path()
    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
                return data if isinstance(data, dict) else {}
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Could not read {config_path}: {e}")
            return {}
    return {}


def save_config(config: dict, config_path: Optional[Path] = None) -> None:
    """Save configuration to config.json."""
    config_path = config_path or get_config_path()
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config, f, indent=2)


def _as_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(f"Expected an integer, got {value!r}; using {default}")
        return default


def _as_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUTHY


def get_settings(config_path: Optional[Path] = None) -> Settings:
    """
    Merge defaults, config.json and environment into a Settings object.

    Priority:
    1. Environment variable
    2. config.json
    3. Built-in default
    """
    config = load_config(config_path)
    defaults = Settings()

    def pick(env_name: str, key: str, default):
        env_val = os.environ.get(env_name)
        if env_val not in (None, ''):
            return env_val
        return config.get(key, default)

    palette = pick('FORMCRAFT_PALETTE', 'palette_path', None)
    if palette:
        palette_path = Path(palette)
    else:
        candidate = get_default_palette_path()
        palette_path = candidate if candidate.exists() else None

    return Settings(
        host=str(pick('FORMCRAFT_HOST', 'host', defaults.host)),
        port=_as_int(pick('FORMCRAFT_PORT', 'port', defaults.port), defaults.port),
        log_level=str(pick('FORMCRAFT_LOG_LEVEL', 'log_level', defaults.log_level)).upper(),
        export_indent=_as_int(pick('FORMCRAFT_EXPORT_INDENT', 'export_indent', defaults.export_indent),
                              defaults.export_indent),
        palette_path=palette_path,
        strict_checks=_as_bool(pick('FORMCRAFT_STRICT_CHECKS', 'strict_checks', defaults.strict_checks)),
    )
