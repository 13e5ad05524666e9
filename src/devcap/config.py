from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

from .git import get_global_user_name

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".devcap.toml"

# key -> accepted python types
CONFIG_KEYS: dict[str, tuple[type, ...]] = {
    "path": (str,),
    "author": (str,),
    "period": (str,),
    "show_origin": (bool,),
    "color": (bool,),
    "jobs": (int,),
    "timeout": (int, float),
}


def default_config_path() -> Path:
    return Path.home() / CONFIG_FILENAME


def load_config(config_path: Path) -> dict[str, Any]:
    """
    Read the TOML config file, keeping only known keys with the right types.

    A missing or unreadable file is the same as an empty one.
    """
    if not config_path.exists():
        return {}
    try:
        raw = tomllib.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        logger.warning("ignoring config file %s: %s", config_path, e)
        return {}

    config: dict[str, Any] = {}
    for key, types in CONFIG_KEYS.items():
        if key not in raw:
            continue
        value = raw[key]
        # bool is an int subclass; don't let `jobs = true` through
        if isinstance(value, bool) and bool not in types:
            logger.warning("ignoring config key %r: expected %s", key, types[0].__name__)
            continue
        if not isinstance(value, types):
            logger.warning("ignoring config key %r: expected %s", key, types[0].__name__)
            continue
        config[key] = value
    return config


def infer_author() -> str:
    return get_global_user_name()
