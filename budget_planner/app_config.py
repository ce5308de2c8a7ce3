"""Process-wide application settings (API key and model name).

Stored as ``<storage_root>/config.json`` with the same load-or-default and
atomic save behaviour as budget files.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional, Union

from .codec import dumps, loads
from .config import APP_CONFIG_FILENAME, DEFAULT_MODEL, resolve_storage_root
from .errors import DecodeError, StorageIOError
from .file_operations import atomic_write_text, ensure_directory

logger = logging.getLogger(__name__)


@dataclass
class AppConfig:
    openai_api_key: str = ''
    openai_model: str = DEFAULT_MODEL


def config_path(storage_root: Optional[Union[str, Path]] = None) -> Path:
    return resolve_storage_root(storage_root) / APP_CONFIG_FILENAME


def load_app_config(storage_root: Optional[Union[str, Path]] = None) -> AppConfig:
    """Load settings, falling back to defaults when no file exists yet.

    Raises:
        DecodeError: If the file exists but is not a settings object
        StorageIOError: If the file cannot be read
    """
    target = config_path(storage_root)
    try:
        text = target.read_text(encoding='utf-8')
    except FileNotFoundError:
        return AppConfig()
    except OSError as e:
        raise StorageIOError("read config", target, e) from e

    data = loads(text)
    if not isinstance(data, dict):
        raise DecodeError("Config must be a JSON object", target)
    config = AppConfig()
    for key in ('openai_api_key', 'openai_model'):
        if key not in data:
            continue
        if not isinstance(data[key], str):
            raise DecodeError(f"Config field '{key}' must be a string", target)
        setattr(config, key, data[key])
    return config


def save_app_config(config: AppConfig, storage_root: Optional[Union[str, Path]] = None) -> Path:
    target = config_path(storage_root)
    ensure_directory(target.parent)
    atomic_write_text(target, dumps(asdict(config)))
    logger.info("Saved app config to %s", target)
    return target
