"""Typed environment variable parsing helpers."""

import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional

from dotenv import dotenv_values

logger = logging.getLogger(__name__)

DEFAULT_ENV_FILES = (".env", ".env.local")


def load_env_files(
    base_dir: Optional[Path] = None, filenames: Iterable[str] = DEFAULT_ENV_FILES
) -> List[Path]:
    """Load dotenv files from base_dir without overriding the process environment.

    Later files win over earlier ones, so `.env.local` refines `.env`.
    """
    root = Path(base_dir) if base_dir is not None else Path.cwd()
    protected = set(os.environ)
    loaded: List[Path] = []
    for name in filenames:
        path = root / name
        if not path.is_file():
            continue
        for key, value in dotenv_values(path).items():
            if key in protected or value is None:
                continue
            os.environ[key] = value
        loaded.append(path)
        logger.debug("Loaded environment file %s", path)
    return loaded


def get_env_str(name: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
    """Get an environment variable as a string."""
    value = os.getenv(name)
    if value is None:
        if required:
            raise KeyError(f"Environment variable '{name}' is required but not set.")
        return default
    return value


def get_env_int(name: str, default: Optional[int] = None, required: bool = False) -> Optional[int]:
    """Get an environment variable as an integer."""
    value = os.getenv(name)
    if value is None or not value.strip():
        if required:
            raise KeyError(f"Environment variable '{name}' is required but not set.")
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable '{name}' must be an integer, got '{value}'.")


def get_env_float(
    name: str, default: Optional[float] = None, required: bool = False
) -> Optional[float]:
    """Get an environment variable as a float."""
    value = os.getenv(name)
    if value is None or not value.strip():
        if required:
            raise KeyError(f"Environment variable '{name}' is required but not set.")
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Environment variable '{name}' must be a float, got '{value}'.")


def get_env_bool(
    name: str, default: Optional[bool] = None, required: bool = False
) -> Optional[bool]:
    """Get an environment variable as a boolean.

    Truthy: true, 1, yes, on
    Falsey: false, 0, no, off, (empty string)
    """
    value = os.getenv(name)
    if value is None:
        if required:
            raise KeyError(f"Environment variable '{name}' is required but not set.")
        return default

    val_lower = value.strip().lower()
    if val_lower in ("true", "1", "yes", "on"):
        return True
    if val_lower in ("false", "0", "no", "off", ""):
        return False

    raise ValueError(f"Environment variable '{name}' must be a boolean, got '{value}'.")


def get_env_choice(name: str, default: str, allowed: Iterable[str]) -> str:
    """Get a lowercase environment variable restricted to a set of choices."""
    raw_value = os.getenv(name)
    if raw_value is None or not raw_value.strip():
        return default
    normalized = raw_value.strip().lower()
    allowed_set = set(allowed)
    if normalized not in allowed_set:
        allowed_list = ", ".join(sorted(allowed_set))
        raise ValueError(
            f"Invalid value for {name}: '{raw_value}'. Allowed values: {allowed_list}"
        )
    return normalized
