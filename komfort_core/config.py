# =============================================================================
# komfort_core/config.py
# Runtime Settings for the Komfort catalog data layer
# =============================================================================
"""
Settings are resolved from, in order of precedence:

1. Environment variables (SUPABASE_URL, SUPABASE_KEY, KOMFORT_*)
2. `.streamlit/secrets.toml`:

    [supabase]
    url = "https://your-project.supabase.co"
    key = "your-anon-key"

    [komfort]
    storage_mode = "remote"
    mirror_path = "local_data/komfort_mirror.db"
    mirror_capacity = 5242880
    log_level = "INFO"

3. Built-in defaults
"""

from __future__ import annotations
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import toml

from komfort_core.errors import ConfigurationError
from komfort_core.logging import get_logger

logger = get_logger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent
DEFAULT_SECRETS_PATH = PROJECT_ROOT / ".streamlit" / "secrets.toml"

STORAGE_MODES = ("local", "remote")

# Roughly what browsers grant a single origin for key-value storage
DEFAULT_MIRROR_CAPACITY = 5 * 1024 * 1024


@dataclass
class Settings:
    """Resolved configuration for stores, gateways and the local mirror."""
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    storage_mode: str = "remote"
    namespace: str = "komfort_"
    mirror_path: Path = field(default_factory=lambda: PROJECT_ROOT / "local_data" / "komfort_mirror.db")
    mirror_capacity: int = DEFAULT_MIRROR_CAPACITY
    log_level: str = "INFO"
    contact_cooldown_seconds: float = 30.0

    @property
    def has_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    def validate(self) -> Settings:
        if self.storage_mode not in STORAGE_MODES:
            raise ConfigurationError(
                f"Unknown storage mode '{self.storage_mode}'",
                config_key="storage_mode",
                expected_type=" | ".join(STORAGE_MODES),
            )
        if self.mirror_capacity <= 0:
            raise ConfigurationError(
                "Mirror capacity must be positive",
                config_key="mirror_capacity",
                expected_type="int > 0",
            )
        return self


def _read_secrets(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        return toml.load(path)
    except toml.TomlDecodeError as e:
        raise ConfigurationError(
            f"Could not parse {path.name}: {e}",
            config_key=str(path),
        ) from e


def _as_int(name: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"{name} must be an integer, got {value!r}",
            config_key=name,
            expected_type="int",
        ) from e


def load_settings(secrets_path: Optional[Path] = None, environ: Optional[Dict[str, str]] = None) -> Settings:
    """
    Build Settings from environment variables and the secrets file.

    Args:
        secrets_path: Override for `.streamlit/secrets.toml`
        environ: Override for os.environ (tests)

    Raises:
        ConfigurationError: When a value is present but invalid
    """
    env = os.environ if environ is None else environ
    secrets = _read_secrets(secrets_path or DEFAULT_SECRETS_PATH)
    supabase_section = secrets.get("supabase", {})
    komfort_section = secrets.get("komfort", {})

    settings = Settings(
        supabase_url=env.get("SUPABASE_URL") or supabase_section.get("url"),
        supabase_key=env.get("SUPABASE_KEY") or supabase_section.get("key"),
    )

    mode = env.get("KOMFORT_STORAGE_MODE") or komfort_section.get("storage_mode")
    if mode:
        mode = str(mode).strip().lower()
        # Older deployments configured "supabase"
        settings.storage_mode = "remote" if mode == "supabase" else mode

    mirror_path = env.get("KOMFORT_MIRROR_PATH") or komfort_section.get("mirror_path")
    if mirror_path:
        path = Path(mirror_path)
        settings.mirror_path = path if path.is_absolute() else PROJECT_ROOT / path

    capacity = env.get("KOMFORT_MIRROR_CAPACITY") or komfort_section.get("mirror_capacity")
    if capacity is not None:
        settings.mirror_capacity = _as_int("mirror_capacity", capacity)

    log_level = env.get("KOMFORT_LOG_LEVEL") or komfort_section.get("log_level")
    if log_level:
        settings.log_level = str(log_level).upper()

    cooldown = komfort_section.get("contact_cooldown_seconds")
    if cooldown is not None:
        settings.contact_cooldown_seconds = float(cooldown)

    settings.validate()
    logger.debug(
        f"Settings loaded: mode={settings.storage_mode}, "
        f"supabase={'configured' if settings.has_supabase else 'missing'}, "
        f"mirror={settings.mirror_path}"
    )
    return settings
