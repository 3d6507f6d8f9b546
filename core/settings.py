"""Centralized application configuration."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import os
import sys


def get_default_data_dir(
    app_name: str,
    *,
    platform: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Path:
    """Return an OS-specific user data directory for ``app_name``.

    ``RENTDESK_DATA_DIR`` in the environment overrides the platform default.
    """

    platform_id = (platform or sys.platform).lower()
    environ = dict(env if env is not None else os.environ)
    override = environ.get("RENTDESK_DATA_DIR")
    if override:
        return Path(override).expanduser()

    home_dir = Path(home or Path.home())
    sanitized = app_name.strip() or "app"
    sanitized = sanitized.replace("/", "-").replace("\\", "-")

    if platform_id.startswith("win"):
        base = Path(environ.get("APPDATA") or home_dir / "AppData" / "Roaming")
    elif platform_id == "darwin":
        base = home_dir / "Library" / "Application Support"
    else:
        base = Path(environ.get("XDG_DATA_HOME") or home_dir / ".local" / "share")

    return base.expanduser() / sanitized


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


APP_NAME = "RentDesk"


DATA_DIR = get_default_data_dir(APP_NAME)
LOG_DIR = DATA_DIR / "logs"

for _dir in (DATA_DIR, LOG_DIR):
    _dir.mkdir(parents=True, exist_ok=True)


DB_PATH = DATA_DIR / "offline.db"
SYNC_LOG_PATH = LOG_DIR / "sync.log"


@dataclass(frozen=True)
class BackendSettings:
    base_url: str = os.environ.get("RENTDESK_BACKEND_URL", "")
    api_key: str = os.environ.get("RENTDESK_API_KEY", "")
    # Upper bound for a single remote call; a hung request fails the action.
    timeout_sec: float = _env_float("RENTDESK_BACKEND_TIMEOUT", 15.0)
    rest_prefix: str = "/rest/v1"


BACKEND = BackendSettings()


@dataclass(frozen=True)
class OfflineQueueSettings:
    storage_key: str = "offline_sync_queue"
    max_retries: int = 3
    stabilization_delay_sec: float = 1.0
    offline_notice_ms: int = 2000


OFFLINE_QUEUE = OfflineQueueSettings()


@dataclass(frozen=True)
class ConnectivitySettings:
    probe_interval_sec: float = 5.0
    probe_timeout_sec: float = 3.0
    reconnected_banner_sec: float = 3.0


CONNECTIVITY = ConnectivitySettings()


@dataclass(frozen=True)
class ThemeColors:
    surface_bg: str = "#F1F5F9"
    text_subtle: str = "#6B7280"
    offline_bg: str = "#FFEDD5"
    offline_border: str = "#F97316"
    online_bg: str = "#DCFCE7"
    online_border: str = "#22C55E"


@dataclass(frozen=True)
class UISettings:
    app_title: str = APP_NAME
    theme_mode: str = "system"
    color_scheme_seed: str = "#0F766E"
    window_min_width: int = 720
    window_min_height: int = 520
    indicator_min_width: int = 280
    log_tail_lines: int = 100
    theme: ThemeColors = ThemeColors()


UI = UISettings()


__all__ = [
    "APP_NAME",
    "DATA_DIR",
    "LOG_DIR",
    "DB_PATH",
    "SYNC_LOG_PATH",
    "BACKEND",
    "OFFLINE_QUEUE",
    "CONNECTIVITY",
    "UI",
    "get_default_data_dir",
]
