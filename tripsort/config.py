"""
TripSort Configuration Management

Handles loading configuration from files, folder blocklists,
day-number bounds and transaction storage settings.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional


# ═══════════════════════════════════════════════════════════════════════════
# DEFAULTS
# ═══════════════════════════════════════════════════════════════════════════

# Folder names that are never treated as day buckets (compared case-insensitively)
DEFAULT_SKIP_FOLDERS: List[str] = [
    "unsorted",
    "inbox",
    "miscellaneous",
    "metadata",
    "_meta",
]

PHOTO_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.heic', '.webp', '.tif', '.tiff'}


# ═══════════════════════════════════════════════════════════════════════════
# SETTINGS
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class Settings:
    """Runtime settings for TripSort"""

    # Detection
    skip_folders: List[str] = field(default_factory=lambda: list(DEFAULT_SKIP_FOLDERS))
    skip_hidden: bool = True
    min_day: int = 1
    max_day: int = 31
    unsorted_name: str = "Unsorted"

    # Transactions
    store_path: str = "tripsort-transactions.json"
    key_prefix: str = "narrative_transaction_"
    apply_delay: float = 0.1

    # Logging
    verbose: bool = False


# ═══════════════════════════════════════════════════════════════════════════
# CONFIG CLASS
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class Config:
    """TripSort configuration container"""

    settings: Settings = field(default_factory=Settings)
    photo_extensions: set = field(default_factory=lambda: PHOTO_EXTENSIONS.copy())


# ═══════════════════════════════════════════════════════════════════════════
# CONFIG LOADING
# ═══════════════════════════════════════════════════════════════════════════

def get_user_config_dir() -> Path:
    """Get the user config directory (~/.tripsort/)"""
    return Path.home() / ".tripsort"


def get_user_config_path() -> Path:
    """Get the user config file path (~/.tripsort/config.json)"""
    return get_user_config_dir() / "config.json"


def find_config_file(start_path: Optional[str] = None) -> Optional[Path]:
    """
    Find tripsort config file.
    Search order:
      1. ~/.tripsort/config.json (user config - highest priority)
      2. current dir → parent dirs
      3. home dir
    """
    config_names = ["tripsort.json", ".tripsortrc", ".tripsort.json"]

    user_config = get_user_config_path()
    if user_config.is_file():
        return user_config

    search_dir = Path(start_path) if start_path else Path.cwd()

    for _ in range(10):  # Limit depth
        for name in config_names:
            config_path = search_dir / name
            if config_path.is_file():
                return config_path

        parent = search_dir.parent
        if parent == search_dir:  # Reached root
            break
        search_dir = parent

    home = Path.home()
    for name in config_names:
        config_path = home / name
        if config_path.is_file():
            return config_path

    return None


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Load configuration from file or use defaults.

    Args:
        config_path: Explicit path to config file, or None to auto-detect

    Returns:
        Config object with loaded settings
    """
    config = Config()

    if config_path:
        path = Path(config_path)
        if not path.is_file():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        path = find_config_file()

    if not path:
        return config

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file: {e}")

    if "settings" in data:
        for key, value in data["settings"].items():
            if hasattr(config.settings, key):
                setattr(config.settings, key, value)

    if "photo_extensions" in data:
        config.photo_extensions = {
            ext.lower() if ext.startswith('.') else f".{ext.lower()}"
            for ext in data["photo_extensions"]
        }

    return config


def save_config_template(path: str) -> None:
    """Save a template configuration file"""
    template: Dict[str, Any] = {
        "settings": {
            "skip_folders": list(DEFAULT_SKIP_FOLDERS),
            "min_day": 1,
            "max_day": 31,
            "store_path": "tripsort-transactions.json",
            "apply_delay": 0.1,
            "verbose": False
        },
        "photo_extensions": sorted(PHOTO_EXTENSIONS)
    }

    with open(path, 'w', encoding='utf-8') as f:
        json.dump(template, f, indent=2)
