"""
TripSort Utility Functions

Logging setup, keyed stores for the transaction log, id generation
and the folder scanner used by the command line.
"""

import json
import logging
import os
import string
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from tqdm import tqdm

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# LOGGING
# ═══════════════════════════════════════════════════════════════════════════

def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    verbose: bool = False
) -> None:
    """
    Configure logging for TripSort.

    Args:
        level: Logging level
        log_file: Optional file to write logs to
        verbose: If True, use DEBUG level
    """
    if verbose:
        level = logging.DEBUG

    handlers: List[logging.Handler] = [
        logging.StreamHandler()
    ]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


# ═══════════════════════════════════════════════════════════════════════════
# KEYED STORES
# ═══════════════════════════════════════════════════════════════════════════

class MemoryStore:
    """In-process key/value store holding JSON strings"""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self, prefix: str = "") -> List[str]:
        return [k for k in self._data if k.startswith(prefix)]


class JsonFileStore(MemoryStore):
    """Key/value store persisted to a single JSON file"""

    def __init__(self, path: str = "tripsort-transactions.json"):
        super().__init__()
        self.path = path
        self._load()

    def _load(self) -> None:
        """Load existing entries"""
        if os.path.exists(self.path):
            try:
                with open(self.path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                    self._data = dict(data.get('entries', {}))
            except (IOError, ValueError, TypeError, AttributeError) as e:
                logger.warning(f"Ignoring unreadable store {self.path}: {e}")
                self._data = {}

    def _save(self) -> None:
        """Write all entries back to disk"""
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump({
                'last_updated': datetime.now().isoformat(),
                'entries': self._data
            }, f, indent=2)

    def set(self, key: str, value: str) -> None:
        super().set(key, value)
        self._save()

    def remove(self, key: str) -> None:
        if key in self._data:
            super().remove(key)
            self._save()


# ═══════════════════════════════════════════════════════════════════════════
# IDS & TIMESTAMPS
# ═══════════════════════════════════════════════════════════════════════════

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_transaction_id() -> str:
    """Generate a unique, time-ordered transaction id (txn_<ms>_<rand>)"""
    n = uuid.uuid4().int
    suffix = []
    for _ in range(9):
        n, r = divmod(n, 36)
        suffix.append(_ID_ALPHABET[r])
    return f"txn_{int(time.time() * 1000)}_{''.join(suffix)}"


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision"""
    now = datetime.now(timezone.utc)
    return now.strftime('%Y-%m-%dT%H:%M:%S.') + f"{now.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; a trailing 'Z' or no offset means UTC"""
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ═══════════════════════════════════════════════════════════════════════════
# FILE UTILITIES
# ═══════════════════════════════════════════════════════════════════════════

def is_hidden(path: str) -> bool:
    """Check if a file or folder is hidden"""
    name = os.path.basename(path)
    return name.startswith('.')


def count_photos(folder: Path, extensions: set) -> int:
    """Count photo files below a folder, recursively"""
    return sum(
        1 for p in folder.rglob('*')
        if p.is_file() and not is_hidden(str(p)) and p.suffix.lower() in extensions
    )


def scan_folders(
    root: str,
    extensions: set,
    show_progress: bool = False
) -> Tuple[List[str], Dict[str, int]]:
    """
    List the immediate subfolders of a trip root with their photo counts.

    Args:
        root: Trip root folder
        extensions: Photo file extensions (lowercase, with dot)
        show_progress: Show a progress bar while counting

    Returns:
        Tuple of (folder names, folder name -> photo count)
    """
    root_path = Path(root)
    if not root_path.is_dir():
        raise FileNotFoundError(f"Folder not found: {root}")

    folders = sorted(entry.name for entry in root_path.iterdir() if entry.is_dir())

    counts: Dict[str, int] = {}
    for name in tqdm(folders, desc="Counting photos", unit="folder", disable=not show_progress):
        counts[name] = count_photos(root_path / name, extensions)

    logger.info(f"Scanned {len(folders)} folders in {root}")
    return folders, counts
