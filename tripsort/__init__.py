"""
TripSort - Trip Photo Folder Normalization

Detects day numbers in ad hoc trip folder names, plans the rename into
"Day NN" buckets and keeps an undoable transaction log of every apply.
"""

__version__ = "1.0.0"
__author__ = "TripSort Contributors"

from tripsort.engine import TripSort
from tripsort.detector import FolderDetector, detect_folder_structure, generate_dry_run_summary
from tripsort.patterns import DayClassifier
from tripsort.transactions import (
    TransactionLog,
    TransactionNotFoundError,
    generate_changes_from_mappings,
)
from tripsort.config import Config, load_config

__all__ = [
    "TripSort",
    "FolderDetector",
    "DayClassifier",
    "TransactionLog",
    "TransactionNotFoundError",
    "detect_folder_structure",
    "generate_dry_run_summary",
    "generate_changes_from_mappings",
    "Config",
    "load_config",
    "__version__",
]
