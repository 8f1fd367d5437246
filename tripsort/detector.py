"""
TripSort Folder Structure Detection

Turns the subfolder names of a trip root into day mappings and
renders the dry-run preview of an approved mapping list.
"""

import logging
from typing import Dict, Iterable, List, Optional

from tripsort.config import Config, DEFAULT_SKIP_FOLDERS
from tripsort.models import NO_PATTERN, UNDETECTED, FolderMapping
from tripsort.patterns import DayClassifier

logger = logging.getLogger(__name__)


class FolderDetector:
    """Detects day-based folder structures and builds mapping suggestions"""

    def __init__(self, config: Config = None, classifier: DayClassifier = None):
        self.classifier = classifier or DayClassifier(config)

        if config:
            self.skip_folders = {name.lower() for name in config.settings.skip_folders}
            self.skip_hidden = config.settings.skip_hidden
        else:
            self.skip_folders = set(DEFAULT_SKIP_FOLDERS)
            self.skip_hidden = True

    def should_skip(self, folder_name: str) -> bool:
        """Check if a folder is a system/metadata folder"""
        if self.skip_hidden and folder_name.startswith('.'):
            return True
        return folder_name.lower() in self.skip_folders

    def detect(
        self,
        folders: Iterable[str],
        photo_counts: Optional[Dict[str, int]] = None,
        project_name: str = "",
        trip_start: Optional[str] = None,
    ) -> List[FolderMapping]:
        """
        Build a mapping for every candidate folder.

        Args:
            folders: Folder names found in the trip root
            photo_counts: Folder name -> number of photos
            project_name: Project folder name, never treated as a day
            trip_start: Trip start date (YYYY-MM-DD)

        Returns:
            Mappings sorted by detected day; undetected folders last,
            ordered by name
        """
        photo_counts = photo_counts or {}
        mappings: List[FolderMapping] = []

        for folder in folders:
            if self.should_skip(folder):
                logger.debug(f"Skipping system folder: {folder}")
                continue

            if project_name and folder.lower() == project_name.lower():
                logger.debug(f"Skipping project folder: {folder}")
                continue

            photo_count = photo_counts.get(folder, 0)
            result = self.classifier.classify(folder, trip_start)

            if result:
                mappings.append(FolderMapping(
                    folder=folder,
                    folder_path=folder,
                    detected_day=result.day,
                    confidence=result.confidence,
                    pattern_matched=result.pattern,
                    suggested_name=self.classifier.suggest_name(result.day),
                    photo_count=photo_count,
                ))
            else:
                mappings.append(FolderMapping(
                    folder=folder,
                    folder_path=folder,
                    detected_day=None,
                    confidence=UNDETECTED,
                    pattern_matched=NO_PATTERN,
                    suggested_name=self.classifier.suggest_name(None),
                    photo_count=photo_count,
                    skip=True,
                ))

        detected = sum(1 for m in mappings if m.is_detected)
        logger.info(f"Detected {detected} of {len(mappings)} folders as day buckets")

        return sort_mappings(mappings)


def sort_mappings(mappings: List[FolderMapping]) -> List[FolderMapping]:
    """Ascending by day, undetected mappings last in folder-name order"""
    detected = sorted(
        (m for m in mappings if m.detected_day is not None),
        key=lambda m: m.detected_day,
    )
    undetected = sorted(
        (m for m in mappings if m.detected_day is None),
        key=lambda m: m.folder,
    )
    return detected + undetected


def detect_folder_structure(
    folders: Iterable[str],
    photo_counts: Optional[Dict[str, int]] = None,
    project_name: str = "",
    trip_start: Optional[str] = None,
    config: Config = None,
) -> List[FolderMapping]:
    """Detect day folders with a default-configured detector"""
    return FolderDetector(config).detect(
        folders,
        photo_counts=photo_counts,
        project_name=project_name,
        trip_start=trip_start,
    )


def generate_dry_run_summary(mappings: List[FolderMapping]) -> str:
    """
    Preview of what applying the mappings would do.

    Lists the day folders to create and the photo moves in mapping
    order, plus a note for photos left in undetected folders.
    """
    detected = [m for m in mappings if m.detected_day is not None]
    moved_photos = sum(m.photo_count for m in detected)
    skipped_photos = sum(m.photo_count for m in mappings if m.detected_day is None)

    lines = [f"✓ Create {len(detected)} folders:"]
    for m in detected:
        lines.append(f"  • {m.suggested_name}/")

    lines.append("")
    lines.append(f"✓ Move {moved_photos} photos:")
    for m in detected:
        lines.append(f"  • {m.photo_count} from \"{m.folder}\" → \"{m.suggested_name}/\"")

    if skipped_photos > 0:
        lines.append("")
        lines.append(f"○ Skip {skipped_photos} photos in undetected folders")

    return '\n'.join(lines) + '\n'
