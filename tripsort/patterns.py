"""
TripSort Day Pattern Classifier

Infers a trip day number from a folder name by trying an ordered
list of patterns. The first pattern that yields a valid day wins.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional

from tripsort.config import Config
from tripsort.models import HIGH, MEDIUM, Classification, suggest_folder_name

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# DAY EXTRACTORS
# ═══════════════════════════════════════════════════════════════════════════

def calculate_day_from_date(date_str: str, trip_start: Optional[str] = None) -> Optional[int]:
    """
    Day number of a YYYY-MM-DD date relative to the trip start (day 1).

    Without a trip start the date is compared to itself, so every date
    resolves to day 1. Returns None when either date is invalid.
    """
    try:
        day = date.fromisoformat(date_str)
        start = date.fromisoformat(trip_start) if trip_start else day
    except (TypeError, ValueError):
        return None

    return (day - start).days + 1


def _digits_as_day(match: re.Match, trip_start: Optional[str]) -> Optional[int]:
    return int(match.group(1))


def _date_as_day(match: re.Match, trip_start: Optional[str]) -> Optional[int]:
    date_str = f"{match.group(1)}-{match.group(2)}-{match.group(3)}"
    return calculate_day_from_date(date_str, trip_start)


# ═══════════════════════════════════════════════════════════════════════════
# PATTERNS (priority order)
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DayPattern:
    """One detection rule: regex, day extractor and the confidence it earns"""

    pattern_id: str
    regex: "re.Pattern[str]"
    extract: Callable[[re.Match, Optional[str]], Optional[int]]
    confidence: str
    # Confidence used when no trip start is known (None: same as confidence)
    confidence_without_start: Optional[str] = None
    # Day numbers outside the configured bounds are rejected
    bounded: bool = True
    anchored: bool = True

    def match(self, folder_name: str) -> Optional[re.Match]:
        if self.anchored:
            return self.regex.match(folder_name)
        return self.regex.search(folder_name)

    def confidence_for(self, trip_start: Optional[str]) -> str:
        if trip_start or self.confidence_without_start is None:
            return self.confidence
        return self.confidence_without_start


DEFAULT_PATTERNS: List[DayPattern] = [
    # "Day 1", "D01", "day_2", "Day-3", "D1 Iceland"
    DayPattern(
        pattern_id="day_prefix",
        regex=re.compile(r"(?:day|d)[\s_-]?(\d{1,2})(?:\D|$)", re.IGNORECASE | re.ASCII),
        extract=_digits_as_day,
        confidence=HIGH,
    ),
    # "2024-03-15", "Iceland 2024-03-15"
    DayPattern(
        pattern_id="iso_date",
        regex=re.compile(r"(\d{4})-(\d{2})-(\d{2})", re.ASCII),
        extract=_date_as_day,
        confidence=HIGH,
        confidence_without_start=MEDIUM,
        bounded=False,
        anchored=False,
    ),
    # "2024_03_15"
    DayPattern(
        pattern_id="iso_date",
        regex=re.compile(r"(\d{4})_(\d{2})_(\d{2})", re.ASCII),
        extract=_date_as_day,
        confidence=HIGH,
        confidence_without_start=MEDIUM,
        bounded=False,
        anchored=False,
    ),
    # "1 Iceland", "02_Reykjavik", "3-Hiking"
    DayPattern(
        pattern_id="numeric_prefix",
        regex=re.compile(r"(\d{1,2})[\s_-]", re.ASCII),
        extract=_digits_as_day,
        confidence=MEDIUM,
    ),
]


# ═══════════════════════════════════════════════════════════════════════════
# CLASSIFIER
# ═══════════════════════════════════════════════════════════════════════════

class DayClassifier:
    """Classifies folder names into trip day numbers"""

    def __init__(self, config: Config = None, patterns: List[DayPattern] = None):
        """
        Initialize classifier.

        Args:
            config: Config object providing the day bounds
            patterns: Ordered pattern list (overrides the defaults)
        """
        self.patterns = list(patterns) if patterns else list(DEFAULT_PATTERNS)

        self.min_day = 1
        self.max_day = 31
        self.unsorted_name = "Unsorted"
        if config:
            self.min_day = config.settings.min_day
            self.max_day = config.settings.max_day
            self.unsorted_name = config.settings.unsorted_name

    def classify(self, folder_name: str, trip_start: Optional[str] = None) -> Optional[Classification]:
        """
        Infer a day number from a folder name.

        Args:
            folder_name: Raw folder name
            trip_start: Trip start date (YYYY-MM-DD), used by date patterns

        Returns:
            Classification of the first matching pattern, or None if
            no pattern produced a valid day
        """
        for pattern in self.patterns:
            match = pattern.match(folder_name)
            if not match:
                continue

            day = pattern.extract(match, trip_start)
            if day is None:
                continue
            if pattern.bounded and not (self.min_day <= day <= self.max_day):
                logger.debug(f"{pattern.pattern_id}: day {day} out of range for '{folder_name}'")
                continue

            return Classification(
                day=day,
                pattern=pattern.pattern_id,
                confidence=pattern.confidence_for(trip_start),
            )

        return None

    def suggest_name(self, day: Optional[int]) -> str:
        """Normalized folder name for a day number"""
        return suggest_folder_name(day, self.unsorted_name)

    def list_patterns(self) -> List[str]:
        """Pattern ids in priority order (ids may repeat)"""
        return [p.pattern_id for p in self.patterns]
