"""
TripSort Data Classes

Value types shared by detection, planning and the transaction log.
Serialized forms keep the camelCase field names used by stored
transactions and folder-map manifests.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional


# ═══════════════════════════════════════════════════════════════════════════
# CONFIDENCE LEVELS
# ═══════════════════════════════════════════════════════════════════════════

HIGH = "high"
MEDIUM = "medium"
LOW = "low"
UNDETECTED = "undetected"

CONFIDENCE_LEVELS = (HIGH, MEDIUM, LOW, UNDETECTED)

NO_PATTERN = "none"


def suggest_folder_name(day: Optional[int], unsorted_name: str = "Unsorted") -> str:
    """Normalized folder name for a day number ("Day 01"), or the unsorted name"""
    if day is None:
        return unsorted_name
    return f"Day {day:02d}"


# ═══════════════════════════════════════════════════════════════════════════
# DETECTION
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Classification:
    """Result of matching one folder name against the day patterns"""

    day: Optional[int]
    pattern: str
    confidence: str


@dataclass(frozen=True)
class DateRange:
    """Observed timestamp span of the photos in a folder"""

    start: str
    end: str

    def to_dict(self) -> Dict[str, str]:
        return {"start": self.start, "end": self.end}


@dataclass(frozen=True)
class FolderMapping:
    """One row of the detection/review table"""

    folder: str
    folder_path: str
    detected_day: Optional[int]
    confidence: str
    pattern_matched: str
    suggested_name: str
    manual: bool = False
    photo_count: int = 0
    date_range: Optional[DateRange] = None
    skip: bool = False

    def with_skip(self, skip: bool) -> "FolderMapping":
        """Copy of this mapping with the skip decision changed"""
        return replace(self, skip=skip)

    def with_day(self, day: Optional[int], unsorted_name: str = "Unsorted") -> "FolderMapping":
        """
        Copy of this mapping with a manually assigned day.

        Confidence and pattern are left as they were: they describe the
        original inference, not the current assignment.
        """
        return replace(
            self,
            detected_day=day,
            suggested_name=suggest_folder_name(day, unsorted_name),
            manual=True,
        )

    @property
    def is_detected(self) -> bool:
        return self.detected_day is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON export"""
        data: Dict[str, Any] = {
            "folder": self.folder,
            "folderPath": self.folder_path,
            "detectedDay": self.detected_day,
            "confidence": self.confidence,
            "patternMatched": self.pattern_matched,
            "suggestedName": self.suggested_name,
            "manual": self.manual,
            "photoCount": self.photo_count,
            "skip": self.skip,
        }
        if self.date_range is not None:
            data["dateRange"] = self.date_range.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FolderMapping":
        date_range = data.get("dateRange")
        detected_day = data["detectedDay"]
        confidence = data.get("confidence", UNDETECTED)
        if confidence not in CONFIDENCE_LEVELS:
            raise ValueError(f"Unknown confidence level: {confidence!r}")
        return cls(
            folder=data["folder"],
            folder_path=data.get("folderPath", data["folder"]),
            detected_day=int(detected_day) if detected_day is not None else None,
            confidence=confidence,
            pattern_matched=data.get("patternMatched", NO_PATTERN),
            suggested_name=data["suggestedName"],
            manual=bool(data.get("manual", False)),
            photo_count=int(data.get("photoCount", 0)),
            date_range=DateRange(**date_range) if date_range else None,
            skip=bool(data.get("skip", confidence == UNDETECTED)),
        )


# ═══════════════════════════════════════════════════════════════════════════
# PLANNING
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class Changeset:
    """Structured plan derived from approved mappings, before any real I/O"""

    renamed: List[Dict[str, str]] = field(default_factory=list)  # {"from", "to"}
    moved: List[Dict[str, str]] = field(default_factory=list)    # {"from", "to"}, file level
    created: List[Dict[str, Any]] = field(default_factory=list)  # {"folder", "day"}
    skipped: List[str] = field(default_factory=list)

    @property
    def reversible_count(self) -> int:
        """Number of operations an undo has to reverse"""
        return len(self.renamed) + len(self.moved)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "renamed": [dict(r) for r in self.renamed],
            "moved": [dict(m) for m in self.moved],
            "created": [dict(c) for c in self.created],
            "skipped": list(self.skipped),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Changeset":
        return cls(
            renamed=[{"from": r["from"], "to": r["to"]} for r in data.get("renamed", [])],
            moved=[{"from": m["from"], "to": m["to"]} for m in data.get("moved", [])],
            created=[{"folder": c["folder"], "day": int(c["day"])} for c in data.get("created", [])],
            skipped=[str(s) for s in data.get("skipped", [])],
        )


@dataclass(frozen=True)
class Snapshot:
    """Pre-apply filesystem state needed to restore exact folder contents"""

    folders: List[str] = field(default_factory=list)
    folder_contents: Dict[str, List[str]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "folders": list(self.folders),
            "folderContents": {k: list(v) for k, v in self.folder_contents.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Snapshot":
        return cls(
            folders=list(data.get("folders", [])),
            folder_contents={k: list(v) for k, v in data.get("folderContents", {}).items()},
        )


# ═══════════════════════════════════════════════════════════════════════════
# TRANSACTIONS
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class FolderMapTransaction:
    """Immutable record of one apply operation"""

    id: str
    timestamp: str  # ISO-8601, UTC
    project_name: str
    root_path: str
    mappings: List[FolderMapping]
    changes: Changeset
    snapshot: Optional[Snapshot] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "timestamp": self.timestamp,
            "projectName": self.project_name,
            "rootPath": self.root_path,
            "mappings": [m.to_dict() for m in self.mappings],
            "changes": self.changes.to_dict(),
        }
        if self.snapshot is not None:
            data["snapshot"] = self.snapshot.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FolderMapTransaction":
        snapshot = data.get("snapshot")
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            project_name=data["projectName"],
            root_path=data["rootPath"],
            mappings=[FolderMapping.from_dict(m) for m in data["mappings"]],
            changes=Changeset.from_dict(data["changes"]),
            snapshot=Snapshot.from_dict(snapshot) if snapshot else None,
        )


@dataclass
class ApplyResult:
    """What an apply (or dry run) hands back to the caller"""

    transaction_id: str
    summary: str
    changes: Changeset
    dry_run: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transactionId": self.transaction_id,
            "summary": self.summary,
            "changes": self.changes.to_dict(),
        }
