"""
TripSort Transaction Log

Turns approved mappings into a changeset, wraps it into an immutable
transaction record and keeps those records in a keyed store so an
apply can be undone after a restart.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from tripsort.models import Changeset, FolderMapping, FolderMapTransaction, Snapshot
from tripsort.utils import (
    MemoryStore,
    generate_transaction_id,
    parse_timestamp,
    utc_timestamp,
)

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "narrative_transaction_"

MANIFEST_VERSION = "1.0"
MANIFEST_PATH = os.path.join("_meta", "folder_map.json")


class TransactionNotFoundError(LookupError):
    """Raised when a transaction id has no stored record"""

    def __init__(self, transaction_id: str):
        super().__init__(f"Transaction not found: {transaction_id}")
        self.transaction_id = transaction_id


# ═══════════════════════════════════════════════════════════════════════════
# CHANGESETS
# ═══════════════════════════════════════════════════════════════════════════

def generate_changes_from_mappings(mappings: List[FolderMapping]) -> Changeset:
    """
    Derive the folder plan for a list of mappings.

    Does not look at ``skip``; callers filter skipped mappings first.
    File-level moves are left to the filesystem side, so ``moved``
    stays empty.
    """
    changes = Changeset()

    for mapping in mappings:
        if mapping.detected_day is not None:
            changes.created.append({
                "folder": mapping.suggested_name,
                "day": mapping.detected_day,
            })
            if mapping.folder != mapping.suggested_name:
                changes.renamed.append({
                    "from": mapping.folder,
                    "to": mapping.suggested_name,
                })
        else:
            changes.skipped.append(mapping.folder)

    return changes


# ═══════════════════════════════════════════════════════════════════════════
# TRANSACTION LOG
# ═══════════════════════════════════════════════════════════════════════════

class TransactionLog:
    """
    Persists folder-map transactions for undo support.

    Storage is best-effort: failed writes are logged and the caller
    keeps working with the in-memory transaction.
    """

    def __init__(
        self,
        store=None,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        log: Optional[logging.Logger] = None
    ):
        """
        Args:
            store: Keyed store with get/set/remove/keys(prefix)
            key_prefix: Prefix of every transaction key
            log: Logger receiving storage warnings
        """
        self.store = store if store is not None else MemoryStore()
        self.key_prefix = key_prefix
        self.log = log or logger

    def _key(self, project_name: str, transaction_id: str) -> str:
        return f"{self.key_prefix}{project_name}_{transaction_id}"

    def _project_prefix(self, project_name: str) -> str:
        return f"{self.key_prefix}{project_name}_"

    def create_transaction(
        self,
        project_name: str,
        root_path: str,
        mappings: List[FolderMapping],
        snapshot: Optional[Snapshot] = None
    ) -> FolderMapTransaction:
        """Build a new transaction record (not persisted)"""
        return FolderMapTransaction(
            id=generate_transaction_id(),
            timestamp=utc_timestamp(),
            project_name=project_name,
            root_path=root_path,
            mappings=list(mappings),
            changes=generate_changes_from_mappings(mappings),
            snapshot=snapshot,
        )

    def save_transaction(self, transaction: FolderMapTransaction) -> None:
        """Persist a transaction; storage failures are logged, never raised"""
        key = self._key(transaction.project_name, transaction.id)
        try:
            self.store.set(key, json.dumps(transaction.to_dict()))
            self.log.debug(f"Saved transaction {transaction.id}")
        except (OSError, TypeError, ValueError) as e:
            self.log.warning(f"Failed to save transaction {transaction.id}: {e}")

    def _parse(self, key: str, data: Optional[str]) -> Optional[FolderMapTransaction]:
        if not data:
            return None
        try:
            transaction = FolderMapTransaction.from_dict(json.loads(data))
            parse_timestamp(transaction.timestamp)
            return transaction
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            self.log.warning(f"Ignoring malformed transaction record {key}: {e}")
            return None

    def get_transaction(self, project_name: str, transaction_id: str) -> Optional[FolderMapTransaction]:
        """Look up one transaction; missing or malformed records yield None"""
        key = self._key(project_name, transaction_id)
        try:
            data = self.store.get(key)
        except OSError as e:
            self.log.warning(f"Failed to read transaction {transaction_id}: {e}")
            return None
        return self._parse(key, data)

    def list_transactions(self, project_name: str) -> List[FolderMapTransaction]:
        """All stored transactions of a project, most recent first"""
        transactions: List[FolderMapTransaction] = []
        prefix = self._project_prefix(project_name)

        try:
            keys = self.store.keys(prefix)
        except OSError as e:
            self.log.warning(f"Failed to list transactions for {project_name}: {e}")
            return []

        for key in keys:
            transaction = self._parse(key, self.store.get(key))
            # Keys of a project whose name extends this one share the prefix
            if transaction and transaction.project_name == project_name:
                transactions.append(transaction)

        return sorted(
            transactions,
            key=lambda t: parse_timestamp(t.timestamp),
            reverse=True,
        )

    def delete_transaction(self, project_name: str, transaction_id: str) -> None:
        """Remove a transaction; deleting an unknown id is a no-op"""
        try:
            self.store.remove(self._key(project_name, transaction_id))
        except OSError as e:
            self.log.warning(f"Failed to delete transaction {transaction_id}: {e}")


# ═══════════════════════════════════════════════════════════════════════════
# FOLDER MAP MANIFEST
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class FolderMapManifest:
    """Record of an applied folder map, written to _meta/folder_map.json"""

    project_name: str
    root_path: str
    created_at: str
    applied_at: str
    mappings: List[FolderMapping] = field(default_factory=list)
    changes: Changeset = field(default_factory=Changeset)
    trip_start: Optional[str] = None
    trip_end: Optional[str] = None
    version: str = MANIFEST_VERSION

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "version": self.version,
            "projectName": self.project_name,
            "rootPath": self.root_path,
            "createdAt": self.created_at,
            "appliedAt": self.applied_at,
        }
        if self.trip_start:
            data["tripStart"] = self.trip_start
        if self.trip_end:
            data["tripEnd"] = self.trip_end
        data["mappings"] = [m.to_dict() for m in self.mappings]
        data["changes"] = self.changes.to_dict()
        return data

    def save(self, root_path: Optional[str] = None) -> str:
        """Write the manifest below the project root, returns its path"""
        path = os.path.join(root_path or self.root_path, MANIFEST_PATH)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
        logger.info(f"Wrote folder map manifest to {path}")
        return path


def create_manifest(
    transaction: FolderMapTransaction,
    trip_start: Optional[str] = None,
    trip_end: Optional[str] = None
) -> FolderMapManifest:
    """Build the folder-map manifest for an applied transaction"""
    return FolderMapManifest(
        project_name=transaction.project_name,
        root_path=transaction.root_path,
        created_at=utc_timestamp(),
        applied_at=transaction.timestamp,
        mappings=list(transaction.mappings),
        changes=transaction.changes,
        trip_start=trip_start,
        trip_end=trip_end,
    )
