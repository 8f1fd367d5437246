"""
TripSort Main Engine

The TripSort class ties detection, dry-run summaries, changesets and
the transaction log together behind apply/undo entry points.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from tripsort.config import Config, load_config
from tripsort.detector import FolderDetector, generate_dry_run_summary
from tripsort.models import ApplyResult, FolderMapping, FolderMapTransaction, Snapshot
from tripsort.transactions import (
    FolderMapManifest,
    TransactionLog,
    TransactionNotFoundError,
    create_manifest,
)
from tripsort.utils import JsonFileStore, scan_folders

logger = logging.getLogger(__name__)


class TripSort:
    """
    Main TripSort engine for normalizing trip folders into day buckets.

    Example usage:
        ts = TripSort()
        mappings = ts.detect(["Day 1", "D_2", "2024-03-17"], trip_start="2024-03-15")
        result = asyncio.run(ts.apply_folder_mappings("Iceland", "/trips/iceland", mappings))
        asyncio.run(ts.undo_folder_mapping("Iceland", result.transaction_id))

    The engine plans and records changes only; moving photos on disk is
    left to the filesystem side, which works from the same mappings.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        config_path: Optional[str] = None,
        store=None,
        log: Optional[logging.Logger] = None
    ):
        """
        Initialize TripSort.

        Args:
            config: Pre-loaded Config object
            config_path: Path to config file to load
            store: Keyed store for transactions (defaults to the JSON file store)
            log: Logger receiving transaction storage warnings
        """
        if config:
            self.config = config
        else:
            self.config = load_config(config_path)

        if store is None:
            store = JsonFileStore(self.config.settings.store_path)

        self.detector = FolderDetector(self.config)
        self.transactions = TransactionLog(
            store,
            key_prefix=self.config.settings.key_prefix,
            log=log,
        )

    # ═══════════════════════════════════════════════════════════════════
    # DETECTION
    # ═══════════════════════════════════════════════════════════════════

    def detect(
        self,
        folders: List[str],
        photo_counts: Optional[Dict[str, int]] = None,
        project_name: str = "",
        trip_start: Optional[str] = None
    ) -> List[FolderMapping]:
        """Detect day mappings for a list of folder names"""
        return self.detector.detect(
            folders,
            photo_counts=photo_counts,
            project_name=project_name,
            trip_start=trip_start,
        )

    def scan(
        self,
        root_path: str,
        project_name: str = "",
        trip_start: Optional[str] = None,
        show_progress: bool = False
    ) -> List[FolderMapping]:
        """Detect day mappings for the subfolders of a trip root on disk"""
        folders, counts = scan_folders(
            root_path,
            self.config.photo_extensions,
            show_progress=show_progress,
        )
        return self.detect(folders, counts, project_name=project_name, trip_start=trip_start)

    # ═══════════════════════════════════════════════════════════════════
    # APPLY / UNDO
    # ═══════════════════════════════════════════════════════════════════

    async def apply_folder_mappings(
        self,
        project_name: str,
        root_path: str,
        mappings: List[FolderMapping],
        trip_start: Optional[str] = None,
        trip_end: Optional[str] = None,
        dry_run: bool = False,
        snapshot: Optional[Snapshot] = None
    ) -> ApplyResult:
        """
        Plan an apply and record it for undo.

        Args:
            project_name: Project the transaction belongs to
            root_path: Trip root folder
            mappings: Approved mappings, skipped ones already removed
            trip_start: Trip start date (YYYY-MM-DD), unused here; pass it to write_manifest
            trip_end: Trip end date (YYYY-MM-DD), unused here; pass it to write_manifest
            dry_run: If True, the transaction is built but not persisted
            snapshot: Pre-apply folder state for a restoring undo

        Returns:
            ApplyResult with the transaction id, summary text and changeset
        """
        await asyncio.sleep(self.config.settings.apply_delay)

        transaction = self.transactions.create_transaction(
            project_name, root_path, mappings, snapshot
        )

        if dry_run:
            logger.info(f"[DRY RUN] Planned {transaction.id} for {project_name}")
        else:
            self.transactions.save_transaction(transaction)
            logger.info(
                f"Applied {transaction.id} for {project_name}: "
                f"{len(transaction.changes.created)} folders, "
                f"{len(transaction.changes.renamed)} renames"
            )

        return ApplyResult(
            transaction_id=transaction.id,
            summary=generate_dry_run_summary(mappings),
            changes=transaction.changes,
            dry_run=dry_run,
        )

    async def undo_folder_mapping(self, project_name: str, transaction_id: str) -> str:
        """
        Undo a recorded apply.

        The record is deleted on success, so a second undo of the same
        id fails.

        Raises:
            TransactionNotFoundError: no stored record for the id
        """
        await asyncio.sleep(self.config.settings.apply_delay)

        transaction = self.transactions.get_transaction(project_name, transaction_id)
        if transaction is None:
            raise TransactionNotFoundError(transaction_id)

        summary = f"Undone: Reversed {transaction.changes.reversible_count} changes"

        self.transactions.delete_transaction(project_name, transaction_id)
        logger.info(f"Undid {transaction_id} for {project_name}")

        return summary

    async def undo_last(self, project_name: str) -> str:
        """Undo the most recent recorded apply of a project"""
        history = self.transactions.list_transactions(project_name)
        if not history:
            raise TransactionNotFoundError("<none>")
        return await self.undo_folder_mapping(project_name, history[0].id)

    # ═══════════════════════════════════════════════════════════════════
    # HISTORY
    # ═══════════════════════════════════════════════════════════════════

    def list_transactions(self, project_name: str) -> List[FolderMapTransaction]:
        """Recorded applies of a project, most recent first"""
        return self.transactions.list_transactions(project_name)

    def write_manifest(
        self,
        project_name: str,
        transaction_id: str,
        trip_start: Optional[str] = None,
        trip_end: Optional[str] = None
    ) -> FolderMapManifest:
        """Write _meta/folder_map.json for a recorded apply"""
        transaction = self.transactions.get_transaction(project_name, transaction_id)
        if transaction is None:
            raise TransactionNotFoundError(transaction_id)

        manifest = create_manifest(transaction, trip_start, trip_end)
        manifest.save()
        return manifest
