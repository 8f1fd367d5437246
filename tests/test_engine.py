"""
Tests for the TripSort apply/undo engine
"""

import asyncio
import json
import os
import tempfile
import pytest

from tripsort.config import Config
from tripsort.engine import TripSort
from tripsort.transactions import TransactionNotFoundError
from tripsort.utils import JsonFileStore, MemoryStore


def make_engine(store=None):
    config = Config()
    config.settings.apply_delay = 0
    return TripSort(config=config, store=store or MemoryStore())


class TestApply:
    """Test cases for apply_folder_mappings"""

    def setup_method(self):
        """Set up test fixtures"""
        self.engine = make_engine()
        self.mappings = self.engine.detect(
            ['Day 1', 'Day 02', 'Random'],
            photo_counts={'Day 1': 42, 'Day 02': 56, 'Random': 7},
        )

    def test_apply_records_transaction(self):
        """Test a real apply is persisted"""
        result = asyncio.run(self.engine.apply_folder_mappings(
            'Iceland', '/trips/iceland', self.mappings
        ))

        txn = self.engine.transactions.get_transaction('Iceland', result.transaction_id)

        assert txn is not None
        assert txn.mappings == self.mappings
        assert result.changes == txn.changes
        assert "Create 2 folders" in result.summary
        assert "Move 98 photos" in result.summary
        assert "Skip 7 photos" in result.summary

    def test_apply_filtered_mappings(self):
        """Test the usual call with skipped mappings removed"""
        approved = [m for m in self.mappings if not m.skip]

        result = asyncio.run(self.engine.apply_folder_mappings(
            'Iceland', '/trips/iceland', approved
        ))

        assert result.changes.skipped == []
        assert result.changes.renamed == [{"from": "Day 1", "to": "Day 01"}]
        assert "Skip" not in result.summary

    def test_dry_run_is_not_persisted(self):
        """Test that dry runs return an id but store nothing"""
        result = asyncio.run(self.engine.apply_folder_mappings(
            'Iceland', '/trips/iceland', self.mappings, dry_run=True
        ))

        assert result.transaction_id.startswith('txn_')
        assert result.dry_run is True
        assert self.engine.transactions.get_transaction('Iceland', result.transaction_id) is None
        assert self.engine.list_transactions('Iceland') == []

    def test_concurrent_applies_are_independent(self):
        """Test overlapping applies produce separate transactions"""
        async def apply_twice():
            return await asyncio.gather(
                self.engine.apply_folder_mappings('Iceland', '/trips/iceland', self.mappings),
                self.engine.apply_folder_mappings('Iceland', '/trips/iceland', self.mappings),
            )

        first, second = asyncio.run(apply_twice())

        assert first.transaction_id != second.transaction_id
        assert len(self.engine.list_transactions('Iceland')) == 2

    def test_result_to_dict(self):
        """Test the caller-facing result shape"""
        result = asyncio.run(self.engine.apply_folder_mappings(
            'Iceland', '/trips/iceland', self.mappings, dry_run=True
        ))

        assert set(result.to_dict()) == {"transactionId", "summary", "changes"}


class TestUndo:
    """Test cases for undo_folder_mapping"""

    def setup_method(self):
        """Set up test fixtures"""
        self.engine = make_engine()
        self.mappings = [m for m in self.engine.detect(['Day 1', 'D2', 'Day 03']) if not m.skip]

    def test_undo_reports_reversed_changes(self):
        """Test undo summary and record removal"""
        result = asyncio.run(self.engine.apply_folder_mappings(
            'Iceland', '/trips/iceland', self.mappings
        ))

        summary = asyncio.run(self.engine.undo_folder_mapping('Iceland', result.transaction_id))

        assert summary == "Undone: Reversed 2 changes"
        assert self.engine.transactions.get_transaction('Iceland', result.transaction_id) is None

    def test_undo_twice_fails(self):
        """Test that a transaction can only be undone once"""
        result = asyncio.run(self.engine.apply_folder_mappings(
            'Iceland', '/trips/iceland', self.mappings
        ))
        asyncio.run(self.engine.undo_folder_mapping('Iceland', result.transaction_id))

        with pytest.raises(TransactionNotFoundError, match="(?i)not found"):
            asyncio.run(self.engine.undo_folder_mapping('Iceland', result.transaction_id))

    def test_undo_dry_run_fails(self):
        """Test that dry-run transactions cannot be undone"""
        result = asyncio.run(self.engine.apply_folder_mappings(
            'Iceland', '/trips/iceland', self.mappings, dry_run=True
        ))

        with pytest.raises(TransactionNotFoundError):
            asyncio.run(self.engine.undo_folder_mapping('Iceland', result.transaction_id))

    def test_undo_unknown_id(self):
        """Test undo of an id that was never saved"""
        with pytest.raises(LookupError) as exc_info:
            asyncio.run(self.engine.undo_folder_mapping('Iceland', 'txn_0_nothing'))

        assert "transaction not found" in str(exc_info.value).lower()

    def test_undo_last(self):
        """Test undoing the most recent apply"""
        asyncio.run(self.engine.apply_folder_mappings(
            'Iceland', '/trips/iceland', self.mappings
        ))

        summary = asyncio.run(self.engine.undo_last('Iceland'))

        assert summary.startswith("Undone:")
        assert self.engine.list_transactions('Iceland') == []
        with pytest.raises(TransactionNotFoundError):
            asyncio.run(self.engine.undo_last('Iceland'))


class TestScanAndManifest:
    """Test cases for on-disk scanning and manifests"""

    def test_scan_counts_photos(self):
        """Test scanning a trip folder"""
        with tempfile.TemporaryDirectory() as tmp:
            for folder, files in {
                'Day 1': ['a.jpg', 'b.JPG', 'notes.txt'],
                '2 Geysir': ['c.heic', 'sub/d.png'],
                '_meta': ['state.json'],
            }.items():
                for name in files:
                    path = os.path.join(tmp, folder, name)
                    os.makedirs(os.path.dirname(path), exist_ok=True)
                    open(path, 'w').close()

            mappings = make_engine().scan(tmp)

            assert [(m.folder, m.detected_day, m.photo_count) for m in mappings] == [
                ('Day 1', 1, 2),
                ('2 Geysir', 2, 2),
            ]

    def test_scan_missing_root(self):
        """Test scanning a folder that does not exist"""
        with pytest.raises(FileNotFoundError):
            make_engine().scan('/nonexistent/trip')

    def test_write_manifest(self):
        """Test the manifest of a recorded apply"""
        with tempfile.TemporaryDirectory() as tmp:
            engine = make_engine(JsonFileStore(os.path.join(tmp, '_meta', 'txn.json')))
            mappings = engine.detect(['Day 1'])
            result = asyncio.run(engine.apply_folder_mappings('Iceland', tmp, mappings))

            engine.write_manifest('Iceland', result.transaction_id, trip_start='2024-03-15')

            with open(os.path.join(tmp, '_meta', 'folder_map.json'), 'r', encoding='utf-8') as f:
                data = json.load(f)
            assert data["tripStart"] == '2024-03-15'
            assert data["changes"]["created"] == [{"folder": "Day 01", "day": 1}]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
