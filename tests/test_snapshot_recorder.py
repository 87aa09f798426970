"""Tests for version snapshots: changed-field detection, sequencing and
the non-fatal handling of snapshot write failures."""

import sqlalchemy.exc

from mealplanner.models import ArchivedRecord, MealOrder, VersionedRecord
from mealplanner.repositories import VersionedRecordRepository
from mealplanner.services.snapshot_recorder import (
    RESOLUTION_FIELDS, SNAPSHOT_WARNING, SnapshotRecorder, compute_changed_fields,
)
from tests.conftest import create_order


class TestComputeChangedFields:

    def test_reports_only_differing_fields_in_field_order(self):
        before = {"status": "pending", "urgent": False, "specialNotes": None}
        after = {"specialNotes": "soft food", "urgent": True, "status": "pending"}
        assert compute_changed_fields(before, after) == ["urgent", "specialNotes"]

    def test_nested_options_compare_by_value(self):
        before = {"lunchOptions": {"soup": True, "portionSize": "small"}}
        same = {"lunchOptions": {"portionSize": "small", "soup": True}}
        changed = {"lunchOptions": {"portionSize": "large", "soup": True}}
        assert compute_changed_fields(before, same) == []
        assert compute_changed_fields(before, changed) == ["lunchOptions"]

    def test_fields_absent_from_after_are_not_reported(self):
        before = {"status": "pending", "urgent": True}
        assert compute_changed_fields(before, {"status": "prepared"}, RESOLUTION_FIELDS) == ["status"]

    def test_untracked_fields_ignored(self):
        assert compute_changed_fields({"updatedAt": "a"}, {"updatedAt": "b"}) == []


class TestSnapshotSequence:

    def test_first_snapshot_is_version_one(self, db):
        record = SnapshotRecorder(db).record("meal-orders", "doc-1", {"version": 1}, "create", [], "tester")
        db.commit()
        assert record.version == 1

    def test_sequence_continues_after_archiving(self, db):
        db.add(ArchivedRecord(
            collection_name="meal-orders", document_id="doc-1",
            source_collection="versioned-records", source_id="17", record_version=4,
            data={}, retention_period_days=365,
        ))
        db.commit()
        assert VersionedRecordRepository(db).next_version("meal-orders", "doc-1") == 5
        assert VersionedRecordRepository(db).next_version("meal-orders", "doc-2") == 1


class TestSnapshotFailure:

    def test_failed_snapshot_keeps_update_and_warns(self, client, db, resident, monkeypatch):
        order = create_order(client, resident.id)

        def _fail(self, *args, **kwargs):
            raise sqlalchemy.exc.OperationalError("INSERT INTO versioned_records", {}, Exception("disk I/O error"))

        monkeypatch.setattr(VersionedRecordRepository, "create", _fail)
        resp = client.patch(f"/api/meal-orders/{order['id']}", json={"urgent": True, "version": 1})

        assert resp.status_code == 200
        assert resp.json()["version"] == 2
        assert resp.json()["warnings"] == [SNAPSHOT_WARNING]

        db.expire_all()
        assert db.get(MealOrder, order["id"]).version == 2
        assert db.query(VersionedRecord).filter(VersionedRecord.document_id == order["id"]).count() == 1

    def test_next_snapshot_after_failure_continues_sequence(self, client, db, resident, monkeypatch):
        order = create_order(client, resident.id)

        def _fail(self, *args, **kwargs):
            raise sqlalchemy.exc.OperationalError("INSERT INTO versioned_records", {}, Exception("locked"))

        monkeypatch.setattr(VersionedRecordRepository, "create", _fail)
        client.patch(f"/api/meal-orders/{order['id']}", json={"urgent": True, "version": 1})
        monkeypatch.undo()

        resp = client.patch(f"/api/meal-orders/{order['id']}", json={"urgent": False, "version": 2})
        assert resp.json()["warnings"] == []
        versions = client.get(f"/api/meal-orders/{order['id']}/versions").json()
        assert [v["version"] for v in versions] == [2, 1]
        assert versions[0]["snapshot"]["version"] == 2
