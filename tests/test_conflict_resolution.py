"""Tests for POST /api/meal-orders/{id}/resolve-conflict."""

from mealplanner.database import SessionLocal
from mealplanner.models import VersionedRecord
from mealplanner.repositories import MealOrderRepository
from tests.conftest import create_order


def _conflict(client, order_id: str) -> dict:
    """Advance the order to v2 as client A, then return client B's 409 body."""
    client.patch(f"/api/meal-orders/{order_id}", json={"urgent": True, "version": 1})
    resp = client.patch(f"/api/meal-orders/{order_id}", json={"specialNotes": "extra gravy", "version": 1})
    assert resp.status_code == 409
    return resp.json()


class TestResolveConflict:

    def test_scenario_b_merge_creates_single_resolution_snapshot(self, client, db, resident):
        order = create_order(client, resident.id)
        conflict = _conflict(client, order["id"])

        merged = {**conflict["currentVersion"], "specialNotes": conflict["yourVersion"]["specialNotes"]}
        resp = client.post(
            f"/api/meal-orders/{order['id']}/resolve-conflict",
            json={"mergedData": merged, "resolvedBy": "nurse-b"},
        )
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["success"] is True
        assert body["resolvedDocument"]["version"] == 3
        assert body["resolvedDocument"]["urgent"] is True
        assert body["resolvedDocument"]["specialNotes"] == "extra gravy"

        db.expire_all()
        snapshots = (
            db.query(VersionedRecord)
            .filter(VersionedRecord.document_id == order["id"])
            .order_by(VersionedRecord.version)
            .all()
        )
        assert [s.version for s in snapshots] == [1, 2, 3]
        resolution = snapshots[-1]
        assert resolution.change_type == "update"
        assert resolution.is_resolution is True
        assert resolution.snapshot["version"] == 2
        assert resolution.changed_by == "nurse-b"
        assert resolution.changed_fields == ["specialNotes"]

    def test_resolution_targets_latest_version(self, client, resident):
        order = create_order(client, resident.id)
        _conflict(client, order["id"])

        # A third writer moves the order on after the conflict was reported
        client.patch(f"/api/meal-orders/{order['id']}", json={"urgent": False, "version": 2})

        resp = client.post(
            f"/api/meal-orders/{order['id']}/resolve-conflict",
            json={"mergedData": {"specialNotes": "extra gravy", "version": 1}},
        )
        assert resp.status_code == 200
        resolved = resp.json()["resolvedDocument"]
        assert resolved["version"] == 4
        # Fields the merge did not mention keep the latest value
        assert resolved["urgent"] is False

    def test_version_inside_merge_is_ignored(self, client, resident):
        order = create_order(client, resident.id)
        resp = client.post(
            f"/api/meal-orders/{order['id']}/resolve-conflict",
            json={"mergedData": {"urgent": True, "version": 42}},
        )
        assert resp.status_code == 200
        assert resp.json()["resolvedDocument"]["version"] == 2

    def test_missing_merged_data_400(self, client, db, resident):
        order = create_order(client, resident.id)
        resp = client.post(f"/api/meal-orders/{order['id']}/resolve-conflict", json={"resolvedBy": "x"})
        assert resp.status_code == 400
        assert resp.json()["details"]["field"] == "mergedData"
        assert client.get(f"/api/meal-orders/{order['id']}").json()["version"] == 1

    def test_unknown_order_404(self, client):
        resp = client.post("/api/meal-orders/nope/resolve-conflict", json={"mergedData": {"urgent": True}})
        assert resp.status_code == 404

    def test_concurrent_write_during_resolution_conflicts(self, client, db, resident, monkeypatch):
        order = create_order(client, resident.id)
        original = MealOrderRepository.compare_and_swap

        def _race(self, order_id, values, expected_version):
            # Another writer commits between the resolver's read and its write
            other = SessionLocal()
            try:
                original(MealOrderRepository(other), order_id, {"urgent": True}, None)
                other.commit()
            finally:
                other.close()
            return original(self, order_id, values, expected_version)

        monkeypatch.setattr(MealOrderRepository, "compare_and_swap", _race)

        resp = client.post(
            f"/api/meal-orders/{order['id']}/resolve-conflict",
            json={"mergedData": {"specialNotes": "merged"}},
        )
        assert resp.status_code == 409
        body = resp.json()
        assert body["currentVersion"]["version"] == 2
        assert body["yourVersion"]["version"] == 1

        monkeypatch.undo()
        current = client.get(f"/api/meal-orders/{order['id']}").json()
        assert current["version"] == 2
        assert current["specialNotes"] is None

    def test_resolution_is_audited(self, client, resident):
        order = create_order(client, resident.id)
        client.post(
            f"/api/meal-orders/{order['id']}/resolve-conflict",
            json={"mergedData": {"urgent": True}, "resolvedBy": "nurse-b"},
        )
        entries = client.get("/api/audit-logs", params={"action": "conflict_resolved"}).json()
        assert len(entries) == 1
        assert entries[0]["resourceId"] == order["id"]
        assert entries[0]["details"]["resolvedBy"] == "nurse-b"
        assert entries[0]["details"]["toVersion"] == 2
