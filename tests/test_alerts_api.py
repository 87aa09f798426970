"""Tests for urgent-order alerts and their acknowledgement."""

import pytest

from mealplanner.models import Alert
from mealplanner.services.alert_service import needs_urgent_alert, urgent_order_message
from tests.conftest import bearer, create_order, make_order


class TestAlertRules:

    def test_create_urgent_raises(self):
        assert needs_urgent_alert(None, {"urgent": True})
        assert not needs_urgent_alert(None, {"urgent": False})

    def test_only_false_to_true_raises(self):
        assert needs_urgent_alert({"urgent": False}, {"urgent": True})
        assert not needs_urgent_alert({"urgent": True}, {"urgent": True})
        assert not needs_urgent_alert({"urgent": True}, {"urgent": False})

    def test_message_names_resident_and_room(self, resident):
        assert urgent_order_message("lunch", resident) == "Urgent Lunch order for Erna Schmidt (Room 101)"
        assert urgent_order_message("dinner", None) == "Urgent Dinner order for Unknown (Room N/A)"


class TestAlertCreation:

    def test_urgent_order_raises_one_alert(self, client, resident):
        order = create_order(client, resident.id, urgent=True)
        alerts = client.get("/api/alerts").json()
        assert len(alerts) == 1
        assert alerts[0]["mealOrderId"] == order["id"]
        assert alerts[0]["severity"] == "high"
        assert alerts[0]["acknowledged"] is False
        assert alerts[0]["message"] == "Urgent Lunch order for Erna Schmidt (Room 101)"

    def test_regular_order_raises_nothing(self, client, resident):
        create_order(client, resident.id)
        assert client.get("/api/alerts").json() == []

    def test_update_to_urgent_raises_once(self, client, resident):
        order = create_order(client, resident.id)
        client.patch(f"/api/meal-orders/{order['id']}", json={"urgent": True, "version": 1})
        # Still urgent: no second alert
        client.patch(f"/api/meal-orders/{order['id']}", json={"specialNotes": "asap", "version": 2})
        alerts = client.get("/api/alerts", params={"mealOrderId": order["id"]}).json()
        assert len(alerts) == 1

    def test_conflicting_write_raises_nothing(self, client, db, resident):
        order = create_order(client, resident.id)
        client.patch(f"/api/meal-orders/{order['id']}", json={"specialNotes": "x", "version": 1})
        resp = client.patch(f"/api/meal-orders/{order['id']}", json={"urgent": True, "version": 1})
        assert resp.status_code == 409
        assert db.query(Alert).count() == 0

    def test_resolution_setting_urgent_raises(self, client, resident):
        order = create_order(client, resident.id)
        client.post(
            f"/api/meal-orders/{order['id']}/resolve-conflict",
            json={"mergedData": {"urgent": True}},
        )
        assert len(client.get("/api/alerts").json()) == 1


class TestAcknowledge:

    def _alert_id(self, client, resident) -> str:
        create_order(client, resident.id, urgent=True)
        return client.get("/api/alerts").json()[0]["id"]

    def test_acknowledge_records_who_and_when(self, client, resident):
        alert_id = self._alert_id(client, resident)
        resp = client.post(f"/api/alerts/{alert_id}/acknowledge")
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["alert"]["acknowledged"] is True
        assert body["alert"]["acknowledgedBy"] == "anonymous"
        assert body["alert"]["acknowledgedAt"] is not None

        assert client.get("/api/alerts", params={"acknowledged": "false"}).json() == []

    def test_second_acknowledge_conflicts(self, client, resident):
        alert_id = self._alert_id(client, resident)
        client.post(f"/api/alerts/{alert_id}/acknowledge")
        resp = client.post(f"/api/alerts/{alert_id}/acknowledge")
        assert resp.status_code == 409
        body = resp.json()
        assert body["error"] == "ALERT_ALREADY_ACKNOWLEDGED"
        assert body["details"]["acknowledged_by"] == "anonymous"

    def test_unknown_alert_404(self, client):
        resp = client.post("/api/alerts/missing/acknowledge")
        assert resp.status_code == 404
        assert resp.json()["error"] == "ALERT_NOT_FOUND"

    def test_acknowledge_is_audited(self, client, resident):
        alert_id = self._alert_id(client, resident)
        client.post(f"/api/alerts/{alert_id}/acknowledge")
        entries = client.get("/api/audit-logs", params={"resourceType": "alerts"}).json()
        assert [e["resourceId"] for e in entries] == [alert_id]


@pytest.mark.usefixtures("auth_enabled")
class TestAlertAccess:

    def _alert_id(self, client, resident) -> str:
        client.post(
            "/api/meal-orders", json=make_order(resident.id, urgent=True),
            headers=bearer("caregiver-1", "caregiver"),
        )
        return client.get("/api/alerts", headers=bearer("kitchen-1", "kitchen")).json()[0]["id"]

    def test_caregiver_cannot_read_or_acknowledge(self, client, users, resident):
        alert_id = self._alert_id(client, resident)
        caregiver = bearer("caregiver-1", "caregiver")
        assert client.get("/api/alerts", headers=caregiver).status_code == 403
        assert client.post(f"/api/alerts/{alert_id}/acknowledge", headers=caregiver).status_code == 403

    def test_kitchen_acknowledges(self, client, users, resident):
        alert_id = self._alert_id(client, resident)
        resp = client.post(f"/api/alerts/{alert_id}/acknowledge", headers=bearer("kitchen-1", "kitchen"))
        assert resp.status_code == 200
        assert resp.json()["alert"]["acknowledgedBy"] == "kitchen-1"
