"""Tests for the /api/residents endpoints."""

from tests.conftest import make_order


class TestResidents:

    def test_create_and_get(self, client):
        resp = client.post("/api/residents", json={"name": "Karl Weber", "roomNumber": "204", "dietaryRestrictions": ["diabetic"]})
        assert resp.status_code == 201
        resident = resp.json()
        assert resident["active"] is True
        assert resident["dietaryRestrictions"] == ["diabetic"]

        fetched = client.get(f"/api/residents/{resident['id']}").json()
        assert fetched["name"] == "Karl Weber"

    def test_missing_resident_404(self, client):
        assert client.get("/api/residents/nope").status_code == 404

    def test_list_active_only(self, client):
        active = client.post("/api/residents", json={"name": "A", "roomNumber": "1"}).json()
        client.post("/api/residents", json={"name": "B", "roomNumber": "2", "active": False})
        listed = client.get("/api/residents", params={"activeOnly": "true"}).json()
        assert [r["id"] for r in listed] == [active["id"]]

    def test_deactivated_resident_gets_no_new_orders(self, client):
        resident = client.post("/api/residents", json={"name": "C", "roomNumber": "3"}).json()
        client.patch(f"/api/residents/{resident['id']}", json={"active": False})
        resp = client.post("/api/meal-orders", json=make_order(resident["id"]))
        assert resp.status_code == 400

    def test_blank_name_rejected(self, client):
        assert client.post("/api/residents", json={"name": "", "roomNumber": "1"}).status_code == 422
