"""Tests for GET /api/meal-orders/search."""

from datetime import date

import pytest

from mealplanner.models import Resident
from tests.conftest import create_order


@pytest.fixture()
def residents(db) -> dict:
    created = {
        "erna": Resident(name="Erna Schmidt", room_number="101", dietary_restrictions=["lactose-free"]),
        "karl": Resident(name="Karl Weber", room_number="204", dietary_restrictions=["diabetic", "no pork"]),
    }
    db.add_all(created.values())
    db.commit()
    return created


@pytest.fixture()
def orders(client, residents) -> dict:
    erna, karl = residents["erna"].id, residents["karl"].id
    return {
        "erna_lunch": create_order(client, erna, meal_type="lunch", order_date=date(2026, 11, 2)),
        "erna_dinner": create_order(client, erna, meal_type="dinner", order_date=date(2026, 11, 3), urgent=True),
        "karl_lunch": create_order(client, karl, meal_type="lunch", order_date=date(2026, 11, 3)),
        "karl_breakfast": create_order(client, karl, meal_type="breakfast", order_date=date(2026, 11, 5)),
    }


def _ids(resp) -> set:
    assert resp.status_code == 200, resp.text
    return {doc["id"] for doc in resp.json()["docs"]}


class TestSearchFilters:

    def test_no_criteria_returns_everything_newest_first(self, client, orders):
        body = client.get("/api/meal-orders/search").json()
        assert body["totalDocs"] == 4
        assert [d["date"] for d in body["docs"]][0] == "2026-11-05"
        assert body["filters"] == {}

    def test_resident_name_is_case_insensitive_substring(self, client, orders):
        ids = _ids(client.get("/api/meal-orders/search", params={"residentName": "schmi"}))
        assert ids == {orders["erna_lunch"]["id"], orders["erna_dinner"]["id"]}

    def test_room_number(self, client, orders):
        ids = _ids(client.get("/api/meal-orders/search", params={"roomNumber": "204"}))
        assert ids == {orders["karl_lunch"]["id"], orders["karl_breakfast"]["id"]}

    def test_dietary_restriction(self, client, orders):
        ids = _ids(client.get("/api/meal-orders/search", params={"dietaryRestrictions": "diabetic"}))
        assert ids == {orders["karl_lunch"]["id"], orders["karl_breakfast"]["id"]}

    def test_unknown_resident_matches_nothing(self, client, orders):
        body = client.get("/api/meal-orders/search", params={"residentName": "nobody"}).json()
        assert body["docs"] == []
        assert body["totalDocs"] == 0
        assert body["totalPages"] == 0

    def test_filters_combine(self, client, orders):
        params = {"mealType": "lunch", "startDate": "2026-11-03", "endDate": "2026-11-04"}
        resp = client.get("/api/meal-orders/search", params=params)
        assert _ids(resp) == {orders["karl_lunch"]["id"]}
        assert resp.json()["filters"] == params

    def test_resident_and_order_criteria_combine(self, client, orders):
        params = {"residentName": "erna", "urgent": "true"}
        assert _ids(client.get("/api/meal-orders/search", params=params)) == {orders["erna_dinner"]["id"]}

    def test_status(self, client, orders):
        client.patch(f"/api/meal-orders/{orders['karl_lunch']['id']}", json={"status": "prepared", "version": 1})
        ids = _ids(client.get("/api/meal-orders/search", params={"status": "prepared"}))
        assert ids == {orders["karl_lunch"]["id"]}


class TestSearchPaging:

    def test_pages(self, client, orders):
        first = client.get("/api/meal-orders/search", params={"limit": 3}).json()
        assert len(first["docs"]) == 3
        assert first["totalPages"] == 2
        assert first["hasNextPage"] is True
        assert first["hasPrevPage"] is False

        second = client.get("/api/meal-orders/search", params={"limit": 3, "page": 2}).json()
        assert len(second["docs"]) == 1
        assert second["hasNextPage"] is False
        assert second["hasPrevPage"] is True

    @pytest.mark.parametrize("params", [{"page": 0}, {"limit": 101}, {"mealType": "brunch"}, {"status": "lost"}])
    def test_invalid_parameters_rejected(self, client, params):
        assert client.get("/api/meal-orders/search", params=params).status_code == 422

    def test_inverted_date_range_400(self, client):
        resp = client.get("/api/meal-orders/search", params={"startDate": "2026-11-05", "endDate": "2026-11-01"})
        assert resp.status_code == 400
        assert resp.json()["details"]["field"] == "startDate"
