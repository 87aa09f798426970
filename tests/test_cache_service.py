"""Tests for the TTL entity cache and its invalidation hooks."""

import time

from mealplanner.services.cache_service import EntityCache, entity_cache
from mealplanner.services.meal_order_service import COLLECTION
from tests.conftest import create_order


class TestEntityCache:

    def test_get_set_invalidate(self):
        cache = EntityCache(maxsize=10, ttl=60)
        cache.set("meal-orders", "a", {"version": 1})
        assert cache.get("meal-orders", "a") == {"version": 1}
        cache.invalidate("meal-orders", "a")
        assert cache.get("meal-orders", "a") is None

    def test_keys_are_scoped_by_entity(self):
        cache = EntityCache(maxsize=10, ttl=60)
        cache.set("meal-orders", "1", {"kind": "order"})
        cache.set("users", "1", {"kind": "user"})
        cache.invalidate("users", "1")
        assert cache.get("meal-orders", "1") == {"kind": "order"}

    def test_entries_expire(self):
        cache = EntityCache(maxsize=10, ttl=0.05)
        cache.set("users", "u", {"role": "admin"})
        time.sleep(0.1)
        assert cache.get("users", "u") is None

    def test_returned_values_are_copies(self):
        cache = EntityCache(maxsize=10, ttl=60)
        cache.set("meal-orders", "a", {"options": {"soup": True}})
        cache.get("meal-orders", "a")["options"]["soup"] = False
        assert cache.get("meal-orders", "a") == {"options": {"soup": True}}

    def test_invalidating_missing_key_is_harmless(self):
        EntityCache().invalidate("meal-orders", "nothing")


class TestInvalidationHooks:

    def test_read_populates_cache(self, client, resident):
        order = create_order(client, resident.id)
        assert entity_cache.get(COLLECTION, order["id"]) is None
        client.get(f"/api/meal-orders/{order['id']}")
        assert entity_cache.get(COLLECTION, order["id"])["version"] == 1

    def test_update_invalidates(self, client, resident):
        order = create_order(client, resident.id)
        client.get(f"/api/meal-orders/{order['id']}")
        client.patch(f"/api/meal-orders/{order['id']}", json={"urgent": True, "version": 1})
        assert entity_cache.get(COLLECTION, order["id"]) is None

    def test_resolution_invalidates(self, client, resident):
        order = create_order(client, resident.id)
        client.get(f"/api/meal-orders/{order['id']}")
        client.post(f"/api/meal-orders/{order['id']}/resolve-conflict", json={"mergedData": {"urgent": True}})
        assert entity_cache.get(COLLECTION, order["id"]) is None

    def test_delete_invalidates(self, client, resident):
        order = create_order(client, resident.id)
        client.patch(f"/api/meal-orders/{order['id']}", json={"status": "completed", "version": 1})
        client.get(f"/api/meal-orders/{order['id']}")
        client.delete(f"/api/meal-orders/{order['id']}")
        assert entity_cache.get(COLLECTION, order["id"]) is None
