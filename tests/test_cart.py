import json
import tempfile
import unittest
from unittest.mock import MagicMock

from pak_cuisine.services.cart import (
    CartLine,
    CartStore,
    JsonFileStorage,
    MemoryStorage,
    RedisStorage,
)

BIRYANI = {"id": "m1", "name": "Chicken Biryani", "price": 12.5, "image": "/images/biryani.jpg"}
NAAN = {"id": "m2", "name": "Garlic Naan", "price": 2.0}


class CartStoreTests(unittest.TestCase):

    def setUp(self):
        self.storage = MemoryStorage()
        self.cart = CartStore(self.storage, cart_id="abc")

    def test_new_cart_is_empty(self):
        self.assertTrue(self.cart.is_empty)
        self.assertEqual(self.cart.total, 0)
        self.assertEqual(self.cart.count, 0)

    def test_add_new_item_starts_at_quantity_one(self):
        notice = self.cart.add_item(BIRYANI)

        self.assertEqual(notice, "Chicken Biryani added to your cart")
        [line] = self.cart.items
        self.assertEqual(line.quantity, 1)
        self.assertEqual(line.image, "/images/biryani.jpg")

    def test_adding_same_id_increments_quantity(self):
        self.cart.add_item(BIRYANI)
        notice = self.cart.add_item(BIRYANI)

        self.assertEqual(notice, "Increased quantity of Chicken Biryani")
        self.assertEqual(len(self.cart.items), 1)
        self.assertEqual(self.cart.items[0].quantity, 2)

    def test_lines_keep_insertion_order(self):
        self.cart.add_item(NAAN)
        self.cart.add_item(BIRYANI)
        self.cart.add_item(NAAN)

        self.assertEqual([line.id for line in self.cart.items], ["m2", "m1"])

    def test_three_units_at_25(self):
        for _ in range(3):
            self.cart.add_item({"id": "deal-1", "name": "Family Deal", "price": 25.00})

        self.assertEqual(self.cart.total, 75.0)
        self.assertEqual(self.cart.count, 3)

        self.cart.update_quantity("deal-1", -3)
        self.assertTrue(self.cart.is_empty)

    def test_total_and_count(self):
        self.cart.add_item(BIRYANI)
        self.cart.add_item(BIRYANI)
        self.cart.add_item(NAAN)

        self.assertAlmostEqual(self.cart.total, 27.0)
        self.assertEqual(self.cart.count, 3)

    def test_update_quantity_clamps_and_removes_at_zero(self):
        self.cart.add_item(BIRYANI)
        self.cart.update_quantity("m1", -5)

        self.assertTrue(self.cart.is_empty)

    def test_update_quantity_for_missing_item_is_noop(self):
        self.cart.add_item(BIRYANI)
        self.cart.update_quantity("nope", 2)

        self.assertEqual(self.cart.count, 1)

    def test_two_of_a_and_one_of_b(self):
        self.cart.add_item({"id": "a", "name": "Item A", "price": 10.0})
        self.cart.add_item({"id": "a", "name": "Item A", "price": 10.0})
        self.cart.add_item({"id": "b", "name": "Item B", "price": 5.0})

        self.assertEqual(round(self.cart.total, 2), 25.00)
        self.assertEqual(self.cart.count, 3)

    def test_decrement_at_one_removes_then_noop(self):
        self.cart.add_item(BIRYANI)
        self.cart.add_item(NAAN)

        self.cart.update_quantity("m1", -1)
        self.assertEqual([line.id for line in self.cart.items], ["m2"])

        self.cart.update_quantity("m1", -1)
        self.assertEqual([line.id for line in self.cart.items], ["m2"])
        self.assertEqual(self.cart.count, 1)
        reloaded = CartStore(self.storage, cart_id="abc")
        self.assertEqual([line.id for line in reloaded.items], ["m2"])

    def test_total_matches_lines_after_mixed_operations(self):
        kebab = {"id": "m3", "name": "Seekh Kebab", "price": 7.25}
        self.cart.add_item(BIRYANI)
        self.cart.add_item(NAAN)
        self.cart.add_item(kebab)
        self.cart.add_item(NAAN)
        self.cart.update_quantity("m3", 3)
        self.cart.remove_item("m1")
        self.cart.update_quantity("m2", -1)
        self.cart.add_item(BIRYANI)
        self.cart.update_quantity("m3", -2)

        expected = sum(line.price * line.quantity for line in self.cart.items)
        self.assertAlmostEqual(self.cart.total, expected)
        self.assertAlmostEqual(self.cart.total, 2.0 + 7.25 * 2 + 12.5)
        self.assertEqual(self.cart.count, 4)

    def test_remove_item(self):
        self.cart.add_item(BIRYANI)
        self.cart.add_item(NAAN)
        self.cart.remove_item("m1")

        self.assertEqual([line.id for line in self.cart.items], ["m2"])

    def test_clear(self):
        self.cart.add_item(BIRYANI)
        self.cart.clear()

        self.assertTrue(self.cart.is_empty)
        self.assertEqual(json.loads(self.storage.get("cart:abc")), [])

    def test_items_are_copies(self):
        self.cart.add_item(BIRYANI)
        self.cart.items[0].quantity = 99

        self.assertEqual(self.cart.count, 1)

    def test_accepts_cart_line(self):
        self.cart.add_item(CartLine(id="m3", name="Kheer", price=4.99))
        self.assertEqual(self.cart.items[0].name, "Kheer")

    def test_state_survives_reload(self):
        self.cart.add_item(BIRYANI)
        self.cart.add_item(BIRYANI)

        reloaded = CartStore(self.storage, cart_id="abc")
        self.assertEqual(reloaded.count, 2)
        self.assertEqual(reloaded.items[0].name, "Chicken Biryani")

    def test_carts_are_isolated_by_id(self):
        self.cart.add_item(BIRYANI)
        other = CartStore(self.storage, cart_id="xyz")

        self.assertTrue(other.is_empty)

    def test_corrupted_payload_starts_empty(self):
        self.storage.set("cart:abc", "{not json")
        self.assertTrue(CartStore(self.storage, cart_id="abc").is_empty)

    def test_wrong_shape_payload_starts_empty(self):
        self.storage.set("cart:abc", json.dumps({"id": "m1"}))
        self.assertTrue(CartStore(self.storage, cart_id="abc").is_empty)

        self.storage.set("cart:abc", json.dumps([{"id": "m1"}]))
        self.assertTrue(CartStore(self.storage, cart_id="abc").is_empty)

    def test_to_dict_rounds_total(self):
        for _ in range(3):
            self.cart.add_item({"id": "x", "name": "Chai", "price": 0.1})

        data = self.cart.to_dict()
        self.assertEqual(data["total"], 0.3)
        self.assertEqual(data["count"], 3)
        self.assertEqual(data["cart_id"], "abc")


class JsonFileStorageTests(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.storage = JsonFileStorage(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_round_trip_and_delete(self):
        self.storage.set("cart:a/b", "[]")
        self.assertEqual(self.storage.get("cart:a/b"), "[]")

        self.storage.delete("cart:a/b")
        self.assertIsNone(self.storage.get("cart:a/b"))

    def test_cart_persists_to_disk(self):
        CartStore(self.storage, cart_id="s1").add_item(BIRYANI)

        reopened = CartStore(JsonFileStorage(self.tmp.name), cart_id="s1")
        self.assertEqual(reopened.count, 1)


class RedisStorageTests(unittest.TestCase):

    def test_set_uses_ttl(self):
        client = MagicMock()
        storage = RedisStorage(client, ttl_seconds=60)

        storage.set("cart:a", "[]")
        client.set.assert_called_once_with("cart:a", "[]", ex=60)

    def test_get_decodes_bytes(self):
        client = MagicMock()
        client.get.return_value = b"[]"

        self.assertEqual(RedisStorage(client).get("cart:a"), "[]")
