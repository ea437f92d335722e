import os
import tempfile
import unittest
from datetime import datetime

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from pak_cuisine.database import init_db
from pak_cuisine.services.backend import (
    BackendError,
    DuplicateKeyError,
    MemoryBackend,
    UnknownTableError,
)
from pak_cuisine.services.backend.sql import SqlBackend
from pak_cuisine.services.realtime import RealtimeBroker


class MemoryBackendTests(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.broker = RealtimeBroker()
        self.backend = MemoryBackend(broker=self.broker)

    async def test_insert_fills_defaults(self):
        deal = await self.backend.table("deals").insert({"title": "Biryani Feast", "price": 20})

        self.assertEqual(len(deal["id"]), 36)
        self.assertTrue(deal["is_active"])
        self.assertIsInstance(deal["created_at"], datetime)
        self.assertIsNone(deal["original_price"])

    async def test_not_null_violation(self):
        with self.assertRaises(BackendError):
            await self.backend.table("deals").insert({"title": "No price"})

    async def test_unique_violation(self):
        subscribers = self.backend.table("subscribers")
        await subscribers.insert({"email": "a@example.com"})

        with self.assertRaises(DuplicateKeyError):
            await subscribers.insert({"email": "a@example.com"})
        self.assertEqual(await subscribers.count(), 1)

    async def test_unknown_table_and_column(self):
        with self.assertRaises(UnknownTableError):
            self.backend.table("nope")
        with self.assertRaises(BackendError):
            await self.backend.table("deals").insert({"title": "x", "price": 1, "colour": "red"})

    async def test_select_filters_and_ordering(self):
        items = self.backend.table("menu_items")
        await items.insert({"name": "Kheer", "price": 5, "display_order": 2})
        await items.insert({"name": "Naan", "price": 2, "display_order": 1, "is_available": False})
        await items.insert({"name": "Tikka", "price": 9, "display_order": 0})

        available = await items.select(filters={"is_available": True}, order_by="display_order")
        self.assertEqual([i["name"] for i in available], ["Tikka", "Kheer"])

        by_name = await items.select(filters={"name": ["Naan", "Kheer"]}, order_by="price", descending=True)
        self.assertEqual([i["name"] for i in by_name], ["Kheer", "Naan"])

        self.assertEqual(len(await items.select(limit=1)), 1)

    async def test_nulls_last_ascending_first_descending(self):
        posts = self.backend.table("blog_posts")
        await posts.insert({"title": "Draft", "slug": "draft", "content": "."})
        await posts.insert({
            "title": "Live", "slug": "live", "content": ".", "published_at": datetime(2026, 1, 1),
        })

        ascending = await posts.select(order_by="published_at")
        descending = await posts.select(order_by="published_at", descending=True)
        self.assertEqual([p["slug"] for p in ascending], ["live", "draft"])
        self.assertEqual([p["slug"] for p in descending], ["draft", "live"])

    async def test_insert_many_is_all_or_nothing(self):
        subscribers = self.backend.table("subscribers")
        await subscribers.insert({"email": "taken@example.com"})

        with self.assertRaises(DuplicateKeyError):
            await subscribers.insert_many([{"email": "new@example.com"}, {"email": "taken@example.com"}])
        self.assertEqual(await subscribers.count(), 1)

    async def test_update_get_delete(self):
        deals = self.backend.table("deals")
        deal = await deals.insert({"title": "Karahi Night", "price": 30})

        updated = await deals.update(deal["id"], {"price": 25})
        self.assertEqual(updated["price"], 25)
        self.assertGreaterEqual(updated["updated_at"], deal["updated_at"])
        self.assertIsNone(await deals.update("missing", {"price": 1}))

        self.assertTrue(await deals.delete(deal["id"]))
        self.assertIsNone(await deals.get(deal["id"]))
        self.assertFalse(await deals.delete(deal["id"]))

    async def test_returned_rows_are_copies(self):
        deals = self.backend.table("deals")
        deal = await deals.insert({"title": "Copy", "price": 1})
        deal["title"] = "Changed"

        self.assertEqual((await deals.get(deal["id"]))["title"], "Copy")

    async def test_upsert(self):
        settings = self.backend.table("site_settings")
        await settings.upsert({"key": "theme", "value": {"primary": "green"}}, on_conflict="key")
        await settings.upsert({"key": "theme", "value": {"primary": "gold"}}, on_conflict="key")

        rows = await settings.select()
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["value"], {"primary": "gold"})

    async def test_watched_inserts_are_published(self):
        queue = self.broker.subscribe()
        await self.backend.table("deals").insert({"title": "Quiet", "price": 1})
        order = await self.backend.table("orders").insert({
            "customer_name": "Ali", "customer_phone": "1", "delivery_address": "x", "total_amount": 10,
        })

        event = queue.get_nowait()
        self.assertEqual(event.table, "orders")
        self.assertEqual(event.record["id"], order["id"])
        self.assertEqual(event.message, "New order from Ali")
        self.assertTrue(queue.empty())


class SqlBackendTests(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        url = f"sqlite+aiosqlite:///{os.path.join(self.tmp.name, 'test.db')}"
        self.engine = create_async_engine(url)
        await init_db(self.engine)
        self.backend = SqlBackend(async_sessionmaker(self.engine, expire_on_commit=False))

    async def asyncTearDown(self):
        await self.engine.dispose()
        self.tmp.cleanup()

    async def test_health_check(self):
        self.assertTrue(await self.backend.health_check())
        self.assertEqual(self.backend.provider_name, "sql")

    async def test_insert_select_update_delete(self):
        deals = self.backend.table("deals")
        deal = await deals.insert({"title": "Biryani Feast", "price": 20, "original_price": 26})
        await deals.insert({"title": "Old Deal", "price": 10, "is_active": False})

        self.assertEqual(len(deal["id"]), 36)
        self.assertTrue(deal["is_active"])

        active = await deals.select(filters={"is_active": True})
        self.assertEqual([d["title"] for d in active], ["Biryani Feast"])

        updated = await deals.update(deal["id"], {"price": 18})
        self.assertEqual(updated["price"], 18)
        self.assertIsNone(await deals.update("missing", {"price": 1}))

        self.assertTrue(await deals.delete(deal["id"]))
        self.assertEqual(await deals.count(), 1)

    async def test_duplicate_key(self):
        subscribers = self.backend.table("subscribers")
        await subscribers.insert({"email": "a@example.com"})

        with self.assertRaises(DuplicateKeyError):
            await subscribers.insert({"email": "a@example.com"})

    async def test_insert_many_and_in_filter(self):
        order = await self.backend.table("orders").insert({
            "customer_name": "Sara", "customer_phone": "1", "delivery_address": "x", "total_amount": 15,
        })
        lines = await self.backend.table("order_items").insert_many([
            {"order_id": order["id"], "item_name": "Naan", "quantity": 2, "unit_price": 2.5, "total_price": 5},
            {"order_id": order["id"], "item_name": "Tikka", "quantity": 1, "unit_price": 10, "total_price": 10},
        ])

        self.assertEqual(len(lines), 2)
        found = await self.backend.table("order_items").select(filters={"order_id": [order["id"]]})
        self.assertEqual({line["item_name"] for line in found}, {"Naan", "Tikka"})

    async def test_find_one_and_upsert(self):
        settings = self.backend.table("site_settings")
        await settings.upsert({"key": "contact", "value": {"phone": "1"}}, on_conflict="key")
        await settings.upsert({"key": "contact", "value": {"phone": "2"}}, on_conflict="key")

        row = await settings.find_one(key="contact")
        self.assertEqual(row["value"], {"phone": "2"})
        self.assertEqual(await settings.count(), 1)
