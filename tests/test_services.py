import asyncio
import unittest
from types import SimpleNamespace
from unittest.mock import patch

import stripe

from pak_cuisine.core.config import Settings
from pak_cuisine.services.notifications import EmailDispatcher, MockEmailChannel
from pak_cuisine.services.payment import MockPaymentService, StripePaymentService, to_cents
from pak_cuisine.services.realtime import RealtimeBroker
from pak_cuisine.tasks import deliver_emails, send_email_task


class MockPaymentServiceTests(unittest.IsolatedAsyncioTestCase):

    async def test_creates_intent(self):
        service = MockPaymentService()

        result = await service.create_payment_intent(25.0, receipt_email="a@example.com")

        self.assertTrue(result.success)
        self.assertTrue(result.client_secret.startswith(result.payment_intent_id))
        self.assertEqual(service.created_intents, [result])

    async def test_invalid_amount(self):
        result = await MockPaymentService().create_payment_intent(0)

        self.assertFalse(result.success)
        self.assertEqual(result.error_message, "Invalid amount")

    async def test_simulated_failure(self):
        result = await MockPaymentService(failure_rate=1.0).create_payment_intent(10)

        self.assertFalse(result.success)
        self.assertIsNotNone(result.error_code)

    async def test_retrieve_created_intent(self):
        service = MockPaymentService()
        created = await service.create_payment_intent(12.5)

        found = await service.retrieve_payment_intent(created.payment_intent_id)
        missing = await service.retrieve_payment_intent("pi_unknown")

        self.assertTrue(found.success)
        self.assertEqual(found.status, "succeeded")
        self.assertEqual(found.amount, 12.5)
        self.assertFalse(missing.success)
        self.assertEqual(missing.error_code, "resource_missing")


class StripePaymentServiceTests(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        settings = Settings(stripe_secret_key="sk_test_123")
        with patch("pak_cuisine.services.payment.stripe.get_settings", return_value=settings):
            self.service = StripePaymentService()

    def test_to_cents(self):
        self.assertEqual(to_cents(19.99), 1999)
        self.assertEqual(to_cents(0.1 + 0.2), 30)

    def test_requires_secret_key(self):
        with patch("pak_cuisine.services.payment.stripe.get_settings", return_value=Settings(stripe_secret_key=None)):
            with self.assertRaises(ValueError):
                StripePaymentService()

    async def test_amount_sent_in_cents(self):
        intent = SimpleNamespace(
            id="pi_1", client_secret="pi_1_secret_x", amount=1250, currency="usd",
            status="requires_payment_method",
        )

        with patch.object(stripe.PaymentIntent, "create", return_value=intent) as create:
            result = await self.service.create_payment_intent(12.5, receipt_email="a@example.com")

        self.assertTrue(result.success)
        self.assertEqual(result.client_secret, "pi_1_secret_x")
        self.assertEqual(result.amount, 12.5)
        self.assertEqual(create.call_args.kwargs["amount"], 1250)
        self.assertEqual(create.call_args.kwargs["receipt_email"], "a@example.com")

    async def test_retrieve_intent(self):
        intent = SimpleNamespace(id="pi_1", amount=2700, currency="usd", status="succeeded")

        with patch.object(stripe.PaymentIntent, "retrieve", return_value=intent) as retrieve:
            result = await self.service.retrieve_payment_intent("pi_1")

        retrieve.assert_called_once_with("pi_1")
        self.assertTrue(result.success)
        self.assertEqual(result.amount, 27.0)
        self.assertEqual(result.status, "succeeded")

    async def test_retrieve_unknown_intent(self):
        error = stripe.InvalidRequestError("No such payment_intent: 'made-up'", param="intent")

        with patch.object(stripe.PaymentIntent, "retrieve", side_effect=error):
            result = await self.service.retrieve_payment_intent("made-up")

        self.assertFalse(result.success)
        self.assertEqual(result.error_code, "invalid_request")

    async def test_provider_error_reported(self):
        error = stripe.InvalidRequestError("Amount must be at least $0.50", param="amount")

        with patch.object(stripe.PaymentIntent, "create", side_effect=error):
            result = await self.service.create_payment_intent(0.2)

        self.assertFalse(result.success)
        self.assertEqual(result.error_code, "invalid_request")
        self.assertIn("Amount must be at least", result.error_message)


class RealtimeBrokerTests(unittest.IsolatedAsyncioTestCase):

    async def test_only_watched_tables_are_published(self):
        broker = RealtimeBroker()
        queue = broker.subscribe()

        await broker.publish("deals", {"id": "d1"})
        await broker.publish("reservations", {"id": "r1", "guest_name": "Omar"})

        event = await asyncio.wait_for(queue.get(), timeout=1)
        self.assertEqual(event.to_dict()["message"], "New reservation from Omar")
        self.assertTrue(queue.empty())

    async def test_full_queue_drops_event(self):
        broker = RealtimeBroker(max_queue_size=1)
        slow = broker.subscribe()
        fast = broker.subscribe()

        await broker.publish("orders", {"id": "1"})
        fast.get_nowait()
        await broker.publish("orders", {"id": "2"})

        self.assertEqual(slow.qsize(), 1)
        self.assertEqual(fast.get_nowait().record["id"], "2")

    async def test_unsubscribe(self):
        broker = RealtimeBroker()
        queue = broker.subscribe()
        broker.unsubscribe(queue)

        await broker.publish("orders", {"id": "1"})
        self.assertEqual(broker.subscriber_count, 0)
        self.assertTrue(queue.empty())


class DeliverEmailsTests(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.channel = MockEmailChannel()
        self.dispatcher = EmailDispatcher(None, [self.channel], use_smtp=False)
        self.request = {
            "template": "subscription_confirmation",
            "kind": "subscription",
            "payload": {"email": "fan@example.com"},
            "items": None,
        }

    async def test_inline_delivery(self):
        [result] = await deliver_emails([self.request], self.dispatcher)

        self.assertTrue(result["success"])
        self.assertEqual(self.channel.sent[0].to_email, "fan@example.com")

    async def test_background_delivery_queues_tasks(self):
        settings = Settings(background_email=True)
        task = SimpleNamespace(id="task-1")

        with patch("pak_cuisine.tasks.get_settings", return_value=settings), \
                patch.object(send_email_task, "delay", return_value=task) as delay:
            [result] = await deliver_emails([self.request], self.dispatcher)

        self.assertEqual(result, {"success": True, "method": "queued", "task_id": "task-1"})
        delay.assert_called_once_with(self.request)
        self.assertEqual(self.channel.sent, [])
