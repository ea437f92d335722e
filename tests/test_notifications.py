import unittest
from urllib.parse import unquote

from pak_cuisine.services.backend import MemoryBackend
from pak_cuisine.services.notifications import (
    EmailDispatcher,
    EmailTemplateError,
    MockEmailChannel,
    SmtpConfig,
)
from pak_cuisine.services.notifications.templates import (
    format_items,
    render_email,
    short_reference,
    whatsapp_link,
)

ORDER = {
    "id": "3f2a9c1e-1111-2222-3333-444455556666",
    "customer_name": "Sara Ahmed",
    "customer_email": "sara@example.com",
    "total_amount": 27,
}


class TemplateHelperTests(unittest.TestCase):

    def test_short_reference(self):
        self.assertEqual(short_reference(ORDER["id"]), "3f2a9c1e")
        self.assertEqual(short_reference(None), "NEW")
        self.assertEqual(short_reference(42), "42")

    def test_format_items(self):
        items = [{"name": "Naan", "quantity": 2}, {"item_name": "Tikka", "quantity": 1}]
        self.assertEqual(format_items(items), "2x Naan, 1x Tikka")
        self.assertEqual(format_items(None), "Check Admin Dashboard")

    def test_whatsapp_link(self):
        link = whatsapp_link("923001234567", "order", "3f2a9c1e", "2x Naan")

        self.assertTrue(link.startswith("https://wa.me/923001234567?text="))
        self.assertEqual(
            unquote(link.split("text=")[1]),
            "Confirming my Order (#3f2a9c1e)\nItems: 2x Naan",
        )
        self.assertIn("Reservation", unquote(whatsapp_link("1", "reservation", "x", "y")))


class RenderEmailTests(unittest.TestCase):

    def test_admin_alert(self):
        rendered = render_email("admin_alert", "order", ORDER, [{"name": "Naan", "quantity": 2}],
                                admin_email="owner@example.com")

        self.assertEqual(rendered.recipient, "owner@example.com")
        self.assertEqual(rendered.message.subject, "NEW ORDER - #3f2a9c1e")
        self.assertEqual(rendered.message.reply_to, "sara@example.com")
        self.assertIn("Sara Ahmed", rendered.message.html)
        self.assertIn("2x Naan", rendered.message.html)

    def test_customer_confirmation_goes_to_guest(self):
        reservation = {"id": "abcdef123456", "guest_name": "Omar", "guest_email": "omar@example.com"}

        rendered = render_email("customer_confirmation", "reservation", reservation)

        self.assertEqual(rendered.recipient, "omar@example.com")
        self.assertEqual(rendered.message.subject, "Action Required: Confirm your reservation - #abcdef12")
        self.assertIn("wa.me", rendered.message.html)

    def test_deal_broadcast(self):
        payload = {"id": "d1", "email": "fan@example.com", "title": "Karahi Night", "price": 30, "original_price": 40}

        rendered = render_email("deal_broadcast", "deal", payload)

        self.assertEqual(rendered.recipient, "fan@example.com")
        self.assertIn("Karahi Night", rendered.message.subject)

    def test_errors(self):
        with self.assertRaises(EmailTemplateError):
            render_email("admin_alert", "order", None)
        with self.assertRaises(EmailTemplateError):
            render_email("newsletter", "order", ORDER)
        with self.assertRaises(EmailTemplateError):
            render_email("customer_thanks", "order", {"id": "x", "customer_name": "No Email"})

    def test_html_is_escaped(self):
        payload = {**ORDER, "customer_name": "<script>alert(1)</script>"}
        rendered = render_email("admin_alert", "order", payload)

        self.assertNotIn("<script>", rendered.message.html)


class SmtpConfigTests(unittest.TestCase):

    def test_settings_form_spelling(self):
        config = SmtpConfig.from_mapping({"host": "mail.example.com", "port": "465", "user": "me@example.com",
                                          "pass": "pw", "secure": False})

        self.assertEqual(config.port, 465)
        self.assertEqual(config.username, "me@example.com")
        self.assertEqual(config.password, "pw")
        self.assertFalse(config.use_tls)
        self.assertEqual(config.from_email, "me@example.com")

    def test_no_host(self):
        self.assertIsNone(SmtpConfig.from_mapping({"user": "x"}))
        self.assertIsNone(SmtpConfig.from_mapping(None))

    def test_unusable_port_is_skipped(self):
        self.assertIsNone(SmtpConfig.from_mapping({"host": "mail.example.com", "port": "smtp"}))
        self.assertIsNone(SmtpConfig.from_mapping({"host": "mail.example.com", "port": 70000}))
        self.assertEqual(SmtpConfig.from_mapping({"host": "mail.example.com", "port": ""}).port, 587)


class RecordingSmtpChannel(MockEmailChannel):
    """Stands in for the SMTP channel and remembers the config it was built with."""

    def __init__(self, config: SmtpConfig, fail: bool = False):
        super().__init__(failure_rate=1.0 if fail else 0.0, name="smtp")
        self.config = config


class EmailDispatcherTests(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.backend = MemoryBackend()
        self.fallback = MockEmailChannel(name="sendgrid")
        self.built: list[RecordingSmtpChannel] = []
        self.smtp_fails = False

    def factory(self, config: SmtpConfig) -> RecordingSmtpChannel:
        channel = RecordingSmtpChannel(config, fail=self.smtp_fails)
        self.built.append(channel)
        return channel

    def make_dispatcher(self) -> EmailDispatcher:
        return EmailDispatcher(self.backend, [self.fallback], smtp_channel_factory=self.factory)

    async def test_without_smtp_config_uses_fallback(self):
        result = await self.make_dispatcher().dispatch("admin_alert", "order", ORDER)

        self.assertTrue(result.success)
        self.assertEqual(result.method, "sendgrid")
        self.assertEqual(self.built, [])

    async def test_smtp_setting_ranks_first(self):
        await self.backend.table("site_settings").insert({"key": "smtp", "value": {"host": "db.example.com"}})

        result = await self.make_dispatcher().dispatch("admin_alert", "order", ORDER)

        self.assertEqual(result.method, "smtp")
        self.assertEqual(self.built[0].config.host, "db.example.com")
        self.assertEqual(self.fallback.sent, [])

    async def test_request_config_beats_stored_setting(self):
        await self.backend.table("site_settings").insert({"key": "smtp", "value": {"host": "db.example.com"}})

        await self.make_dispatcher().dispatch("admin_alert", "order", ORDER, config={"host": "req.example.com"})

        self.assertEqual(self.built[0].config.host, "req.example.com")

    async def test_falls_back_when_smtp_fails(self):
        self.smtp_fails = True

        result = await self.make_dispatcher().dispatch(
            "admin_alert", "order", ORDER, config={"host": "req.example.com"}
        )

        self.assertTrue(result.success)
        self.assertEqual(result.method, "sendgrid")
        self.assertEqual([a.success for a in result.attempts], [False, True])

    async def test_all_channels_fail(self):
        self.smtp_fails = True
        self.fallback.failure_rate = 1.0

        result = await self.make_dispatcher().dispatch(
            "admin_alert", "order", ORDER, config={"host": "req.example.com"}
        )

        self.assertFalse(result.success)
        self.assertIn("smtp", result.error_message)
        self.assertIn("error", result.to_dict())

    async def test_use_smtp_false_skips_smtp(self):
        dispatcher = EmailDispatcher(self.backend, [self.fallback], use_smtp=False, smtp_channel_factory=self.factory)

        await dispatcher.dispatch("admin_alert", "order", ORDER, config={"host": "req.example.com"})

        self.assertEqual(self.built, [])
