import unittest

from pak_cuisine.services.auth import AuthError, AuthService
from pak_cuisine.services.backend import MemoryBackend


class AuthServiceTests(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.backend = MemoryBackend()
        self.auth = AuthService(self.backend)

    async def test_sign_up_defaults_to_user_role(self):
        user = await self.auth.sign_up("Sara@Example.com", "secret1", "Sara")

        self.assertEqual(user["email"], "sara@example.com")
        self.assertEqual(user["role"], "user")
        self.assertNotIn("password_hash", user)

    async def test_sign_up_validation(self):
        with self.assertRaises(AuthError):
            await self.auth.sign_up("nope", "secret1")
        with self.assertRaises(AuthError):
            await self.auth.sign_up("a@example.com", "123")
        with self.assertRaises(AuthError):
            await self.auth.sign_up("a@example.com", "secret1", role="owner")

    async def test_duplicate_email(self):
        await self.auth.sign_up("a@example.com", "secret1")

        with self.assertRaises(AuthError) as ctx:
            await self.auth.sign_up("a@example.com", "secret2")
        self.assertEqual(ctx.exception.status_code, 409)

    async def test_sign_in_and_token_lookup(self):
        await self.auth.sign_up("a@example.com", "secret1")

        session = await self.auth.sign_in("a@example.com", "secret1")
        user = await self.auth.user_for_token(session["token"])

        self.assertEqual(user["email"], "a@example.com")
        self.assertTrue(await self.auth.sign_out(session["token"]))
        self.assertIsNone(await self.auth.user_for_token(session["token"]))
        self.assertFalse(await self.auth.sign_out(session["token"]))

    async def test_wrong_password(self):
        await self.auth.sign_up("a@example.com", "secret1")

        with self.assertRaises(AuthError) as ctx:
            await self.auth.sign_in("a@example.com", "wrong!")
        self.assertEqual(ctx.exception.status_code, 401)
        self.assertEqual(ctx.exception.message, "Invalid login credentials")

    async def test_set_role(self):
        user = await self.auth.sign_up("a@example.com", "secret1")

        promoted = await self.auth.set_role(user["id"], "admin")
        self.assertEqual(promoted["role"], "admin")
        self.assertEqual(await self.auth.role_of(user["id"]), "admin")
        self.assertEqual(await self.backend.table("user_roles").count(), 1)

        with self.assertRaises(AuthError) as ctx:
            await self.auth.set_role("missing", "admin")
        self.assertEqual(ctx.exception.status_code, 404)

    async def test_ensure_admin_is_idempotent(self):
        first = await self.auth.ensure_admin("admin@example.com", "secret1")
        second = await self.auth.ensure_admin("admin@example.com", "secret1")

        self.assertEqual(first["id"], second["id"])
        self.assertEqual(second["role"], "admin")
        self.assertEqual(len(await self.auth.list_users()), 1)

    async def test_ensure_admin_promotes_existing_account_with_matching_password(self):
        user = await self.auth.sign_up("admin@example.com", "secret1")

        admin = await self.auth.ensure_admin("admin@example.com", "secret1")

        self.assertEqual(admin["id"], user["id"])
        self.assertEqual(admin["role"], "admin")

    async def test_ensure_admin_leaves_account_with_other_password_alone(self):
        await self.auth.sign_up("admin@example.com", "someone-else")

        result = await self.auth.ensure_admin("admin@example.com", "operator-secret")

        self.assertEqual(result["role"], "user")
        session = await self.auth.sign_in("admin@example.com", "someone-else")
        self.assertEqual((await self.auth.user_for_token(session["token"]))["role"], "user")
        with self.assertRaises(AuthError):
            await self.auth.sign_in("admin@example.com", "operator-secret")
