"""
Authentication & Roles

Email/password accounts in ``profiles`` (werkzeug password hashes), opaque
bearer tokens in ``auth_sessions`` and one role per user in ``user_roles``.
Admin routes require the ``admin`` role.

Usage:
    auth = AuthService(backend)
    session = await auth.sign_in("admin@pak-cuisine.com", "secret")
    user = await auth.user_for_token(session["token"])
    user["role"]  # "admin"
"""

import logging
import re
import secrets
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from pak_cuisine.models import AppRole
from pak_cuisine.services.backend import BaseBackend, DuplicateKeyError

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 6


class AuthError(Exception):
    """Sign-up/sign-in failed. ``status_code`` is the HTTP status to report."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _public(profile: dict, role: Optional[str]) -> dict:
    return {
        "id": profile["id"],
        "email": profile["email"],
        "full_name": profile.get("full_name"),
        "avatar_url": profile.get("avatar_url"),
        "role": role or AppRole.USER.value,
        "created_at": profile.get("created_at"),
    }


class AuthService:

    def __init__(self, backend: BaseBackend):
        self.backend = backend

    async def role_of(self, user_id: str) -> str:
        row = await self.backend.table("user_roles").find_one(user_id=user_id)
        return row["role"] if row else AppRole.USER.value

    async def sign_up(
        self,
        email: str,
        password: str,
        full_name: Optional[str] = None,
        role: str = AppRole.USER.value,
    ) -> dict:
        email = (email or "").strip().lower()
        if not EMAIL_PATTERN.match(email):
            raise AuthError("Please enter a valid email address.")
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError(f"Password should be at least {MIN_PASSWORD_LENGTH} characters.")
        try:
            role = AppRole(role).value
        except ValueError:
            raise AuthError(f"Invalid role. Options: {[r.value for r in AppRole]}")

        try:
            profile = await self.backend.table("profiles").insert({
                "email": email,
                "password_hash": generate_password_hash(password),
                "full_name": full_name,
            })
        except DuplicateKeyError:
            raise AuthError("User already registered", status_code=409)

        await self.backend.table("user_roles").insert({"user_id": profile["id"], "role": role})
        logger.info(f"User created: {email} ({role})")
        return _public(profile, role)

    async def sign_in(self, email: str, password: str) -> dict:
        email = (email or "").strip().lower()
        profile = await self.backend.table("profiles").find_one(email=email)
        if profile is None or not check_password_hash(profile["password_hash"], password or ""):
            logger.warning(f"Failed sign-in for {email}")
            raise AuthError("Invalid login credentials", status_code=401)

        token = secrets.token_urlsafe(32)
        await self.backend.table("auth_sessions").insert({"token": token, "user_id": profile["id"]})
        role = await self.role_of(profile["id"])
        logger.info(f"User signed in: {email}")
        return {"token": token, "user": _public(profile, role)}

    async def sign_out(self, token: str) -> bool:
        session = await self.backend.table("auth_sessions").find_one(token=token)
        if session is None:
            return False
        return await self.backend.table("auth_sessions").delete(session["id"])

    async def user_for_token(self, token: Optional[str]) -> Optional[dict]:
        if not token:
            return None
        session = await self.backend.table("auth_sessions").find_one(token=token)
        if session is None:
            return None
        profile = await self.backend.table("profiles").get(session["user_id"])
        if profile is None:
            return None
        return _public(profile, await self.role_of(profile["id"]))

    async def list_users(self) -> list[dict]:
        profiles = await self.backend.table("profiles").select(order_by="created_at", descending=True)
        roles = {r["user_id"]: r["role"] for r in await self.backend.table("user_roles").select()}
        return [_public(p, roles.get(p["id"])) for p in profiles]

    async def set_role(self, user_id: str, role: str) -> dict:
        try:
            role = AppRole(role).value
        except ValueError:
            raise AuthError(f"Invalid role. Options: {[r.value for r in AppRole]}")
        profile = await self.backend.table("profiles").get(user_id)
        if profile is None:
            raise AuthError("User not found", status_code=404)
        await self.backend.table("user_roles").upsert({"user_id": user_id, "role": role}, on_conflict="user_id")
        logger.info(f"Role for {profile['email']} set to {role}")
        return _public(profile, role)

    async def ensure_admin(self, email: str, password: str) -> dict:
        """
        Create the bootstrap admin account if it does not exist yet.

        An existing account with that email is only promoted when its
        password matches; otherwise it is left as it is.
        """
        profile = await self.backend.table("profiles").find_one(email=email.strip().lower())
        if profile is not None:
            role = await self.role_of(profile["id"])
            if role == AppRole.ADMIN.value:
                return _public(profile, role)
            if not check_password_hash(profile["password_hash"], password):
                logger.warning(
                    f"Account {profile['email']} already exists with a different password; not promoting it to admin"
                )
                return _public(profile, role)
            return await self.set_role(profile["id"], AppRole.ADMIN.value)
        return await self.sign_up(email, password, full_name="Administrator", role=AppRole.ADMIN.value)
