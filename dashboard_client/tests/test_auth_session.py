"""
Unit tests for the auth session.
"""

import pytest
from unittest.mock import AsyncMock

from dashboard_client.app.auth.session import AuthSession
from dashboard_client.app.caching.keys import query_keys
from dashboard_client.app.domain.models import User, UserRole
from dashboard_client.app.hooks.users import UserHooks
from shared.errors import AuthenticationError
from shared.logging import clear_context, user_id_var


ADMIN = {"_id": "u1", "name": "Alice", "email": "alice@example.com", "role": "admin"}


class TestAuthSession:
    """Test cases for AuthSession."""

    @pytest.fixture
    def auth(self, cache, gateway, session_store):
        clear_context()
        return AuthSession(cache, UserHooks(cache, gateway), session_store)

    def test_starts_signed_out(self, auth):
        assert auth.user is None
        assert not auth.is_authenticated
        assert not auth.is_admin

    def test_restores_persisted_session(self, cache, gateway, session_store):
        session_store.save("token", User.model_validate(ADMIN))

        auth = AuthSession(cache, UserHooks(cache, gateway), session_store)

        assert auth.is_authenticated
        assert auth.is_admin
        assert user_id_var.get() == "u1"
        clear_context()

    @pytest.mark.asyncio
    async def test_login_signs_in(self, auth, gateway):
        gateway.post.return_value = {"user": ADMIN, "token": "token-abc"}

        user = await auth.login("alice@example.com", "secret")

        assert user.role == UserRole.ADMIN
        assert auth.is_authenticated
        assert auth.require_admin().id == "u1"
        assert user_id_var.get() == "u1"

    @pytest.mark.asyncio
    async def test_login_requires_credentials(self, auth, gateway):
        with pytest.raises(AuthenticationError):
            await auth.login("alice@example.com", "")

        gateway.post.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_register_signs_in_new_user(self, auth, gateway):
        gateway.post.return_value = {"user": {**ADMIN, "role": "user"}, "token": "token-new"}

        user = await auth.register("Alice", "alice@example.com", "secret")

        gateway.post.assert_awaited_once_with(
            "/auth/register", {"name": "Alice", "email": "alice@example.com", "password": "secret"}
        )
        assert user.role == UserRole.USER
        assert auth.is_authenticated
        assert not auth.is_admin

    @pytest.mark.asyncio
    async def test_non_admin_is_refused_admin_access(self, auth, gateway):
        gateway.post.return_value = {"user": {**ADMIN, "role": "user"}, "token": "token-abc"}
        await auth.login("alice@example.com", "secret")

        with pytest.raises(AuthenticationError) as exc_info:
            auth.require_admin()

        assert exc_info.value.details == {"user_id": "u1"}

    def test_require_admin_when_signed_out(self, auth):
        with pytest.raises(AuthenticationError):
            auth.require_admin()

    @pytest.mark.asyncio
    async def test_logout_clears_session_and_cache(self, auth, gateway, cache):
        gateway.post.return_value = {"user": ADMIN, "token": "token-abc"}
        await auth.login("alice@example.com", "secret")
        subscription = cache.subscribe(query_keys.revenue.dashboard(), AsyncMock(return_value={}))
        await subscription.settled()

        auth.logout()

        assert not auth.is_authenticated
        assert len(cache) == 0
        assert not subscription.active
        assert user_id_var.get() is None
