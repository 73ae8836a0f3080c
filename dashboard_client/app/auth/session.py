"""
Signed-in user state for the dashboard client.
"""

from typing import Optional

from shared.errors import AuthenticationError
from shared.logging import clear_context, get_logger, set_user_context

from ..adapters.session_store import SessionStore
from ..caching.query_cache import QueryCache
from ..domain.models import LoginResponse, User
from ..hooks.users import UserHooks


class AuthSession:
    """Reads the persisted session and drives login/logout."""

    def __init__(self, cache: QueryCache, users: UserHooks, store: SessionStore):
        self.cache = cache
        self.users = users
        self.store = store
        self.logger = get_logger("auth.session")

        user = self.store.get_user()
        if user is not None:
            set_user_context(user.id)

    @property
    def user(self) -> Optional[User]:
        return self.store.get_user()

    @property
    def is_authenticated(self) -> bool:
        return self.store.is_authenticated

    @property
    def is_admin(self) -> bool:
        user = self.user
        return user is not None and user.is_admin

    def require_admin(self) -> User:
        """Return the current user, raising unless they are a signed-in admin."""
        if not self.is_authenticated:
            raise AuthenticationError("Not signed in")
        user = self.user
        if not user.is_admin:
            raise AuthenticationError("Admin access required", details={"user_id": user.id})
        return user

    async def login(self, email: str, password: str) -> User:
        if not email or not password:
            raise AuthenticationError("Email and password are required")

        response: LoginResponse = await self.users.login(email, password)
        set_user_context(response.user.id)
        self.logger.info("User signed in", role=response.user.role.value)
        return response.user

    async def register(self, name: str, email: str, password: str,
                       role: Optional[str] = None) -> User:
        if not email or not password or not name:
            raise AuthenticationError("Name, email and password are required")

        response = await self.users.register(name, email, password, role)
        set_user_context(response.user.id)
        self.logger.info("User registered", role=response.user.role.value)
        return response.user

    def logout(self):
        """Forget the session and everything cached under it."""
        self.store.clear()
        self.cache.clear()
        self.logger.info("User signed out")
        clear_context()
