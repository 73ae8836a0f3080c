"""
Authentication and user-management hooks.

Login, register and token refresh write the persisted session on success;
the remaining user operations go through the admin user endpoints.
"""

from typing import Any, Dict, Optional

from ..caching.invalidation import MutationKind
from ..caching.keys import query_keys
from ..caching.query_cache import Listener, Subscription
from ..domain.models import LoginResponse, PaginatedUsers, TokenResponse, User
from .base import FIVE_MINUTES, EntityHooks, parse_model


class UserHooks(EntityHooks):
    """Users, credentials and the session they produce."""

    @property
    def session_store(self):
        return self.gateway.session_store

    async def fetch_user(self, user_id: str) -> Optional[User]:
        return parse_model(User, await self.gateway.get(f"/admin/users/{user_id}"))

    async def fetch_users(self, page: Optional[int] = None,
                          limit: Optional[int] = None) -> Optional[PaginatedUsers]:
        data = await self.gateway.get("/admin/users", params={"page": page, "limit": limit})
        return parse_model(PaginatedUsers, data)

    # Queries

    def user(self, user_id: str, enabled: bool = True,
             listener: Optional[Listener] = None) -> Subscription:
        return self._query(
            query_keys.auth.user(user_id),
            lambda: self.fetch_user(user_id),
            stale_time=FIVE_MINUTES,
            enabled=enabled and bool(user_id),
            listener=listener
        )

    def users(self, page: Optional[int] = None, limit: Optional[int] = None,
              listener: Optional[Listener] = None) -> Subscription:
        return self._query(
            query_keys.auth.users(page, limit),
            lambda: self.fetch_users(page, limit),
            stale_time=FIVE_MINUTES,
            listener=listener
        )

    # Mutations

    async def login(self, email: str, password: str) -> LoginResponse:
        async def _login():
            data = await self.gateway.post("/auth/login", {"email": email, "password": password})
            response = LoginResponse.model_validate(data)
            self.session_store.save(response.token, response.user)
            return response
        return await self._mutate(MutationKind.LOGIN, _login)

    async def register(self, name: str, email: str, password: str,
                       role: Optional[str] = None) -> LoginResponse:
        body = {"name": name, "email": email, "password": password}
        if role:
            body["role"] = role

        async def _register():
            response = LoginResponse.model_validate(await self.gateway.post("/auth/register", body))
            self.session_store.save(response.token, response.user)
            return response
        return await self._mutate(MutationKind.REGISTER, _register)

    async def refresh_token(self, user_id: str) -> TokenResponse:
        async def _refresh():
            data = await self.gateway.post("/auth/refresh", {"userId": user_id})
            response = TokenResponse.model_validate(data)
            self.session_store.set_token(response.token)
            return response
        return await self._mutate(MutationKind.REFRESH_TOKEN, _refresh)

    async def update_user(self, user_id: str, changes: Dict[str, Any]) -> Optional[User]:
        async def _update():
            user = parse_model(User, await self.gateway.put(f"/admin/users/{user_id}", changes))
            current = self.session_store.get_user()
            # Only the signed-in user's own record is mirrored into the session
            if user is not None and current is not None and current.id == user.id:
                self.session_store.set_user(user)
            return user
        return await self._mutate(MutationKind.USER_UPDATE, _update)

    async def change_password(self, user_id: str, current_password: str, new_password: str) -> Any:
        body = {"currentPassword": current_password, "newPassword": new_password}

        async def _change_password():
            return await self.gateway.put(f"/admin/users/{user_id}/password", body)
        return await self._mutate(MutationKind.USER_CHANGE_PASSWORD, _change_password)

    async def delete_user(self, user_id: str) -> Any:
        async def _delete():
            return await self.gateway.delete(f"/admin/users/{user_id}")
        return await self._mutate(MutationKind.USER_DELETE, _delete)
