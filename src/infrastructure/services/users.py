from __future__ import annotations

from typing import Any

from domain.models import AdminUser
from domain.schemas import ChangePasswordRequest, ProfileUpdate
from infrastructure.api_client import ApiClient
from infrastructure.normalize import parse_admin


class UserService:
    def __init__(self, api: ApiClient) -> None:
        self._api = api

    def get_user(self, user_id: str) -> AdminUser:
        return parse_admin(self._api.get(f"/users/{user_id}") or {})

    def update_user(self, user_id: str, update: ProfileUpdate) -> AdminUser:
        payload: dict[str, Any] = update.model_dump(by_alias=True, exclude_none=True)
        payload.pop("phone", None)
        payload.pop("address", None)
        return parse_admin(self._api.put(f"/users/{user_id}", payload) or {})

    def change_password(self, user_id: str, form: ChangePasswordRequest) -> None:
        self._api.post(
            f"/users/{user_id}/change-password",
            {"currentPassword": form.current_password, "newPassword": form.new_password},
        )
