from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from domain.errors import ApiError, AuthenticationFailed
from domain.models import Principal
from domain.schemas import AuthResponse, ChangePasswordRequest, LoginRequest, ProfileUpdate, RegisterRequest
from infrastructure.api_client import ApiClient
from infrastructure.session import SessionContext

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, api: ApiClient, session: SessionContext) -> None:
        self._api = api
        self._session = session

    def login(self, credentials: LoginRequest) -> Principal:
        try:
            payload = self._api.post("/auth/login", credentials.model_dump(by_alias=True))
        except ApiError as exc:
            if exc.status in (400, 401, 403, 404):
                raise AuthenticationFailed(exc.message or "Credenciais inválidas") from exc
            raise
        try:
            response = AuthResponse.model_validate(payload)
        except ValidationError as exc:
            raise ApiError(502, f"Unexpected login response: {exc}") from exc
        if not response.token:
            raise AuthenticationFailed(response.message or "Credenciais inválidas")
        return self._session.init(response)

    def register(self, form: RegisterRequest) -> dict[str, Any]:
        payload = {
            "name": form.name,
            "email": form.email,
            "password": form.password,
            "role": form.role.value,
        }
        return self._api.post("/auth/register", payload) or {}

    def logout(self) -> None:
        self._session.clear()

    def get_profile(self) -> dict[str, Any]:
        return self._api.get("/auth/profile") or {}

    def change_password(self, email: str, form: ChangePasswordRequest) -> dict[str, Any]:
        return self._api.post(
            "/auth/change-password",
            {"email": email, "currentPassword": form.current_password, "newPassword": form.new_password},
        ) or {}

    def update_profile(self, update: ProfileUpdate) -> dict[str, Any]:
        return self._api.put("/auth/profile", update.model_dump(by_alias=True, exclude_none=True)) or {}
