from __future__ import annotations

import base64
import binascii
import json
import logging
from pathlib import Path
from typing import Any, Optional

from domain.models import AdminPrincipal, AuthType, ClientPrincipal, Principal
from domain.schemas import AuthResponse
from infrastructure.normalize import admin_to_payload, client_to_payload, parse_admin, parse_client

logger = logging.getLogger(__name__)


def decode_token_payload(token: str) -> dict[str, Any]:
    """Read the JWT claims without verifying the signature; the API does that."""
    parts = token.split(".")
    if len(parts) < 2:
        return {}
    segment = parts[1] + "=" * (-len(parts[1]) % 4)
    try:
        claims = json.loads(base64.urlsafe_b64decode(segment.encode("ascii")).decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError):
        logger.warning("Could not decode token payload")
        return {}
    return claims if isinstance(claims, dict) else {}


class SessionStore:
    """JSON file holding what a browser would keep in local storage."""

    def __init__(self, path: Path | str | None = None) -> None:
        self._path = Path(path) if path else None

    def load(self) -> dict[str, Any]:
        if self._path is None or not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable session file path=%s: %s", self._path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def save(self, data: dict[str, Any]) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")


class SessionContext:
    """
    The signed-in principal and its tokens.

    Created once per application and passed to whoever needs it. `init` is
    called after a successful login, `clear` on logout or when the API
    reports the token has expired. The `allow_registration` preference
    survives `clear`.
    """

    def __init__(self, store: SessionStore | None = None) -> None:
        self._store = store or SessionStore()
        self.token: Optional[str] = None
        self.refresh_token: Optional[str] = None
        self.principal: Optional[Principal] = None
        self.allow_registration = False
        self._restore()

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token) and self.principal is not None

    @property
    def auth_type(self) -> Optional[AuthType]:
        return AuthType(self.principal.kind) if self.principal else None

    @property
    def user_id(self) -> Optional[str]:
        if not self.token:
            return None
        claims = decode_token_payload(self.token)
        for key in ("id", "userId", "sub"):
            if claims.get(key):
                return str(claims[key])
        return None

    def init(self, response: AuthResponse) -> Principal:
        if response.type == AuthType.ADMIN.value and response.user:
            principal: Principal = AdminPrincipal(data=parse_admin(response.user))
        elif response.type == AuthType.CLIENT.value and response.client:
            principal = ClientPrincipal(data=parse_client(response.client))
        else:
            raise ValueError(f"Auth response of type {response.type!r} carries no matching profile")
        self.token = response.token
        self.refresh_token = response.refresh_token
        self.principal = principal
        self._persist()
        logger.info("Session started kind=%s id=%s", principal.kind, principal.data.id)
        return principal

    def replace_principal(self, principal: Principal) -> None:
        self.principal = principal
        self._persist()

    def clear(self) -> None:
        if self.principal is not None:
            logger.info("Session cleared kind=%s", self.principal.kind)
        self.token = None
        self.refresh_token = None
        self.principal = None
        self._persist()

    def set_allow_registration(self, allowed: bool) -> None:
        self.allow_registration = allowed
        self._persist()

    def _persist(self) -> None:
        data: dict[str, Any] = {"allowRegistration": self.allow_registration}
        if self.token and self.principal is not None:
            data.update({"token": self.token, "refreshToken": self.refresh_token, "authType": self.principal.kind})
            if isinstance(self.principal, AdminPrincipal):
                data["admin"] = admin_to_payload(self.principal.data)
            else:
                data["client"] = client_to_payload(self.principal.data)
        self._store.save(data)

    def _restore(self) -> None:
        data = self._store.load()
        self.allow_registration = bool(data.get("allowRegistration", False))
        token = data.get("token")
        auth_type = data.get("authType")
        if not token:
            return
        if auth_type == AuthType.ADMIN.value and isinstance(data.get("admin"), dict):
            self.principal = AdminPrincipal(data=parse_admin(data["admin"]))
        elif auth_type == AuthType.CLIENT.value and isinstance(data.get("client"), dict):
            self.principal = ClientPrincipal(data=parse_client(data["client"]))
        else:
            logger.warning("Stored session has token but no profile for authType=%s", auth_type)
            return
        self.token = token
        self.refresh_token = data.get("refreshToken")
