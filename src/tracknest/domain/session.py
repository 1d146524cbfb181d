"""Signed-in session and the role capabilities derived from it.

The role is decoded once from the bearer token and injected into list
controllers; nothing downstream re-reads the token.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

LOGGER = logging.getLogger(__name__)


class Role(Enum):
    USER = "USER"
    ADMIN = "ADMIN"

    @property
    def can_manage_users(self) -> bool:
        return self is Role.ADMIN

    @property
    def can_bulk_delete(self) -> bool:
        return self is Role.ADMIN

    @classmethod
    def from_authorities(cls, authorities: Iterable[Any] | None) -> "Role":
        names = set()
        for authority in authorities or ():
            # Spring serialises authorities either as plain strings or as
            # {"authority": "ROLE_ADMIN"} objects.
            if isinstance(authority, dict):
                authority = authority.get("authority", "")
            names.add(str(authority).upper().removeprefix("ROLE_"))
        return cls.ADMIN if cls.ADMIN.value in names else cls.USER


def decode_token_claims(token: str) -> dict[str, Any]:
    """Return the JWT payload claims of *token* without verifying it."""
    try:
        payload = token.split(".")[1]
    except (AttributeError, IndexError) as exc:
        raise ValueError("Token is not a JWT") from exc
    padded = payload + "=" * (-len(payload) % 4)
    try:
        claims = json.loads(base64.urlsafe_b64decode(padded))
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"Token payload is not valid JSON: {exc}") from exc
    if not isinstance(claims, dict):
        raise ValueError("Token payload is not a JSON object")
    return claims


@dataclass(frozen=True)
class Session:
    token: str
    username: str = ""
    role: Role = Role.USER

    @classmethod
    def from_token(cls, token: str) -> "Session":
        """Build a session from *token*; an undecodable token yields a plain user."""
        try:
            claims = decode_token_claims(token)
        except ValueError as exc:
            LOGGER.warning("Invalid token or decoding failed: %s", exc)
            return cls(token=token)
        username = claims.get("sub") or claims.get("username") or ""
        return cls(
            token=token,
            username=str(username),
            role=Role.from_authorities(claims.get("authorities")),
        )

    @property
    def authorization_header(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}
