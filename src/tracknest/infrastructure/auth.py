"""Credential exchange against the backend's login endpoint."""

from __future__ import annotations

from typing import Optional

import httpx

from tracknest.config import DEFAULT_AUTH_URL, REQUEST_TIMEOUT_SEC
from tracknest.domain.session import Session
from tracknest.errors import AuthenticationError, RemoteError


async def login(
    username: str,
    password: str,
    auth_url: str = DEFAULT_AUTH_URL,
    client: Optional[httpx.AsyncClient] = None,
) -> Session:
    """Exchange *username*/*password* for a bearer token and build the session."""
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=REQUEST_TIMEOUT_SEC)
    try:
        r = await client.post(auth_url, json={"username": username, "password": password})
    except httpx.HTTPError as exc:
        raise RemoteError(f"Login request failed: {exc}") from exc
    finally:
        if owns_client:
            await client.aclose()
    if r.status_code in (401, 403):
        raise AuthenticationError("Invalid username or password")
    if r.is_error:
        raise RemoteError(f"Login returned {r.status_code}", status_code=r.status_code)
    try:
        token = r.json()["accessToken"]["token"]
    except (KeyError, TypeError, ValueError) as exc:
        raise AuthenticationError("Login response did not contain an access token") from exc
    return Session.from_token(token)
