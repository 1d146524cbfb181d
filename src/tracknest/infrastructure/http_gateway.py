"""
HTTP gateway: async client for the TrackNest REST backend.

Implements IRemoteSyncGateway over ``httpx.AsyncClient``. The bearer token
comes from the session layer and is attached once, as a default header.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Hashable, List, Optional

import httpx

from tracknest.config import DEFAULT_BASE_URL, ENTRIES, GROUPS, REQUEST_TIMEOUT_SEC, USERS
from tracknest.domain.gateway import IRemoteSyncGateway
from tracknest.domain.session import Session
from tracknest.errors import InvalidSearchFieldError, RemoteError, RemoteNotFoundError
from tracknest.infrastructure import codecs

LOGGER = logging.getLogger(__name__)


def _field_search(path: str) -> Callable[[str, str], tuple[str, dict]]:
    def build(field: str, term: str) -> tuple[str, dict]:
        return f"{path}/search", {"field": field, "query": term}
    return build


def _name_search(path: str) -> Callable[[str, str], tuple[str, dict]]:
    def build(field: str, term: str) -> tuple[str, dict]:
        if field != "name":
            raise InvalidSearchFieldError(f"{path} can only be searched by name")
        return path, {"search": term}
    return build


@dataclass(frozen=True)
class CollectionRoute:
    path: str
    search: Optional[Callable[[str, str], tuple[str, dict]]] = None
    update_suffix: str = ""
    # Users change their password through a dedicated text/plain endpoint.
    plain_text_update: Optional[Callable[[Any], str]] = None


ROUTES: dict[str, CollectionRoute] = {
    ENTRIES: CollectionRoute("/entries", search=_field_search("/entries")),
    GROUPS: CollectionRoute("/groups", search=_name_search("/groups")),
    USERS: CollectionRoute(
        "/users",
        update_suffix="/password",
        plain_text_update=lambda user: user.password or "",
    ),
}


class HttpRemoteSyncGateway(IRemoteSyncGateway):
    def __init__(
        self,
        session: Optional[Session] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = REQUEST_TIMEOUT_SEC,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        headers = session.authorization_header if session is not None else {}
        if client is None:
            client = httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout, headers=headers)
        else:
            client.headers.update(headers)
        self._client = client

    async def list(self, collection: str) -> List[Any]:
        route = self._route(collection)
        r = await self._request("GET", route.path)
        return [codecs.decode(collection, item) for item in r.json()]

    async def search(self, collection: str, field: str, term: str) -> List[Any]:
        route = self._route(collection)
        if route.search is None:
            raise InvalidSearchFieldError(f"{collection} does not support search")
        path, params = route.search(field, term)
        r = await self._request("GET", path, params=params)
        return [codecs.decode(collection, item) for item in r.json()]

    async def create(self, collection: str, record: Any) -> Any:
        route = self._route(collection)
        payload = codecs.encode(collection, record)
        # The server assigns ids; a stale one would make the POST an upsert.
        if collection != USERS:
            payload.pop("id", None)
        r = await self._request("POST", route.path, json=payload)
        return codecs.decode(collection, r.json())

    async def update(self, collection: str, id: Hashable, record: Any) -> Any:
        route = self._route(collection)
        url = f"{route.path}/{id}{route.update_suffix}"
        if route.plain_text_update is not None:
            r = await self._request(
                "PUT", url,
                content=route.plain_text_update(record),
                headers={"Content-Type": "text/plain"},
            )
        else:
            r = await self._request("PUT", url, json=codecs.encode(collection, record))
        return codecs.decode(collection, r.json())

    async def delete(self, collection: str, id: Hashable) -> None:
        route = self._route(collection)
        await self._request("DELETE", f"{route.path}/{id}")

    async def close(self) -> None:
        await self._client.aclose()

    # -- internals ---------------------------------------------------------

    @staticmethod
    def _route(collection: str) -> CollectionRoute:
        try:
            return ROUTES[collection]
        except KeyError:
            raise RemoteError(f"Unknown collection {collection!r}") from None

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            r = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise RemoteError(f"{method} {url} failed: {exc}") from exc
        LOGGER.debug("%s %s -> %s", method, url, r.status_code)
        if r.status_code == 404:
            raise RemoteNotFoundError(f"{method} {url}: not found", status_code=404)
        if r.is_error:
            raise RemoteError(f"{method} {url} returned {r.status_code}", status_code=r.status_code)
        return r
