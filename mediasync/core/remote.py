"""Client for the shared remote store (PostgREST / Supabase REST)."""

from __future__ import annotations

from typing import Any, Protocol

import aiohttp

from mediasync import __version__, log
from mediasync.config.settings import RemoteConfig
from mediasync.exceptions import RemoteRejectedError, RemoteUnavailableError

__all__ = ["RemoteStore", "RestRemoteStore"]

# Statuses that mean "try again later" rather than "this write is invalid"
_TRANSIENT_STATUSES = frozenset({408, 425, 429})


class RemoteStore(Protocol):
    """Operations the coordinator needs from a remote store."""

    async def insert(self, collection: str, row: dict[str, Any]) -> None: ...

    async def update(
        self, collection: str, record_id: str, fields: dict[str, Any]
    ) -> None: ...

    async def delete(self, collection: str, record_id: str) -> None: ...

    async def select(
        self,
        collection: str,
        order: str = "updated_at.desc",
        limit: int | None = None,
    ) -> list[dict[str, Any]]: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...


class RestRemoteStore:
    """Remote store backed by a PostgREST endpoint.

    Every write is idempotent under replay: inserts are upserts on the primary
    key, updates set fields on the matching row and deletes succeed whether or not
    the row still exists. Failures are split in two: ``RemoteUnavailableError``
    for timeouts, transport errors, 408/425/429 and 5xx responses, and
    ``RemoteRejectedError`` for every other non-2xx response.
    """

    REST_PATH = "/rest/v1"

    def __init__(
        self,
        url: str,
        api_key: str | None = None,
        *,
        schema_name: str = "public",
        timeout: float = 10.0,
        tables: dict[str, str] | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            url (str): Base URL of the project, e.g. ``https://xyz.supabase.co``
            api_key (str | None): Key sent as ``apikey`` and bearer token
            schema_name (str): Database schema the tables live in
            timeout (float): Total per-call timeout in seconds
            tables (dict[str, str] | None): Logical collection to table overrides
        """
        self.base_url = url.rstrip("/") + self.REST_PATH
        self.api_key = api_key
        self.schema_name = schema_name
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.tables = {
            "media": "media",
            "smart_collections": "smart_collections",
            "history": "history",
        }
        if tables:
            self.tables.update(tables)
        self._session: aiohttp.ClientSession | None = None

    @classmethod
    def from_config(cls, config: RemoteConfig) -> RestRemoteStore:
        """Build a client from the ``remote`` configuration section.

        Raises:
            ValueError: If no remote URL is configured
        """
        if not config.url:
            raise ValueError("remote.url is not configured")
        return cls(
            config.url,
            config.api_key.get_secret_value() if config.api_key else None,
            schema_name=config.schema_name,
            timeout=config.timeout,
            tables={
                "media": config.media_table,
                "smart_collections": config.collections_table,
                "history": config.history_table,
            },
        )

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session.

        Returns:
            aiohttp.ClientSession: The active session for making HTTP requests.
        """
        if self._session is None or self._session.closed:
            headers = {
                "Accept": "application/json",
                "Content-Type": "application/json",
                "User-Agent": f"MediaSync/{__version__}",
                "Accept-Profile": self.schema_name,
                "Content-Profile": self.schema_name,
            }
            if self.api_key:
                headers["apikey"] = self.api_key
                headers["Authorization"] = f"Bearer {self.api_key}"

            self._session = aiohttp.ClientSession(
                headers=headers, timeout=self.timeout
            )

        return self._session

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    def _table_url(self, collection: str) -> str:
        table = self.tables.get(str(collection), str(collection))
        return f"{self.base_url}/{table}"

    async def _request(
        self,
        method: str,
        collection: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        """Send a request and classify failures.

        Returns:
            Any: The decoded JSON body, or None for empty responses

        Raises:
            RemoteUnavailableError: On timeouts, transport errors and transient
                statuses
            RemoteRejectedError: When the server refuses the request
        """
        session = await self._get_session()
        url = self._table_url(collection)
        headers = {"Prefer": prefer} if prefer else None

        try:
            async with session.request(
                method, url, params=params, json=json, headers=headers
            ) as response:
                if response.status in _TRANSIENT_STATUSES or response.status >= 500:
                    text = await response.text()
                    raise RemoteUnavailableError(
                        f"{method} {collection} answered {response.status}: {text}"
                    )
                if response.status >= 400:
                    text = await response.text()
                    raise RemoteRejectedError(
                        f"{method} {collection} rejected with {response.status}: "
                        f"{text}",
                        http_status=response.status,
                    )
                if not await response.read():
                    return None
                return await response.json(content_type=None)
        except TimeoutError as e:
            raise RemoteUnavailableError(
                f"{method} {collection} timed out after {self.timeout.total}s"
            ) from e
        except aiohttp.ClientError as e:
            raise RemoteUnavailableError(f"{method} {collection} failed: {e}") from e

    async def insert(self, collection: str, row: dict[str, Any]) -> None:
        """Upsert a row by primary key."""
        log.debug(f"Remote insert into $$'{collection}'$$ ($$'{row.get('id')}'$$)")
        await self._request(
            "POST",
            collection,
            json=row,
            prefer="resolution=merge-duplicates,return=minimal",
        )

    async def update(
        self, collection: str, record_id: str, fields: dict[str, Any]
    ) -> None:
        """Set fields on the row with the given id."""
        log.debug(f"Remote update of $$'{collection}'$$ ($$'{record_id}'$$)")
        await self._request(
            "PATCH",
            collection,
            params={"id": f"eq.{record_id}"},
            json=fields,
            prefer="return=minimal",
        )

    async def delete(self, collection: str, record_id: str) -> None:
        """Delete the row with the given id if it exists."""
        log.debug(f"Remote delete from $$'{collection}'$$ ($$'{record_id}'$$)")
        await self._request(
            "DELETE",
            collection,
            params={"id": f"eq.{record_id}"},
            prefer="return=minimal",
        )

    async def select(
        self,
        collection: str,
        order: str = "updated_at.desc",
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch rows of a collection.

        Args:
            collection (str): Logical collection name
            order (str): PostgREST ordering expression
            limit (int | None): Maximum number of rows

        Returns:
            list[dict[str, Any]]: The raw rows
        """
        params = {"select": "*", "order": order}
        if limit is not None:
            params["limit"] = str(limit)
        rows = await self._request("GET", collection, params=params)
        if rows is None:
            return []
        if not isinstance(rows, list):
            raise RemoteRejectedError(
                f"GET {collection} returned {type(rows).__name__}, expected a list"
            )
        return rows

    async def ping(self) -> bool:
        """Check whether the remote store answers at all."""
        try:
            await self.select("media", order="updated_at.desc", limit=1)
        except RemoteUnavailableError:
            return False
        except RemoteRejectedError:
            # Reachable, even if the request itself is refused
            return True
        return True
