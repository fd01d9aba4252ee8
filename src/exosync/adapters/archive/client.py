"""HTTP client for the NASA Exoplanet Archive TAP service."""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

from exosync.adapters.http_resilience import ResilientClient, default_client_factory
from exosync.config.archive import ArchiveConfig
from exosync.domain.model import Disposition
from exosync.domain.ports.fetching import (
    CatalogError,
    CatalogHTTPError,
    CatalogPayloadError,
    CatalogSource,
    RecordNotFoundError,
    RemoteEntry,
)

from .schema import DispositionRows, RecordRows

if TYPE_CHECKING:
    from collections.abc import Callable

    from exosync.config.http_resilience import ResilienceConfig

log = getLogger(__name__)

_IDENTITY_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")


def build_disposition_query(table: str) -> str:
    return f"SELECT kepoi_name, koi_disposition FROM {table} WHERE kepoi_name IS NOT NULL"


def build_record_query(table: str, identity: str) -> str:
    if not _IDENTITY_PATTERN.match(identity):
        raise CatalogPayloadError(f"Refusing to query malformed identity {identity!r}")
    return f"SELECT * FROM {table} WHERE kepoi_name = '{identity}'"


@dataclass(slots=True)
class TapCatalogSource:
    """Catalog source backed by synchronous ADQL queries against the archive."""

    config: ArchiveConfig = field(default_factory=ArchiveConfig)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=default_client_factory
    )

    def fetch_dispositions(self) -> list[RemoteEntry]:
        return asyncio.run(self._fetch_dispositions_async())

    def fetch_record(self, identity: str) -> dict[str, object]:
        return asyncio.run(self._fetch_record_async(identity))

    async def _fetch_dispositions_async(self) -> list[RemoteEntry]:
        log.info("Retrieving identity+status projection from the archive")
        query = build_disposition_query(self.config.table)
        async with self.client_factory(self.config.snapshot) as client:
            payload = await self._perform_query(
                client=client, resilience=self.config.snapshot, query=query
            )

        try:
            rows = DispositionRows.validate_python(payload)
        except ValidationError as exc:
            raise CatalogPayloadError(f"Unexpected projection payload: {exc}") from exc

        entries = [
            RemoteEntry(
                identity=row.kepoi_name,
                status=Disposition.parse(row.koi_disposition),
                raw_status=row.koi_disposition,
            )
            for row in rows
            if row.kepoi_name is not None
        ]
        log.info(f"{len(entries)} rows retrieved from the archive")
        return entries

    async def _fetch_record_async(self, identity: str) -> dict[str, object]:
        query = build_record_query(self.config.table, identity)
        async with self.client_factory(self.config.record) as client:
            payload = await self._perform_query(
                client=client, resilience=self.config.record, query=query
            )

        try:
            rows = RecordRows.validate_python(payload)
        except ValidationError as exc:
            raise CatalogPayloadError(f"Unexpected record payload for {identity}: {exc}") from exc
        if not rows:
            raise RecordNotFoundError(identity)
        return dict(rows[0])

    async def _perform_query(
        self,
        *,
        client: ResilientClient,
        resilience: ResilienceConfig,
        query: str,
    ) -> Any:
        params = httpx.QueryParams({"query": query, "format": "json"})
        url = self.config.base_url
        try:
            response = await client.get(url, params=params)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise CatalogError(
                f"Archive query timed out after {resilience.timeout_seconds:g}s"
            ) from exc
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            log.error(f"Archive returned status {status_code}: {exc.response.text[:200]}")
            raise CatalogHTTPError(
                f"Archive returned status {status_code}",
                status_code=status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise CatalogError(f"Could not query the archive: {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise CatalogPayloadError("Archive response is not valid JSON") from exc


if TYPE_CHECKING:
    _source_check: CatalogSource = TapCatalogSource()
