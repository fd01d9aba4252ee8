"""Ports for reading the remote candidate catalog."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from exosync.domain.model import Disposition


class CatalogError(RuntimeError):
    """Raised when the remote catalog cannot be queried or its payload read."""


class CatalogHTTPError(CatalogError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CatalogPayloadError(CatalogError):
    """Raised when a catalog response does not match the expected row shape."""


class RecordNotFoundError(CatalogError):
    def __init__(self, identity: str) -> None:
        super().__init__(f"No catalog row found for {identity}")
        self.identity = identity


@dataclass(frozen=True, slots=True)
class RemoteEntry:
    """Identity and disposition of one catalog row."""

    identity: str
    status: Disposition | None
    raw_status: str | None = None


@runtime_checkable
class CatalogSource(Protocol):
    """Read-only access to the remote catalog."""

    def fetch_dispositions(self) -> list[RemoteEntry]:
        """Return the identity+status projection of every row, in remote order."""
        ...

    def fetch_record(self, identity: str) -> dict[str, object]:
        """Return the full field set of one row."""
        ...


__all__ = [
    "CatalogError",
    "CatalogHTTPError",
    "CatalogPayloadError",
    "CatalogSource",
    "RecordNotFoundError",
    "RemoteEntry",
]
