"""Compare the remote catalog projection against the identities already stored."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from exosync.domain.ports.fetching import CatalogSource, RemoteEntry
    from exosync.domain.ports.persistence import CandidateRepository

log = getLogger(__name__)


@dataclass(slots=True)
class CatalogDiff:
    """Outcome of diffing one complete catalog snapshot."""

    fetched: int
    new_records: list[RemoteEntry] = field(default_factory=list)


def diff_catalog(*, catalog: CatalogSource, repository: CandidateRepository) -> CatalogDiff:
    """Fetch the remote projection and return the rows missing from the store.

    Catalog errors propagate unchanged: a diff computed from a truncated snapshot
    would report spurious new records, so there is no partial result.
    """

    remote = catalog.fetch_dispositions()
    existing = repository.existing_identities()
    new_records = list(_filter_new_entries(remote, existing))
    log.info(
        f"Catalog diff: fetched={len(remote)}, stored={len(existing)}, new={len(new_records)}"
    )
    return CatalogDiff(fetched=len(remote), new_records=new_records)


def compute_new_records(
    *,
    catalog: CatalogSource,
    repository: CandidateRepository,
) -> list[RemoteEntry]:
    return diff_catalog(catalog=catalog, repository=repository).new_records


def _filter_new_entries(
    entries: Iterable[RemoteEntry],
    existing: set[str],
) -> Iterable[RemoteEntry]:
    seen: set[str] = set()
    for entry in entries:
        identity = entry.identity
        if not identity.strip() or identity in existing:
            continue
        if identity in seen:
            log.warning(f"Duplicate identity {identity} in catalog snapshot, keeping first row")
            continue
        seen.add(identity)
        yield entry
