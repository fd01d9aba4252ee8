"""Domain ports (protocols implemented by adapters)."""

from __future__ import annotations

from .classification import (
    ClassifierError,
    ClassifierHTTPError,
    ClassifierTimeoutError,
    InferenceClient,
    InferenceReply,
)
from .fetching import (
    CatalogError,
    CatalogHTTPError,
    CatalogPayloadError,
    CatalogSource,
    RecordNotFoundError,
    RemoteEntry,
)
from .persistence import CandidateRepository, Repository, SyncPassRepository
from .unit_of_work import SyncRepositories, SyncUnitOfWork

__all__ = [
    "CandidateRepository",
    "CatalogError",
    "CatalogHTTPError",
    "CatalogPayloadError",
    "CatalogSource",
    "ClassifierError",
    "ClassifierHTTPError",
    "ClassifierTimeoutError",
    "InferenceClient",
    "InferenceReply",
    "RecordNotFoundError",
    "RemoteEntry",
    "Repository",
    "SyncPassRepository",
    "SyncRepositories",
    "SyncUnitOfWork",
]
