"""Domain model for candidate records and synchronization passes."""

from __future__ import annotations

from .candidate import (
    SYNC_VERSION,
    CandidateRecord,
    NamingInvariantError,
    Verdict,
    group_base,
)
from .enums import Disposition, ErrorKind, PassState, VerdictLabel
from .sync_pass import ErrorDetail, PassAlreadyFinishedError, PassCounters, SyncPass

__all__ = [
    "SYNC_VERSION",
    "CandidateRecord",
    "Disposition",
    "ErrorDetail",
    "ErrorKind",
    "NamingInvariantError",
    "PassAlreadyFinishedError",
    "PassCounters",
    "PassState",
    "SyncPass",
    "Verdict",
    "VerdictLabel",
    "group_base",
]
