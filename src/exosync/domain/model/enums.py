"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class Disposition(StrEnum):
    """Archive disposition of a candidate signal."""

    CONFIRMED = "CONFIRMED"
    CANDIDATE = "CANDIDATE"
    FALSE_POSITIVE = "FALSE POSITIVE"

    @classmethod
    def parse(cls, raw: str | None) -> Disposition | None:
        """Match ``raw`` case-insensitively, returning ``None`` for unknown values."""

        if raw is None:
            return None
        normalized = " ".join(raw.replace("_", " ").split()).upper()
        for member in cls:
            if member.value == normalized:
                return member
        return None

    @property
    def is_decided(self) -> bool:
        return self is not Disposition.CANDIDATE


class VerdictLabel(StrEnum):
    CONFIRMED = "CONFIRMED"
    FALSE_POSITIVE = "FALSE POSITIVE"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, prediction: str | None) -> VerdictLabel:
        if prediction is None:
            return cls.OTHER
        compact = "".join(ch for ch in prediction.upper() if ch.isalnum())
        if compact == "CONFIRMED":
            return cls.CONFIRMED
        if compact == "FALSEPOSITIVE":
            return cls.FALSE_POSITIVE
        return cls.OTHER


class PassState(StrEnum):
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ErrorKind(StrEnum):
    CLASSIFIER_ERROR = "classifier_error"
    UNKNOWN_DISPOSITION = "unknown_disposition"
    PROCESSING_ERROR = "processing_error"
    SYNC_ERROR = "sync_error"
