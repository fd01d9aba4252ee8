"""Candidate records and the classifier verdicts attached to them."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Final, cast

from .enums import Disposition, VerdictLabel

SYNC_VERSION: Final[str] = "1.0"


def _utcnow() -> datetime:
    return datetime.now(UTC)


def group_base(identity: str) -> str:
    """Return the part of ``identity`` shared by all signals of one system.

    ``"K00001.02"`` becomes ``"K00001"``; identities without a delimiter are their
    own group base.
    """

    return identity.split(".", 1)[0]


class NamingInvariantError(ValueError):
    """Raised when a record's assigned name disagrees with its disposition."""


@dataclass(frozen=True, slots=True)
class Verdict:
    """Classifier output retained on a record for audit."""

    prediction: str
    label: VerdictLabel
    probability: float | None
    confidence: float
    explanation: str | None = None
    base_value: float | None = None
    contributions: object | None = None
    feature_names: tuple[str, ...] | None = None
    processed_at: datetime | None = None

    def to_payload(self) -> dict[str, object]:
        return {
            "prediction": self.prediction,
            "label": self.label.value,
            "probability": self.probability,
            "confidence": self.confidence,
            "explanation": self.explanation,
            "base_value": self.base_value,
            "contributions": self.contributions,
            "feature_names": list(self.feature_names) if self.feature_names is not None else None,
            "processed_at": self.processed_at.isoformat() if self.processed_at else None,
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, object]) -> Verdict:
        processed_raw = payload.get("processed_at")
        feature_names = payload.get("feature_names")
        probability = payload.get("probability")
        base_value = payload.get("base_value")
        explanation = payload.get("explanation")
        return cls(
            prediction=str(payload.get("prediction", "")),
            label=VerdictLabel(str(payload.get("label", VerdictLabel.OTHER.value))),
            probability=float(cast(float, probability)) if probability is not None else None,
            confidence=float(cast(float, payload.get("confidence", 0.0))),
            explanation=str(explanation) if explanation is not None else None,
            base_value=float(cast(float, base_value)) if base_value is not None else None,
            contributions=payload.get("contributions"),
            feature_names=(
                tuple(str(name) for name in cast(list[object], feature_names))
                if isinstance(feature_names, list)
                else None
            ),
            processed_at=(
                datetime.fromisoformat(processed_raw) if isinstance(processed_raw, str) else None
            ),
        )


@dataclass(eq=False, kw_only=True)
class CandidateRecord:
    """One persisted observation, keyed by its archive identity."""

    identity: str
    status: Disposition
    physical_fields: dict[str, object] = field(default_factory=dict)
    assigned_name: str | None = None
    classified_by_automation: bool = False
    verdict: Verdict | None = None
    confidence: float | None = None
    sync_source: str = "nasa_tap"
    sync_version: str = SYNC_VERSION
    synced_at: datetime = field(default_factory=_utcnow)
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __post_init__(self) -> None:
        if self.status is Disposition.CONFIRMED and not self.assigned_name:
            raise NamingInvariantError(f"Confirmed record {self.identity} requires a name")
        if self.status is not Disposition.CONFIRMED and self.assigned_name is not None:
            raise NamingInvariantError(
                f"Record {self.identity} with status {self.status} cannot carry a name"
            )
        if self.verdict is not None and self.confidence is None:
            self.confidence = self.verdict.confidence

    @property
    def group_identity(self) -> str:
        return group_base(self.identity)
