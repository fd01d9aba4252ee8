"""Route undecided candidates through the external classifier.

The gateway is the only per-record call that may fail independently of the pass.
It therefore never raises for transport, timeout or payload problems: every call
ends in a :class:`ClassificationResult` whose ``outcome`` tells the orchestrator
what to do with the record.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Final

from exosync.domain.model import Verdict, VerdictLabel
from exosync.domain.ports.classification import (
    ClassifierError,
    ClassifierHTTPError,
    ClassifierTimeoutError,
)
from exosync.domain.ports.fetching import CatalogError, CatalogHTTPError

if TYPE_CHECKING:
    from exosync.domain.ports.classification import InferenceClient, InferenceReply
    from exosync.domain.ports.fetching import CatalogSource

log = getLogger(__name__)

DEFAULT_CLASSIFIER_TIMEOUT_SECONDS: Final[float] = 10.0
IDENTITY_FIELD: Final[str] = "kepoi_name"

# Must match the feature schema the inference endpoint was trained on.
INFERENCE_FIELDS: Final[tuple[str, ...]] = (
    "koi_period",
    "koi_duration",
    "koi_depth",
    "koi_ror",
    "koi_prad",
    "koi_impact",
    "koi_teq",
    "koi_dor",
    "koi_steff",
    "koi_slogg",
    "koi_srad",
    "koi_smass",
    "koi_srho",
    "koi_kepmag",
    "koi_model_snr",
    "koi_num_transits",
    "koi_max_sngle_ev",
    "koi_max_mult_ev",
)


class Outcome(StrEnum):
    CONFIRMED = "confirmed"
    FALSE_POSITIVE = "falsePositive"
    OTHER = "other"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    """Structured result of one classification attempt."""

    identity: str
    outcome: Outcome
    verdict: Verdict | None = None
    error: str | None = None
    status_code: int | None = None
    duration_seconds: float = 0.0
    fields: Mapping[str, object] | None = None

    @property
    def failed(self) -> bool:
        return self.outcome is Outcome.FAILED


def build_inference_payload(identity: str, record: Mapping[str, object]) -> dict[str, object]:
    """Project ``record`` onto the classifier's feature set, tagged with the identity."""

    payload = {name: record[name] for name in INFERENCE_FIELDS if name in record}
    payload[IDENTITY_FIELD] = identity
    return payload


def interpret_reply(reply: InferenceReply, *, processed_at: datetime) -> tuple[Outcome, Verdict]:
    """Turn a classifier reply into an outcome and the verdict kept for audit.

    ``probability`` is the model's score for the positive class, so confidence in a
    false-positive verdict is its complement. A missing probability counts as zero.
    """

    label = VerdictLabel.parse(reply.prediction)
    probability = reply.probability or 0.0
    if label is VerdictLabel.FALSE_POSITIVE:
        outcome, confidence = Outcome.FALSE_POSITIVE, 1.0 - probability
    elif label is VerdictLabel.CONFIRMED:
        outcome, confidence = Outcome.CONFIRMED, probability
    else:
        outcome, confidence = Outcome.OTHER, probability

    verdict = Verdict(
        prediction=reply.prediction,
        label=label,
        probability=reply.probability,
        confidence=confidence,
        explanation=reply.explanation,
        base_value=reply.base_value,
        contributions=reply.contributions,
        feature_names=reply.feature_names,
        processed_at=processed_at,
    )
    return outcome, verdict


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ClassificationGateway:
    def __init__(
        self,
        *,
        catalog: CatalogSource,
        client: InferenceClient,
        timeout_seconds: float = DEFAULT_CLASSIFIER_TIMEOUT_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._catalog = catalog
        self._client = client
        self.timeout_seconds = timeout_seconds
        self._clock = clock
        self._timer = timer

    def classify(self, identity: str) -> ClassificationResult:
        """Fetch ``identity``'s full row, submit its features and interpret the verdict."""

        started = self._timer()
        try:
            record = self._catalog.fetch_record(identity)
        except CatalogError as exc:
            status_code = exc.status_code if isinstance(exc, CatalogHTTPError) else None
            return self._failed(identity, started, f"Record fetch error: {exc}", status_code)
        except Exception as exc:  # noqa: BLE001
            log.exception(f"[{identity}] unexpected error while fetching the record")
            return self._failed(identity, started, f"Record fetch error: {exc}", None)

        payload = build_inference_payload(identity, record)
        try:
            reply = self._client.infer(payload, timeout_seconds=self.timeout_seconds)
        except ClassifierTimeoutError as exc:
            return self._failed(identity, started, str(exc), None, record)
        except ClassifierHTTPError as exc:
            return self._failed(identity, started, str(exc), exc.status_code, record)
        except ClassifierError as exc:
            return self._failed(identity, started, f"Connection error: {exc}", None, record)
        except Exception as exc:  # noqa: BLE001
            log.exception(f"[{identity}] unexpected error from the classifier client")
            return self._failed(identity, started, f"Classifier error: {exc}", None, record)

        outcome, verdict = interpret_reply(reply, processed_at=self._clock())
        duration = self._timer() - started
        log.info(
            f"[{identity}] classifier verdict {verdict.prediction!r} -> {outcome} "
            f"(confidence={verdict.confidence:.3f}, {duration:.2f}s)"
        )
        return ClassificationResult(
            identity=identity,
            outcome=outcome,
            verdict=verdict,
            status_code=reply.status_code,
            duration_seconds=duration,
            fields=record,
        )

    def _failed(
        self,
        identity: str,
        started: float,
        error: str,
        status_code: int | None,
        record: Mapping[str, object] | None = None,
    ) -> ClassificationResult:
        duration = self._timer() - started
        log.warning(f"[{identity}] classification failed after {duration:.2f}s: {error}")
        return ClassificationResult(
            identity=identity,
            outcome=Outcome.FAILED,
            error=error,
            status_code=status_code,
            duration_seconds=duration,
            fields=record,
        )
