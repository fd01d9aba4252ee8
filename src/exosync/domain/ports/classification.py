"""Ports for the external inference endpoint."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping


class ClassifierError(RuntimeError):
    """Raised when the inference endpoint cannot produce a usable reply."""


class ClassifierTimeoutError(ClassifierError):
    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"Timeout {timeout_seconds:g}s exceeded")
        self.timeout_seconds = timeout_seconds


class ClassifierHTTPError(ClassifierError):
    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True, slots=True)
class InferenceReply:
    """Validated body of a successful inference response."""

    prediction: str
    probability: float | None = None
    explanation: str | None = None
    base_value: float | None = None
    contributions: object | None = None
    feature_names: tuple[str, ...] | None = None
    status_code: int = 200


@runtime_checkable
class InferenceClient(Protocol):
    def infer(
        self,
        payload: Mapping[str, object],
        *,
        timeout_seconds: float,
    ) -> InferenceReply: ...


__all__ = [
    "ClassifierError",
    "ClassifierHTTPError",
    "ClassifierTimeoutError",
    "InferenceClient",
    "InferenceReply",
]
