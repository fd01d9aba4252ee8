"""Public interface for the inference endpoint adapter."""

from __future__ import annotations

from .client import HttpInferenceClient
from .schema import InferenceResponse

__all__ = ["HttpInferenceClient", "InferenceResponse"]
