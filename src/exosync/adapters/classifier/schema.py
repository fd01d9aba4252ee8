"""Pydantic models describing the inference endpoint's reply."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class InferenceResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    prediction: str
    probability: float | None = Field(default=None, ge=0.0, le=1.0)
    explanation: str | None = None
    base_value: float | None = None
    contributions: list[float] | dict[str, float] | None = None
    feature_names: list[str] | None = None
