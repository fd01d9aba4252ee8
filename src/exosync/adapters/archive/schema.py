"""Pydantic models describing NASA TAP ``format=json`` payloads."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, TypeAdapter, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class ArchiveBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class DispositionRow(ArchiveBaseModel):
    """One row of the identity+status projection."""

    kepoi_name: str | None = None
    koi_disposition: str | None = None

    _normalize_blanks = field_validator("kepoi_name", "koi_disposition", mode="before")(
        _blank_to_none
    )


DispositionRows: TypeAdapter[list[DispositionRow]] = TypeAdapter(list[DispositionRow])
RecordRows: TypeAdapter[list[dict[str, Any]]] = TypeAdapter(list[dict[str, Any]])
