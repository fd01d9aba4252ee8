"""HTTP client for the external inference endpoint."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from exosync.adapters.http_resilience import ResilientClient, default_client_factory
from exosync.config.classifier import ClassifierConfig
from exosync.domain.ports.classification import (
    ClassifierError,
    ClassifierHTTPError,
    ClassifierTimeoutError,
    InferenceClient,
    InferenceReply,
)

from .schema import InferenceResponse

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from exosync.config.http_resilience import ResilienceConfig

log = getLogger(__name__)


@dataclass(slots=True)
class HttpInferenceClient:
    """POST a feature payload and validate the verdict, sending each request once."""

    config: ClassifierConfig = field(default_factory=ClassifierConfig)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=default_client_factory
    )

    def infer(
        self,
        payload: Mapping[str, object],
        *,
        timeout_seconds: float,
    ) -> InferenceReply:
        return asyncio.run(self._infer_async(dict(payload), timeout_seconds=timeout_seconds))

    async def _infer_async(
        self,
        payload: dict[str, object],
        *,
        timeout_seconds: float,
    ) -> InferenceReply:
        try:
            async with asyncio.timeout(timeout_seconds):
                async with self.client_factory(self.config.resilience) as client:
                    response = await client.post(
                        self.config.infer_url,
                        json=payload,
                        timeout=timeout_seconds,
                    )
        except (TimeoutError, httpx.TimeoutException) as exc:
            raise ClassifierTimeoutError(timeout_seconds) from exc
        except httpx.HTTPError as exc:
            raise ClassifierError(str(exc) or type(exc).__name__) from exc

        if not response.is_success:
            raise ClassifierHTTPError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            body = InferenceResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            log.error(f"Unreadable inference reply: {response.text[:200]}")
            raise ClassifierError(f"Unreadable inference reply: {exc}") from exc

        return InferenceReply(
            prediction=body.prediction,
            probability=body.probability,
            explanation=body.explanation,
            base_value=body.base_value,
            contributions=body.contributions,
            feature_names=tuple(body.feature_names) if body.feature_names is not None else None,
            status_code=response.status_code,
        )


if TYPE_CHECKING:
    _client_check: InferenceClient = HttpInferenceClient()
