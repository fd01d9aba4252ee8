"""External inference endpoint configuration values."""

from __future__ import annotations

from dataclasses import dataclass, field

from exosync import __version__

from .env import optional_env_var
from .http_resilience import ResilienceConfig

CLASSIFIER_INFER_URL = "http://localhost:5000/api/infer"
CLASSIFIER_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class ClassifierConfig:
    """Holds the inference endpoint and its hard per-call timeout."""

    infer_url: str = CLASSIFIER_INFER_URL
    timeout_seconds: float = CLASSIFIER_TIMEOUT_SECONDS
    resilience: ResilienceConfig = field(
        default_factory=lambda: ResilienceConfig(
            name="classifier",
            timeout_seconds=CLASSIFIER_TIMEOUT_SECONDS,
            default_headers={"User-Agent": f"exosync/{__version__}"},
        )
    )


def get_classifier_config() -> ClassifierConfig:
    return ClassifierConfig(infer_url=optional_env_var("BACKEND_INFER_URL", CLASSIFIER_INFER_URL))
