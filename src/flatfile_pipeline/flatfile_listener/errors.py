# src/flatfile_pipeline/flatfile_listener/errors.py

from typing import Optional


class FlatfilePipelineError(Exception):
    """Base error for the Flatfile pipeline."""


class ConfigurationError(FlatfilePipelineError):
    """Raised when environment or blueprint configuration is missing or invalid."""


class RuleConfigError(ConfigurationError):
    """Raised when a blueprint declares a rule that cannot be compiled."""


class InvalidEventError(FlatfilePipelineError):
    """Raised when an inbound event body cannot be parsed."""


class PlatformAPIError(FlatfilePipelineError):
    """Raised when a Flatfile REST call fails (network error or HTTP >= 400)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


# ─── Submit job failure reasons ───────────────────────────────────────────────────

class SubmitJobError(FlatfilePipelineError):
    """Typed reason a submit job ended in the failed state."""

    reason = "unknown"


class AcknowledgeError(SubmitJobError):
    """The job could not be acknowledged with the platform."""

    reason = "acknowledge"


class CollectionError(SubmitJobError):
    """Sheets or records could not be collected from the workbook."""

    reason = "collection"


class DeliveryError(SubmitJobError):
    """The webhook request could not be sent (network or encoding error)."""

    reason = "delivery"


class Non200ResponseError(DeliveryError):
    """The webhook answered with a status other than 200."""

    reason = "non_200"

    def __init__(self, status_code: int, body: str = ""):
        super().__init__(f"Webhook responded with HTTP {status_code}")
        self.status_code = status_code
        self.body = body
