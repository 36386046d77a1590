"""Remote backend client and wire models."""

from klio.api.client import ApiError, ApiTransportError, KlioApiClient

__all__ = ["ApiError", "ApiTransportError", "KlioApiClient"]
