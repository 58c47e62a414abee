"""Backend access: REST client and row mapping."""

from taller_finance.backend.api import (
    AuthenticationError,
    BackendError,
    RateLimitError,
    WorkshopAPIClient,
)
from taller_finance.backend.rows import PAYMENT_SENTINEL, RowMappingError

__all__ = [
    # API Client
    "WorkshopAPIClient",
    "BackendError",
    "AuthenticationError",
    "RateLimitError",
    # Row mapping
    "PAYMENT_SENTINEL",
    "RowMappingError",
]
