"""Domain error kinds raised by the service layer.

Services raise these directly; ``portfolio.main`` maps them to the JSON
envelope ``{success: false, message, error?}``. Nothing in the service layer
retries.
"""

from __future__ import annotations

from typing import Any, Optional


class PortfolioError(Exception):
    status_code = 500
    default_message = "Unexpected error"

    def __init__(self, message: Optional[str] = None, *, detail: Any = None) -> None:
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class NotFound(PortfolioError):
    status_code = 404
    default_message = "Record not found"


class InvalidQuery(PortfolioError):
    status_code = 400
    default_message = "Invalid query parameters"


class InvalidValue(PortfolioError):
    status_code = 422
    default_message = "Invalid field value"


class StoreUnavailable(PortfolioError):
    status_code = 503
    default_message = "Record store unavailable"
