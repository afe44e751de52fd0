from typing import Optional


class BharatShopError(Exception):
    """Base exception for the project."""

class DataLoadError(BharatShopError):
    """Raised when the product catalog cannot be loaded."""

class AnalyzerError(BharatShopError):
    """Raised when a Gemini call fails (transport, HTTP status or payload)."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code

class RateLimitError(AnalyzerError):
    """Raised when Gemini answers with HTTP 429."""
