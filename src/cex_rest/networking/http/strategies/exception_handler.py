"""
Exception Handler Strategy Interface

Seam for exchange adapters that translate error responses into their own
exception types. The response decoder consults it before falling back to
the generic business/HTTP status mapping.
"""

from abc import ABC, abstractmethod

from cex_rest.exceptions import ExchangeRestError


class ExceptionHandlerStrategy(ABC):
    """Converts exchange-specific error responses to exceptions."""

    @abstractmethod
    def should_handle_error(self, status_code: int, response_text: str) -> bool:
        """
        Check if this strategy should handle the error.

        Args:
            status_code: HTTP status code
            response_text: Raw response text from the API
        """
        pass

    @abstractmethod
    def handle_error(self, status_code: int, response_text: str) -> ExchangeRestError:
        """
        Build the exception for an error response.

        Returns:
            ExchangeRestError or subclass; the caller raises it
        """
        pass
