from typing import Optional


class ExchangeRestError(Exception):
    """Base exception for all REST call failures.

    ``category`` and ``attempts`` are filled in by the executor once the
    call has finished so callers can tell which policy was applied and how
    many attempts were made. The underlying cause is chained via ``__cause__``.
    """
    def __init__(self, code: int, message: str, api_code: Optional[int] = None) -> None:
        self.api_code = api_code
        self.message = message
        self.status_code = code
        self.category: Optional[str] = None
        self.attempts: int = 0
        super().__init__(f"HTTP {code}: {message}")

    @property
    def is_transient(self) -> bool:
        """Whether the retry policy may re-attempt after this error."""
        return False

    def with_context(self, category: Optional[str], attempts: int) -> 'ExchangeRestError':
        self.category = category
        self.attempts = attempts
        return self


class TransportError(ExchangeRestError):
    """Network, connect or timeout failure before a response was received."""
    def __init__(self, message: str, transient: bool = True) -> None:
        super().__init__(0, message)
        self.transient = transient

    @property
    def is_transient(self) -> bool:
        return self.transient

    def __str__(self):
        return f"TransportError: {self.message}"


class HttpStatusError(ExchangeRestError):
    """Non-2xx response without a parseable business error payload."""
    def __init__(self, code: int, body: str) -> None:
        super().__init__(code, body)
        self.body = body

    @property
    def is_transient(self) -> bool:
        return self.status_code >= 500 or self.status_code == 429

    def __str__(self):
        return f"HttpStatusError: {self.status_code} - {self.body[:200]}"


class BusinessError(ExchangeRestError):
    """Structured error returned by the remote application layer ({code, msg})."""
    def __init__(self, code: int, api_code: int, message: str) -> None:
        super().__init__(code, message, api_code)

    def __str__(self):
        return f"BusinessError: {self.status_code} - {self.api_code} - {self.message}"


class DeserializationError(ExchangeRestError):
    """Response body did not match the declared payload type."""
    SNIPPET_LENGTH = 200

    def __init__(self, message: str, payload: bytes, code: int = 200) -> None:
        self.snippet = payload[:self.SNIPPET_LENGTH].decode('utf-8', errors='replace')
        super().__init__(code, f"{message}; payload: {self.snippet}")


class RetryConfigNotFound(ExchangeRestError):
    """No retry configuration registered for the requested category."""
    def __init__(self, category: str) -> None:
        super().__init__(0, f"retry config not found for category '{category}'")
        self.category = category
