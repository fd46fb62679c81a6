from typing import Optional


class BaseSystemError(Exception):
    """Local failure that is not caused by the remote service."""
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidOperationSpec(BaseSystemError):
    """Operation declaration or its call arguments are inconsistent."""
    pass


class InvalidKey(BaseSystemError):
    """Signer secret could not be decoded or the MAC could not be initialized."""
    pass


class ConfigurationError(Exception):
    """Configuration-specific exception for setup errors."""

    def __init__(self, message: str, setting_name: Optional[str] = None):
        self.setting_name = setting_name
        super().__init__(message)
