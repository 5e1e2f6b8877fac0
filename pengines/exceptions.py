"""
Exceptions for the Pengines client
"""

from typing import Optional


class PengineError(Exception):
    """Base exception for Pengines client errors"""

    pass


class ConfigurationError(PengineError):
    """Raised when a required setting (usually the server) is missing or invalid"""

    pass


class NotReadyError(PengineError):
    """Raised when the pengine or query is not in a state that allows the operation.

    Pengines are stateful and run a single query at a time.
    """

    pass


class CouldNotCreateError(PengineError):
    """Raised when the server did not create a pengine"""

    pass


class TransportError(PengineError):
    """Raised when the HTTP exchange fails or the reply cannot be understood"""

    pass


class PengineServerError(PengineError):
    """Raised when the server answers with an error event"""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class UnboundVariableError(PengineError):
    """Raised when a proof has no binding for the requested variable"""

    pass


class FormatError(PengineError):
    """Raised when a bound value cannot be coerced to the requested type"""

    def __init__(self, variable: str, target: str, value):
        super().__init__(
            f"Cannot read variable '{variable}' as {target}: {value!r}"
        )
        self.variable = variable
        self.target = target
        self.value = value
