"""Error hierarchy for the aggregate connector.

Error layers:
- ConnectorError: Base class for all connector errors
- DomainError: Operations the connector refuses by contract
- InfrastructureError: Misconfiguration of sources or their factories

Errors raised by the sources themselves (construction hooks, feed reads)
are not wrapped; they reach the caller unchanged.
"""


class ConnectorError(Exception):
    """Base class for all connector errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


# =============================================================================
# Domain Errors
# =============================================================================


class DomainError(ConnectorError):
    """Base class for domain errors."""


class MethodNotSupportedError(DomainError):
    """The connector deliberately does not implement this operation."""

    def __init__(self, method: str) -> None:
        super().__init__(f"Method '{method}' is not supported", code="METHOD_NOT_SUPPORTED")
        self.method = method


# =============================================================================
# Infrastructure Errors
# =============================================================================


class InfrastructureError(ConnectorError):
    """Base class for infrastructure/system errors."""


class ConfigurationError(InfrastructureError):
    """System misconfiguration detected."""
