"""Endpoint resolution errors.

Every failure of the resolution layer is an EndpointError. Nothing is retried
or recovered locally; errors reach the caller either raised from the
synchronous path or as the failure of an asynchronous completion.
"""

from typing import Optional


class EndpointError(Exception):
    """Base class for endpoint parsing and resolution failures."""


class InvalidEndpointFormat(EndpointError, ValueError):
    """Endpoint text could not be parsed."""

    def __init__(self, text: str, reason: str):
        super().__init__(f"invalid endpoint {text!r}: {reason}")
        self.text = text
        self.reason = reason


class InvalidServiceFormat(EndpointError, ValueError):
    """A service that must be a decimal port number is not one."""

    def __init__(self, service: str):
        super().__init__(f"invalid port number: {service!r}")
        self.service = service


class EmptyResult(EndpointError):
    """The resolver returned no candidate for a query."""

    def __init__(self, host: str, service: str):
        super().__init__(f"no endpoint found for {host}:{service}")
        self.host = host
        self.service = service


class ResolutionFailure(EndpointError):
    """Error reported by the resolver, including cancellation.

    The resolver's own exception, when there is one, is chained as __cause__.
    """

    def __init__(self, message: str, host: Optional[str] = None, cancelled: bool = False):
        super().__init__(message)
        self.host = host
        self.cancelled = cancelled

    @classmethod
    def cancellation(cls, host: Optional[str] = None) -> "ResolutionFailure":
        return cls("operation cancelled", host=host, cancelled=True)
