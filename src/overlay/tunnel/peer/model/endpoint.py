"""Peer endpoint specifications.

An endpoint is how a peer is written in configuration: a literal IPv4 or IPv6
address with an optional port, or a hostname with an optional service. The
set of variants is closed; see overlay.tunnel.peer.resolve.endpoint for the
resolution of each.
"""

import re
from enum import IntEnum
from ipaddress import IPv4Address, IPv6Address
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from overlay.tunnel.peer.errors import (
    InvalidEndpointFormat,
    InvalidServiceFormat,
)
from overlay.tunnel.peer.model.transport import IPAddress

PORT_PATTERN = re.compile(r"[0-9]+")
MAX_PORT = 65535


class EndpointKind(IntEnum):
    """Endpoint variant enumeration.

    Literal endpoints are split by address family, hostnames need a resolver.
    """

    ipv4 = 1
    ipv6 = 2
    hostname = 3


class LiteralAddressEndpoint(BaseModel):
    """Numeric peer address with an optional explicit port.

    Resolves locally: no name service or services database is ever consulted.
    """

    model_config = ConfigDict(frozen=True)

    address: IPAddress
    port: Optional[int] = Field(default=None, ge=0, le=MAX_PORT)

    @property
    def kind(self) -> EndpointKind:
        if self.address.version == 6:
            return EndpointKind.ipv6
        return EndpointKind.ipv4

    def __str__(self) -> str:
        host = f"[{self.address}]" if self.address.version == 6 else str(self.address)
        if self.port is None:
            return host
        return f"{host}:{self.port}"


class HostnameEndpoint(BaseModel):
    """Named peer host with an optional service name or number."""

    model_config = ConfigDict(frozen=True)

    hostname: str = Field(min_length=1)
    service: Optional[str] = Field(default=None, min_length=1)

    @property
    def kind(self) -> EndpointKind:
        return EndpointKind.hostname

    def __str__(self) -> str:
        if self.service is None:
            return self.hostname
        return f"{self.hostname}:{self.service}"


Endpoint = Union[LiteralAddressEndpoint, HostnameEndpoint]


def parse_port(service: str) -> int:
    """Parse a service string as a decimal UDP port.

    Only ASCII digits are accepted: no sign, no whitespace, no symbolic name.

    Args:
        service: Text to parse

    Returns:
        The port number

    Raises:
        InvalidServiceFormat: If service is not a decimal number in 0..65535
    """
    if PORT_PATTERN.fullmatch(service) is None:
        raise InvalidServiceFormat(service)
    port = int(service)
    if port > MAX_PORT:
        raise InvalidServiceFormat(service)
    return port


def ipv4_endpoint(address: Union[str, IPv4Address], port: Optional[int] = None) -> LiteralAddressEndpoint:
    try:
        return LiteralAddressEndpoint(address=IPv4Address(address), port=port)
    except ValueError as e:
        raise InvalidEndpointFormat(str(address), str(e)) from e


def ipv6_endpoint(address: Union[str, IPv6Address], port: Optional[int] = None) -> LiteralAddressEndpoint:
    try:
        return LiteralAddressEndpoint(address=IPv6Address(address), port=port)
    except ValueError as e:
        raise InvalidEndpointFormat(str(address), str(e)) from e


def _literal_port(text: str, port: Optional[str]) -> Optional[int]:
    if port is None:
        return None
    try:
        return parse_port(port)
    except InvalidServiceFormat as e:
        raise InvalidEndpointFormat(text, "invalid port") from e


def parse_endpoint(text: str) -> Endpoint:
    """Parse an endpoint as written in configuration.

    Accepted forms are `A.B.C.D[:port]`, `[v6][:port]`, a bare IPv6 address
    without port, and `hostname[:service]`.

    Args:
        text: Raw endpoint string

    Returns:
        LiteralAddressEndpoint or HostnameEndpoint

    Raises:
        InvalidEndpointFormat: If the text matches none of the forms
    """
    value = text.strip()
    if not value:
        raise InvalidEndpointFormat(text, "empty endpoint")

    if value.startswith("["):
        close = value.find("]")
        if close == -1:
            raise InvalidEndpointFormat(text, "unterminated bracket")
        rest = value[close + 1 :]
        if rest and not rest.startswith(":"):
            raise InvalidEndpointFormat(text, "unexpected text after bracket")
        try:
            address = IPv6Address(value[1:close])
        except ValueError:
            raise InvalidEndpointFormat(text, "not an IPv6 address") from None
        return LiteralAddressEndpoint(
            address=address, port=_literal_port(text, rest[1:] if rest else None)
        )

    # Bare IPv6 literals cannot carry a port
    if value.count(":") > 1:
        try:
            return LiteralAddressEndpoint(address=IPv6Address(value))
        except ValueError:
            raise InvalidEndpointFormat(text, "not an IPv6 address") from None

    host, sep, service = value.partition(":")
    if not host:
        raise InvalidEndpointFormat(text, "empty host")
    if sep and not service:
        raise InvalidEndpointFormat(text, "empty service")

    try:
        address = IPv4Address(host)
    except ValueError:
        return HostnameEndpoint(hostname=host, service=service or None)
    return LiteralAddressEndpoint(
        address=address, port=_literal_port(text, service if sep else None)
    )
