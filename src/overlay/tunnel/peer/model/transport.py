"""Transport endpoint value types.

A transport endpoint is the resolved (address, port) pair a UDP socket can be
pointed at. Resolvers hand back ResolvedEntry values, which keep the host and
service names a transport endpoint was resolved from.
"""

import socket
from enum import IntEnum
from ipaddress import IPv4Address, IPv6Address
from typing import Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

IPAddress = Union[IPv4Address, IPv6Address]


class IPProtocol(IntEnum):
    """Address family a resolution is restricted to."""

    ipv4 = socket.AF_INET
    ipv6 = socket.AF_INET6
    unspecified = socket.AF_UNSPEC

    def accepts(self, address: IPAddress) -> bool:
        """Check if address belongs to this family.

        Args:
            address: Address to check

        Returns:
            True if the family is unspecified or matches the address version
        """
        if self is IPProtocol.ipv4:
            return address.version == 4
        if self is IPProtocol.ipv6:
            return address.version == 6
        return True


class TransportEndpoint(BaseModel):
    """Resolved peer address and UDP port.

    Instances are immutable and hashable, and can be handed to a socket through
    sockaddr().
    """

    model_config = ConfigDict(frozen=True)

    address: IPAddress
    port: int = Field(ge=0, le=65535)

    @property
    def protocol(self) -> IPProtocol:
        if self.address.version == 6:
            return IPProtocol.ipv6
        return IPProtocol.ipv4

    def sockaddr(self) -> Tuple:
        """Socket address tuple for sendto() and connect()."""
        if self.address.version == 6:
            return (str(self.address), self.port, 0, 0)
        return (str(self.address), self.port)

    def __str__(self) -> str:
        if self.address.version == 6:
            return f"[{self.address}]:{self.port}"
        return f"{self.address}:{self.port}"


class ResolvedEntry(BaseModel):
    """One resolution candidate.

    Carries the transport endpoint with the host and service names it was
    resolved from.
    """

    model_config = ConfigDict(frozen=True)

    endpoint: TransportEndpoint
    host_name: str
    service_name: str

    @classmethod
    def from_endpoint(cls, endpoint: TransportEndpoint) -> "ResolvedEntry":
        """Build an entry named after the endpoint's own address and port."""
        return cls(
            endpoint=endpoint,
            host_name=str(endpoint.address),
            service_name=str(endpoint.port),
        )
