"""Helpers shared by the resolver backends."""

import socket
from ipaddress import IPv4Address, IPv6Address, ip_address
from typing import Iterable, List, Optional

from overlay.tunnel.peer.errors import InvalidServiceFormat, ResolutionFailure
from overlay.tunnel.peer.model.endpoint import parse_port
from overlay.tunnel.peer.model.transport import (
    IPAddress,
    IPProtocol,
    ResolvedEntry,
    TransportEndpoint,
)
from overlay.tunnel.peer.resolve.resolver import ResolverFlags, ResolverQuery


def query_port(query: ResolverQuery) -> int:
    """Port number for the query's service.

    Numeric services are used as-is. Symbolic ones are looked up in the
    services database for UDP, unless numeric_service is set.

    Raises:
        ResolutionFailure: If the service cannot be turned into a port
    """
    try:
        return parse_port(query.service)
    except InvalidServiceFormat as e:
        if ResolverFlags.numeric_service in query.flags:
            raise ResolutionFailure(
                f"service {query.service!r} is not numeric", host=query.host
            ) from e
    try:
        return socket.getservbyname(query.service, "udp")
    except OSError as e:
        raise ResolutionFailure(
            f"unknown service {query.service!r}", host=query.host
        ) from e


def literal_address(host: str) -> Optional[IPAddress]:
    """Parse host as a numeric address, or None if it is a name."""
    try:
        return ip_address(host)
    except ValueError:
        return None


def unnamed_address(query: ResolverQuery) -> IPAddress:
    """Address used when the query has no host.

    The wildcard address for passive queries, loopback otherwise.
    """
    passive = ResolverFlags.passive in query.flags
    if query.protocol is IPProtocol.ipv6:
        return IPv6Address("::") if passive else IPv6Address("::1")
    return IPv4Address("0.0.0.0") if passive else IPv4Address("127.0.0.1")


def make_entries(
    query: ResolverQuery,
    addresses: Iterable[IPAddress],
    port: int,
    host_name: Optional[str] = None,
) -> List[ResolvedEntry]:
    """Build resolution candidates, dropping duplicates but keeping order."""
    entries: List[ResolvedEntry] = []
    seen = set()
    for address in addresses:
        if address in seen:
            continue
        seen.add(address)
        entries.append(
            ResolvedEntry(
                endpoint=TransportEndpoint(address=address, port=port),
                host_name=host_name or query.host,
                service_name=query.service,
            )
        )
    return entries
