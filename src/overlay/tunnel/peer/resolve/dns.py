"""Resolver querying DNS directly through aiodns.

Hostnames are resolved with A and AAAA queries, bypassing the system's
getaddrinfo. Numeric hosts never reach the network and symbolic services are
looked up in the local services database.
"""

import asyncio
import logging
from ipaddress import IPv6Address, ip_address
from typing import List, Optional, Sequence

import sentry_sdk
from aiodns import DNSResolver
from aiodns.error import DNSError

from overlay.tunnel.peer.errors import ResolutionFailure
from overlay.tunnel.peer.model.transport import IPAddress, IPProtocol, ResolvedEntry
from overlay.tunnel.peer.resolve.query import (
    literal_address,
    make_entries,
    query_port,
    unnamed_address,
)
from overlay.tunnel.peer.resolve.resolver import (
    BaseResolver,
    ResolverFlags,
    ResolverQuery,
)

logger = logging.getLogger(__name__)


def v4_mapped(address: IPAddress) -> IPv6Address:
    """IPv4-mapped IPv6 form of an IPv4 address (::ffff:a.b.c.d)."""
    return IPv6Address(f"::ffff:{address}")


class DnsResolver(BaseResolver):
    """aiodns-backed resolver.

    Args:
        nameservers: Nameservers to query instead of the system ones
        timeout: Per-query timeout in seconds
    """

    def __init__(
        self, nameservers: Optional[Sequence[str]] = None, timeout: Optional[float] = None
    ):
        super().__init__()
        self.nameservers = list(nameservers or [])
        self.timeout = timeout

    def _dns_resolver(self) -> DNSResolver:
        options = {}
        if self.nameservers:
            options["nameservers"] = self.nameservers
        if self.timeout is not None:
            options["timeout"] = self.timeout
        return DNSResolver(**options)

    async def _query(self, resolver: DNSResolver, host: str, qtype: str) -> List[IPAddress]:
        results = await resolver.query(host, qtype)
        return [ip_address(result.host) for result in results or []]

    async def _addresses(self, query: ResolverQuery) -> List[IPAddress]:
        resolver = self._dns_resolver()
        errors: List[DNSError] = []
        addresses: List[IPAddress] = []

        async def collect(qtype: str) -> List[IPAddress]:
            try:
                return await self._query(resolver, query.host, qtype)
            except DNSError as e:
                errors.append(e)
                return []

        if query.protocol is IPProtocol.ipv4:
            addresses.extend(await collect("A"))
        elif query.protocol is IPProtocol.ipv6:
            addresses.extend(await collect("AAAA"))
            if ResolverFlags.v4_mapped in query.flags and (
                not addresses or ResolverFlags.all_matching in query.flags
            ):
                addresses.extend(v4_mapped(address) for address in await collect("A"))
        else:
            addresses.extend(await collect("A"))
            addresses.extend(await collect("AAAA"))

        if not addresses and errors:
            sentry_sdk.capture_exception(errors[0])
            logger.warning("DNS lookup of %s failed: %s", query.host, errors[0])
            raise ResolutionFailure(f"{query.host}: {errors[0]}", host=query.host) from errors[0]
        return addresses

    async def lookup(self, query: ResolverQuery) -> List[ResolvedEntry]:
        port = query_port(query)

        if not query.host:
            return make_entries(query, [unnamed_address(query)], port)

        address = literal_address(query.host)
        if address is not None:
            if not query.protocol.accepts(address):
                raise ResolutionFailure(
                    f"{query.host} is not an {query.protocol.name} address", host=query.host
                )
            return make_entries(query, [address], port)

        if ResolverFlags.numeric_host in query.flags:
            raise ResolutionFailure(f"{query.host} is not a numeric host", host=query.host)

        return make_entries(query, await self._addresses(query), port)

    def resolve(self, query: ResolverQuery) -> List[ResolvedEntry]:
        """Run lookup() to completion on a private event loop.

        Raises:
            RuntimeError: If called from a thread running an event loop
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            raise RuntimeError("DnsResolver.resolve() would block the running event loop")

        logger.debug("lookup of %s service %s", query.host, query.service)
        loop = asyncio.new_event_loop()
        try:
            return loop.run_until_complete(self.lookup(query))
        finally:
            loop.close()
