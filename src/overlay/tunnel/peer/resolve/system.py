"""Resolver backed by the system's getaddrinfo.

Uses whatever the host is configured with (hosts file, DNS, mDNS, ...). The
asynchronous path goes through the event loop's getaddrinfo.
"""

import asyncio
import logging
import socket
from ipaddress import ip_address
from typing import List, Sequence, Tuple

import sentry_sdk

from overlay.tunnel.peer.errors import ResolutionFailure
from overlay.tunnel.peer.model.transport import ResolvedEntry, TransportEndpoint
from overlay.tunnel.peer.resolve.resolver import BaseResolver, ResolverQuery

logger = logging.getLogger(__name__)

AddrInfo = Tuple[int, int, int, str, tuple]


class SystemResolver(BaseResolver):
    """getaddrinfo resolver for UDP endpoints."""

    def _arguments(self, query: ResolverQuery) -> dict:
        return dict(
            host=query.host or None,
            port=query.service,
            family=int(query.protocol),
            type=socket.SOCK_DGRAM,
            proto=socket.IPPROTO_UDP,
            flags=int(query.flags),
        )

    def _failure(self, query: ResolverQuery, error: Exception) -> ResolutionFailure:
        sentry_sdk.capture_exception(error)
        logger.warning("getaddrinfo(%s, %s) failed: %s", query.host, query.service, error)
        return ResolutionFailure(f"{query.host}: {error}", host=query.host)

    def _entries(self, query: ResolverQuery, infos: Sequence[AddrInfo]) -> List[ResolvedEntry]:
        entries: List[ResolvedEntry] = []
        seen = set()
        canonical = next((info[3] for info in infos if info[3]), None)
        for family, _type, _proto, _canonname, sockaddr in infos:
            if family not in (socket.AF_INET, socket.AF_INET6):
                continue
            endpoint = TransportEndpoint(address=ip_address(sockaddr[0]), port=sockaddr[1])
            if endpoint in seen:
                continue
            seen.add(endpoint)
            entries.append(
                ResolvedEntry(
                    endpoint=endpoint,
                    host_name=canonical or query.host,
                    service_name=query.service,
                )
            )
        return entries

    def resolve(self, query: ResolverQuery) -> List[ResolvedEntry]:
        logger.debug("lookup of %s service %s", query.host, query.service)
        try:
            infos = socket.getaddrinfo(**self._arguments(query))
        except (OSError, UnicodeError) as e:
            raise self._failure(query, e) from e
        return self._entries(query, infos)

    async def lookup(self, query: ResolverQuery) -> List[ResolvedEntry]:
        loop = asyncio.get_running_loop()
        try:
            infos = await loop.getaddrinfo(**self._arguments(query))
        except (OSError, UnicodeError) as e:
            raise self._failure(query, e) from e
        return self._entries(query, infos)
