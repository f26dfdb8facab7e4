"""
Shared test configuration and fixtures for peer resolution tests.

Provides an in-memory resolver so hostname resolution can be tested without
any network access.
"""

import asyncio
from ipaddress import ip_address
from typing import List, Optional

import pytest

from overlay.tunnel.peer.errors import EndpointError
from overlay.tunnel.peer.model.transport import ResolvedEntry, TransportEndpoint
from overlay.tunnel.peer.resolve.resolver import BaseResolver, ResolverQuery


def make_entry(address: str, port: int, host_name: str = "example.org", service_name: str = "") -> ResolvedEntry:
    """Build a resolution candidate for tests."""
    return ResolvedEntry(
        endpoint=TransportEndpoint(address=ip_address(address), port=port),
        host_name=host_name,
        service_name=service_name or str(port),
    )


class FakeResolver(BaseResolver):
    """Resolver answering every query with canned entries or a canned error.

    When gated, asynchronous lookups wait until release() is called.
    """

    def __init__(
        self,
        entries: Optional[List[ResolvedEntry]] = None,
        error: Optional[EndpointError] = None,
        gated: bool = False,
    ):
        super().__init__()
        self.entries = list(entries or [])
        self.error = error
        self.queries: List[ResolverQuery] = []
        self.gate: Optional[asyncio.Event] = None
        self.gated = gated

    def resolve(self, query: ResolverQuery) -> List[ResolvedEntry]:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return list(self.entries)

    async def lookup(self, query: ResolverQuery) -> List[ResolvedEntry]:
        self.queries.append(query)
        if self.gated:
            if self.gate is None:
                self.gate = asyncio.Event()
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return list(self.entries)

    def release(self) -> None:
        if self.gate is None:
            self.gate = asyncio.Event()
        self.gate.set()


@pytest.fixture
def fake_resolver():
    """Resolver returning two candidates for any query."""
    return FakeResolver(
        entries=[make_entry("93.184.216.34", 1234), make_entry("2606:2800:220:1::1", 1234)]
    )


@pytest.fixture
def empty_resolver():
    """Resolver returning no candidate."""
    return FakeResolver(entries=[])


class Recorder:
    """Completion handler recording every call."""

    def __init__(self):
        self.results = []

    def __call__(self, result):
        self.results.append(result)


@pytest.fixture
def recorder():
    return Recorder()
