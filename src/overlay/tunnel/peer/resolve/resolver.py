"""Resolver capability.

Defines the query handed to a resolver, the single-shot completion used by
asynchronous resolution, and the base class the resolver backends share.

A completion handler receives exactly one ResolveResult per operation: the
candidates on success, or the EndpointError that stopped the lookup. Cancelling
an operation delivers a cancellation failure, never a result that arrived
after the cancel.
"""

import asyncio
import functools
import logging
import socket
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import IntFlag
from typing import Callable, Coroutine, List, Optional, Protocol, Sequence, Set

import sentry_sdk

from overlay.tunnel.peer.errors import EndpointError, ResolutionFailure
from overlay.tunnel.peer.model.transport import IPProtocol, ResolvedEntry

logger = logging.getLogger(__name__)


class ResolverFlags(IntFlag):
    """Query flags, numerically identical to the getaddrinfo AI_* flags."""

    passive = socket.AI_PASSIVE
    canonical_name = socket.AI_CANONNAME
    numeric_host = socket.AI_NUMERICHOST
    numeric_service = socket.AI_NUMERICSERV
    v4_mapped = socket.AI_V4MAPPED
    all_matching = socket.AI_ALL
    address_configured = socket.AI_ADDRCONFIG


@dataclass(frozen=True)
class ResolverQuery:
    """Host and service to resolve, with family and flags."""

    host: str
    service: str
    protocol: IPProtocol = IPProtocol.unspecified
    flags: ResolverFlags = ResolverFlags(0)


@dataclass(frozen=True)
class ResolveResult:
    """Outcome of one asynchronous resolution.

    Exactly one of entries (non-empty) or error is meaningful.
    """

    entries: Sequence[ResolvedEntry] = field(default_factory=tuple)
    error: Optional[EndpointError] = None

    @classmethod
    def success(cls, entries: Sequence[ResolvedEntry]) -> "ResolveResult":
        return cls(entries=tuple(entries))

    @classmethod
    def failure(cls, error: EndpointError) -> "ResolveResult":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> List[ResolvedEntry]:
        """Return the candidates, raising the failure if there is one."""
        if self.error is not None:
            raise self.error
        return list(self.entries)


CompletionHandler = Callable[[ResolveResult], None]


class Completion:
    """Completion handler wrapper that refuses to run twice."""

    def __init__(self, handler: CompletionHandler):
        self._handler = handler
        self._fired = False

    @property
    def fired(self) -> bool:
        return self._fired

    def __call__(self, result: ResolveResult) -> None:
        if self._fired:
            raise RuntimeError("completion handler already invoked")
        self._fired = True
        self._handler(result)


def wrap_failure(error: BaseException, host: Optional[str] = None) -> EndpointError:
    """Turn a resolver exception into an EndpointError.

    EndpointErrors pass through unchanged; anything else becomes a
    ResolutionFailure chained to the original exception.
    """
    if isinstance(error, EndpointError):
        return error
    failure = ResolutionFailure(str(error) or type(error).__name__, host=host)
    failure.__cause__ = error
    return failure


class ResolveOperation:
    """Handle on one asynchronous resolution.

    Operations are either started on the running event loop, or completed in
    place when no lookup is needed.
    """

    def __init__(self, completion: Completion, query: Optional[ResolverQuery] = None):
        self.query = query
        self._completion = completion
        self._task: Optional[asyncio.Task] = None
        self._cancelled = False

    @classmethod
    def start(
        cls,
        query: ResolverQuery,
        lookup: Callable[[], Coroutine],
        handler: CompletionHandler,
        on_done: Optional[Callable[["ResolveOperation"], None]] = None,
    ) -> "ResolveOperation":
        """Run lookup() as a task; handler gets its outcome.

        The coroutine is only created once a running event loop is found.

        Raises:
            RuntimeError: If no event loop is running
        """
        loop = asyncio.get_running_loop()
        operation = cls(Completion(handler), query)
        operation._task = loop.create_task(lookup())

        def finish(task: asyncio.Task) -> None:
            if on_done is not None:
                on_done(operation)
            operation._finish(task)

        operation._task.add_done_callback(finish)
        return operation

    @classmethod
    def completed(
        cls,
        result: ResolveResult,
        handler: CompletionHandler,
        query: Optional[ResolverQuery] = None,
    ) -> "ResolveOperation":
        """Deliver result to handler before returning."""
        operation = cls(Completion(handler), query)
        operation._completion(result)
        return operation

    def _finish(self, task: asyncio.Task) -> None:
        host = self.query.host if self.query is not None else None
        if self._cancelled or task.cancelled():
            self._completion(ResolveResult.failure(ResolutionFailure.cancellation(host)))
            return

        error = task.exception()
        if error is None:
            self._completion(ResolveResult.success(task.result()))
            return

        if not isinstance(error, EndpointError):
            sentry_sdk.capture_exception(error)
        logger.warning("resolution of %s failed: %s", host, error)
        self._completion(ResolveResult.failure(wrap_failure(error, host)))

    def done(self) -> bool:
        return self._completion.fired

    def cancel(self) -> bool:
        """Cancel the lookup if its handler has not run yet.

        Returns:
            True if the handler will receive a cancellation failure
        """
        if self._completion.fired or self._cancelled:
            return False
        self._cancelled = True
        if self._task is not None:
            self._task.cancel()
        return True


class Resolver(Protocol):
    """What endpoint resolution needs from a resolver."""

    def resolve(self, query: ResolverQuery) -> List[ResolvedEntry]: ...

    def async_resolve(
        self, query: ResolverQuery, handler: CompletionHandler
    ) -> ResolveOperation: ...

    def cancel(self) -> None: ...


class BaseResolver(ABC):
    """Shared asynchronous plumbing of the resolver backends.

    Subclasses implement the blocking resolve() and the lookup() coroutine;
    async_resolve() runs lookup() as a task and keeps track of it so cancel()
    can reach every outstanding operation.
    """

    def __init__(self) -> None:
        self._outstanding: Set[ResolveOperation] = set()

    @abstractmethod
    def resolve(self, query: ResolverQuery) -> List[ResolvedEntry]:
        """Resolve query, blocking the calling thread."""
        pass

    @abstractmethod
    async def lookup(self, query: ResolverQuery) -> List[ResolvedEntry]:
        """Resolve query on the running event loop."""
        pass

    def async_resolve(
        self, query: ResolverQuery, handler: CompletionHandler
    ) -> ResolveOperation:
        """Start lookup(query) on the running event loop.

        Without a running loop, handler receives a ResolutionFailure before
        this returns.
        """
        logger.debug("async lookup of %s service %s", query.host, query.service)
        try:
            operation = ResolveOperation.start(
                query,
                functools.partial(self.lookup, query),
                handler,
                on_done=self._outstanding.discard,
            )
        except RuntimeError as e:
            logger.warning("cannot start lookup of %s: %s", query.host, e)
            return ResolveOperation.completed(
                ResolveResult.failure(wrap_failure(e, query.host)), handler, query
            )
        self._outstanding.add(operation)
        return operation

    def cancel(self) -> None:
        """Cancel every outstanding asynchronous lookup."""
        for operation in list(self._outstanding):
            operation.cancel()

    @property
    def outstanding(self) -> int:
        return len(self._outstanding)
