"""Endpoint resolution.

resolve() and async_resolve() are the entry points callers use to turn an
Endpoint into transport endpoints. Both dispatch over the closed set of
endpoint variants:

- LiteralAddressEndpoint resolves locally. An explicit port always wins; with
  none, the default service must be a decimal port number.
- HostnameEndpoint delegates to the resolver, with its own service or else the
  default service, which may be symbolic.

For identical inputs both entry points agree on the resolved endpoint or the
failure.
"""

import asyncio
import logging
from typing import List

import sentry_sdk

from overlay.tunnel.peer.errors import EmptyResult, EndpointError
from overlay.tunnel.peer.model.endpoint import (
    Endpoint,
    HostnameEndpoint,
    LiteralAddressEndpoint,
    parse_port,
)
from overlay.tunnel.peer.model.transport import (
    IPProtocol,
    ResolvedEntry,
    TransportEndpoint,
)
from overlay.tunnel.peer.resolve.resolver import (
    CompletionHandler,
    ResolveOperation,
    ResolveResult,
    Resolver,
    ResolverFlags,
    ResolverQuery,
    wrap_failure,
)

logger = logging.getLogger(__name__)


def resolve_literal(endpoint: LiteralAddressEndpoint, default_service: str) -> TransportEndpoint:
    """Resolve a literal address endpoint without any lookup.

    Args:
        endpoint: Endpoint to resolve
        default_service: Decimal port used when the endpoint has none

    Returns:
        The endpoint's address with its port or the default one

    Raises:
        InvalidServiceFormat: If the default service is needed and not a port
    """
    if endpoint.port is not None:
        return TransportEndpoint(address=endpoint.address, port=endpoint.port)
    return TransportEndpoint(address=endpoint.address, port=parse_port(default_service))


def hostname_query(
    endpoint: HostnameEndpoint,
    protocol: IPProtocol,
    flags: ResolverFlags,
    default_service: str,
) -> ResolverQuery:
    """Build the resolver query for a hostname endpoint."""
    service = endpoint.service if endpoint.service is not None else default_service
    return ResolverQuery(
        host=endpoint.hostname, service=service, protocol=protocol, flags=flags
    )


def resolve(
    endpoint: Endpoint,
    resolver: Resolver,
    protocol: IPProtocol,
    flags: ResolverFlags,
    default_service: str,
) -> TransportEndpoint:
    """Resolve an endpoint synchronously.

    Only hostname endpoints use the resolver, and may block on it.

    Args:
        endpoint: Endpoint to resolve
        resolver: Resolver used for hostname endpoints
        protocol: Address family to restrict the lookup to
        flags: Resolver query flags
        default_service: Service used when the endpoint carries none

    Returns:
        The preferred transport endpoint

    Raises:
        InvalidServiceFormat: Literal endpoint without port, bad default service
        EmptyResult: The resolver returned no candidate
        ResolutionFailure: The resolver failed
    """
    if isinstance(endpoint, LiteralAddressEndpoint):
        return resolve_literal(endpoint, default_service)
    elif isinstance(endpoint, HostnameEndpoint):
        query = hostname_query(endpoint, protocol, flags, default_service)
        logger.debug("resolving %s with service %s", query.host, query.service)
        try:
            entries = resolver.resolve(query)
        except EndpointError:
            raise
        except Exception as e:
            sentry_sdk.capture_exception(e)
            logger.warning("resolution of %s failed: %s", query.host, e)
            raise wrap_failure(e, query.host) from e
        if not entries:
            raise EmptyResult(query.host, query.service)
        return entries[0].endpoint
    raise TypeError(f"unsupported endpoint type: {type(endpoint).__name__}")


def async_resolve(
    endpoint: Endpoint,
    resolver: Resolver,
    protocol: IPProtocol,
    flags: ResolverFlags,
    default_service: str,
    on_complete: CompletionHandler,
) -> ResolveOperation:
    """Resolve an endpoint, reporting the outcome to on_complete.

    on_complete is called exactly once with a ResolveResult. Literal endpoints
    complete before this function returns, with a single candidate. Hostname
    endpoints complete on the event loop with every candidate the resolver
    returned, in its order. A hostname lookup started without a running event
    loop completes in place with a ResolutionFailure.

    Returns:
        The operation, which can be cancelled while a lookup is in flight
    """
    if isinstance(endpoint, LiteralAddressEndpoint):
        try:
            result = ResolveResult.success(
                [ResolvedEntry.from_endpoint(resolve_literal(endpoint, default_service))]
            )
        except EndpointError as e:
            result = ResolveResult.failure(e)
        return ResolveOperation.completed(result, on_complete)
    elif isinstance(endpoint, HostnameEndpoint):
        query = hostname_query(endpoint, protocol, flags, default_service)

        def forward(result: ResolveResult) -> None:
            if result.ok and not result.entries:
                result = ResolveResult.failure(EmptyResult(query.host, query.service))
            on_complete(result)

        logger.debug("resolving %s with service %s", query.host, query.service)
        try:
            return resolver.async_resolve(query, forward)
        except Exception as e:
            if not isinstance(e, EndpointError):
                sentry_sdk.capture_exception(e)
            logger.warning("resolution of %s failed: %s", query.host, e)
            return ResolveOperation.completed(
                ResolveResult.failure(wrap_failure(e, query.host)), on_complete, query
            )
    raise TypeError(f"unsupported endpoint type: {type(endpoint).__name__}")


async def resolve_async(
    endpoint: Endpoint,
    resolver: Resolver,
    protocol: IPProtocol,
    flags: ResolverFlags,
    default_service: str,
) -> List[ResolvedEntry]:
    """Awaitable form of async_resolve().

    Cancelling the awaiting task cancels the lookup.

    Returns:
        Every candidate, in resolver order

    Raises:
        EndpointError: The failure delivered to the completion
    """
    future: asyncio.Future = asyncio.get_running_loop().create_future()

    def complete(result: ResolveResult) -> None:
        if not future.done():
            future.set_result(result)

    operation = async_resolve(endpoint, resolver, protocol, flags, default_service, complete)
    try:
        result = await future
    except asyncio.CancelledError:
        operation.cancel()
        raise
    return result.unwrap()
