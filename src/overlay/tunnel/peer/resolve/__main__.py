from typing import List, Optional
import argparse
import asyncio
import logging
import sys

from overlay.tunnel.peer.app.cli import configure_logging, configure_sentry
from overlay.tunnel.peer.app.config import ResolverBackend, Settings, create_resolver
from overlay.tunnel.peer.errors import EndpointError
from overlay.tunnel.peer.model.endpoint import parse_endpoint
from overlay.tunnel.peer.model.transport import IPProtocol
from overlay.tunnel.peer.resolve.endpoint import resolve, resolve_async
from overlay.tunnel.peer.resolve.resolver import ResolverFlags

logger = logging.getLogger(__name__)


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="peer-resolve", description="Resolve tunnel peers")
    parser.add_argument("endpoint", nargs="+", help="The endpoint(s) to resolve.")
    parser.add_argument(
        "--default-service",
        default=settings.default_service,
        help="The service to use for endpoints that carry none.",
    )
    parser.add_argument(
        "--protocol",
        choices=[protocol.name for protocol in IPProtocol],
        default=settings.protocol.name,
        help="The address family to resolve to.",
    )
    parser.add_argument(
        "--backend",
        choices=[backend.value for backend in ResolverBackend],
        default=settings.resolver_backend.value,
        help="The resolver to use for hostname endpoints.",
    )
    parser.add_argument("--numeric-host", action="store_true", help="Never look up host names.")
    parser.add_argument(
        "--numeric-service", action="store_true", help="Never look up service names."
    )
    parser.add_argument(
        "--async",
        dest="use_async",
        action="store_true",
        help="Resolve through the event loop and print every candidate.",
    )
    return parser


def query_flags(args: argparse.Namespace) -> ResolverFlags:
    flags = ResolverFlags(0)
    if args.numeric_host:
        flags |= ResolverFlags.numeric_host
    if args.numeric_service:
        flags |= ResolverFlags.numeric_service
    return flags


def run_sync(settings: Settings, args: argparse.Namespace) -> int:
    resolver = create_resolver(settings)
    protocol = IPProtocol[args.protocol]
    failures = 0
    for text in args.endpoint:
        try:
            endpoint = parse_endpoint(text)
            resolved = resolve(
                endpoint, resolver, protocol, query_flags(args), args.default_service
            )
            print(f"{text} {resolved}")
        except EndpointError:
            logger.exception("Exception resolving endpoint %s", text)
            failures += 1
    return 1 if failures else 0


async def run_async(settings: Settings, args: argparse.Namespace) -> int:
    resolver = create_resolver(settings)
    protocol = IPProtocol[args.protocol]
    failures = 0
    for text in args.endpoint:
        try:
            endpoint = parse_endpoint(text)
            entries = await resolve_async(
                endpoint, resolver, protocol, query_flags(args), args.default_service
            )
            for entry in entries:
                print(f"{text} {entry.endpoint} ({entry.host_name} {entry.service_name})")
        except EndpointError:
            logger.exception("Exception resolving endpoint %s", text)
            failures += 1
    return 1 if failures else 0


def main(argv: Optional[List[str]] = None) -> int:
    settings = Settings()
    configure_logging(settings)
    configure_sentry(settings)

    args = build_parser(settings).parse_args(argv)
    settings = settings.model_copy(
        update={"resolver_backend": ResolverBackend(args.backend)}
    )

    if args.use_async:
        return asyncio.run(run_async(settings, args))
    return run_sync(settings, args)


if __name__ == "__main__":
    sys.exit(main())
