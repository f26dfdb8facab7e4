"""
Configuration Module for peer resolution

Settings are loaded from environment variables through Pydantic, with defaults
suitable for a tunnel node reaching its peers on the standard port.

Key configuration areas include:
- Default service used when a configured peer carries no port
- Address family and resolver backend
- Nameservers and timeout of the DNS backend
- Error reporting and debugging
"""

import logging
from enum import Enum
from typing import Annotated, List, Optional, Union

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode

from overlay.tunnel.peer.model.transport import IPProtocol
from overlay.tunnel.peer.resolve.dns import DnsResolver
from overlay.tunnel.peer.resolve.resolver import BaseResolver
from overlay.tunnel.peer.resolve.system import SystemResolver

logger = logging.getLogger(__name__)


class ResolverBackend(str, Enum):
    system = "system"
    dns = "dns"


class Settings(BaseSettings):
    """
    Settings for resolving tunnel peers.

    Environment variables are mapped to fields by name, for example the
    default service is set with DEFAULT_SERVICE.
    """

    debug: bool = False
    """
    Enable debug logging.
    Set with DEBUG=true environment variable.
    """

    default_service: str = "12000"
    """
    Service used for peers configured without a port. Literal address peers
    require it to be a port number; hostname peers may use a service name.
    Set with DEFAULT_SERVICE environment variable.
    """

    protocol: IPProtocol = IPProtocol.unspecified
    """
    Address family to resolve peers to: ipv4, ipv6 or unspecified.
    Set with PROTOCOL environment variable.
    """

    resolver_backend: ResolverBackend = ResolverBackend.system
    """
    Resolver used for hostname peers: system (getaddrinfo) or dns (aiodns).
    Set with RESOLVER_BACKEND environment variable.
    """

    nameservers: Annotated[List[str], NoDecode] = list()
    """
    Nameservers queried by the dns backend, comma-separated. The system
    configuration is used when empty.
    Set with NAMESERVERS environment variable.
    """

    resolve_timeout: float = 5.0
    """
    Per-query timeout in seconds for the dns backend.
    Set with RESOLVE_TIMEOUT environment variable.
    """

    sentry_dsn: Optional[str] = None
    """
    Sentry DSN for error reporting. Optional, no error reporting if not set.
    Set with SENTRY_DSN environment variable.
    """

    @field_validator("protocol", mode="before")
    @classmethod
    def decode_protocol(cls, v) -> IPProtocol:
        """
        Accept an IPProtocol, its numeric value, or its name.

        Raises:
            ValueError: If the value names no address family
        """
        if isinstance(v, IPProtocol):
            return v
        if isinstance(v, int):
            return IPProtocol(v)
        if isinstance(v, str):
            try:
                return IPProtocol[v.strip().lower()]
            except KeyError:
                pass
        raise ValueError("protocol must be one of ipv4, ipv6 or unspecified")

    @field_validator("nameservers", mode="before")
    @classmethod
    def decode_nameservers(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v


def create_resolver(settings: Settings) -> BaseResolver:
    """
    Create the resolver selected by the settings.

    Args:
        settings: Settings naming the backend and its options

    Returns:
        SystemResolver or DnsResolver
    """
    logger.debug("Creating resolver with backend: %s", settings.resolver_backend.value)
    if settings.resolver_backend is ResolverBackend.dns:
        return DnsResolver(
            nameservers=settings.nameservers, timeout=settings.resolve_timeout
        )
    return SystemResolver()
