"""
Peer - tunnel peer endpoint resolution

This package turns the peer addresses found in tunnel configuration into the
concrete transport endpoints (address and UDP port) used to reach a peer.

Key Components:
- model: Endpoint and transport endpoint value types, endpoint text parsing
- resolve: The resolution contract, resolver backends and the resolve CLI
- app: Settings and logging configuration shared by the tools

Resolution Overview:
1. Literal Addresses:
   - An IPv4 or IPv6 literal resolves locally, with no resolver access
   - Without an explicit port the default service must be a decimal port

2. Hostnames:
   - A hostname is always delegated to the injected resolver
   - The endpoint's own service wins over the default service, which may be
     symbolic (looked up in the services database)

3. Completion:
   - `resolve` returns the preferred transport endpoint synchronously
   - `async_resolve` delivers every candidate through a callback that fires
     exactly once, including when the lookup is cancelled
"""
