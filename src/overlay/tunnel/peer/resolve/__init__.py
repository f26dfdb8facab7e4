"""
Endpoint Resolution

This package resolves peer endpoints into transport endpoints, locally for
literal addresses and through an injected resolver for hostnames.

Key Components:
- endpoint.py: resolve / async_resolve / resolve_async over the endpoint variants
- resolver.py: Resolver contract, queries, flags and single-shot completions
- system.py: getaddrinfo-backed resolver
- dns.py: aiodns-backed resolver
- query.py: Service and address helpers shared by the resolvers
- __main__.py: CLI interface for resolution

Resolution Rules:
1. Literal Address Endpoints
   - An explicit port is used as-is, the default service is ignored
   - Otherwise the default service must be a decimal port number

2. Hostname Endpoints
   - The endpoint's service, or the default service, is handed to the resolver
   - The synchronous path returns the first candidate, the asynchronous path
     delivers all of them in resolver order

Every failure is an EndpointError; asynchronous failures, cancellation
included, are delivered to the completion handler exactly once.
"""
