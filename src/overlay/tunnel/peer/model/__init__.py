"""
Endpoint Models

This package defines the immutable value types exchanged with the resolution
layer, using Pydantic models frozen at construction.

Key Models:
- transport.py: TransportEndpoint and ResolvedEntry, the results of resolution
- endpoint.py: LiteralAddressEndpoint and HostnameEndpoint, plus parsing of
  endpoint strings as they appear in configuration

An Endpoint is exactly one of the two variants; dispatch over them lives in
the resolve package.
"""
