"""Client identifier extraction for rate limiting."""

from __future__ import annotations

from typing import Mapping

from fastapi import Request

FORWARDED_FOR_HEADER = "X-Forwarded-For"
REAL_IP_HEADER = "X-Real-IP"
UNKNOWN_CLIENT = "unknown"


def resolve_client_identifier(headers: Mapping[str, str], remote_addr: str) -> str:
    """Pick the rate limit key for a request.

    The first non-empty value wins: the forwarded-for header, then the
    real-ip header, then the transport address. Values are used verbatim;
    a multi-hop forwarded-for chain is one key.

    Args:
        headers: Request headers. Lookup must be case-insensitive, as with
            Starlette's ``Headers``.
        remote_addr: Transport-level peer address.

    Returns:
        The client identifier.
    """
    forwarded_for = headers.get(FORWARDED_FOR_HEADER)
    if forwarded_for:
        return forwarded_for

    real_ip = headers.get(REAL_IP_HEADER)
    if real_ip:
        return real_ip

    return remote_addr


def get_client_identifier(request: Request) -> str:
    """Derive the rate limit key for an incoming request.

    Args:
        request: Incoming request; only its headers and transport peer are read.

    Returns:
        The client identifier, or ``"unknown"`` when neither proxy headers nor
        a transport address are available.
    """
    remote_addr = request.client.host if request.client else UNKNOWN_CLIENT
    return resolve_client_identifier(request.headers, remote_addr)
