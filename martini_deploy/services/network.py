"""Pre-flight reachability check for the integration server."""
import asyncio
import logging
import socket
from typing import Awaitable, Callable, Optional

import httpx

from ..errors import HostUnreachableError

logger = logging.getLogger(__name__)

Resolver = Callable[[str, int], Awaitable[object]]


async def _default_resolver(host: str, port: int):
    loop = asyncio.get_running_loop()
    return await loop.getaddrinfo(host, port, type=socket.SOCK_STREAM)


async def check_host_reachable(base_url: str, resolver: Optional[Resolver] = None) -> str:
    """
    Resolve the host of ``base_url``.

    Returns:
        The resolved host name

    Raises:
        HostUnreachableError: if the URL has no host or DNS resolution fails
    """
    try:
        url = httpx.URL(base_url)
    except httpx.InvalidURL as exc:
        raise HostUnreachableError(f"invalid base_url {base_url!r}: {exc}") from exc

    host = url.host
    if not host:
        raise HostUnreachableError(f"base_url has no host: {base_url!r}")

    port = url.port or (443 if url.scheme == "https" else 80)
    resolve = resolver or _default_resolver
    try:
        addresses = await resolve(host, port)
    except OSError as exc:
        raise HostUnreachableError(f"cannot resolve host {host}: {exc}") from exc

    if not addresses:
        raise HostUnreachableError(f"cannot resolve host {host}: no addresses")

    logger.debug(f"Host {host} resolved: {addresses}")
    return host
