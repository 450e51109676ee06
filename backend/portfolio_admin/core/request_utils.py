"""Request utility functions for handling common request operations."""

import ipaddress
import logging
from collections.abc import Collection

from fastapi import Request

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


def _is_valid_ip(ip_str: str) -> bool:
    """Check if a string is a valid IP address."""
    try:
        ipaddress.ip_address(ip_str)
        return True
    except ValueError:
        return False


def get_client_ip(
    request: Request,
    trusted_proxies: Collection[str] = (),
    trust_proxy_headers: bool = False,
) -> str:
    """Get the client IP address used as the login throttling key.

    Security Priority Order:
    1. X-Forwarded-For (first hop), only from a trusted proxy
    2. X-Real-IP, only from a trusted proxy
    3. Direct client connection

    Forwarded headers can be set by any client, so they are ignored unless
    the direct peer is listed in trusted_proxies, or trust_proxy_headers is
    set for hosting platforms that always overwrite them.

    Args:
        request: The FastAPI request object
        trusted_proxies: Peer addresses allowed to set forwarded headers
        trust_proxy_headers: Trust forwarded headers from every peer

    Returns:
        Client IP address, or "unknown" if not available
    """
    direct_ip = request.client.host if request.client else None
    from_trusted_proxy = trust_proxy_headers or (
        direct_ip is not None and direct_ip in trusted_proxies
    )

    if from_trusted_proxy:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            ip = forwarded.split(",")[0].strip()
            if _is_valid_ip(ip):
                return ip
            logger.warning(f"Invalid IP in X-Forwarded-For header: {ip}")

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            ip = real_ip.strip()
            if _is_valid_ip(ip):
                return ip
            logger.warning(f"Invalid IP in X-Real-IP header: {real_ip}")
    elif request.headers.get("X-Forwarded-For"):
        logger.debug(f"Ignoring X-Forwarded-For from untrusted source: {direct_ip}")

    if direct_ip:
        return direct_ip

    return UNKNOWN_CLIENT
