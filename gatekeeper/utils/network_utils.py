"""Network utility functions for Gatekeeper"""

import ipaddress
import socket
import logging
from typing import Optional

logger = logging.getLogger(__name__)

USER_AGENT_MAX_LENGTH = 255


def ip_to_long(ip: Optional[str]) -> Optional[int]:
    """Convert a dotted IPv4 address to its 32-bit integer form.

    Args:
        ip: Address string (e.g., "192.168.1.100")

    Returns:
        Integer value, or None for IPv6, hostnames, empty or malformed input
    """
    if not ip:
        return None

    try:
        return int(ipaddress.IPv4Address(ip.strip()))
    except ValueError:
        return None


def reverse_hostname(ip: Optional[str]) -> Optional[str]:
    """Look up the reverse-DNS hostname of an address.

    Returns None when the address is empty, malformed or has no PTR record.
    """
    if not ip:
        return None

    try:
        hostname, _aliases, _addresses = socket.gethostbyaddr(ip)
        return hostname
    except (socket.herror, socket.gaierror, UnicodeError, ValueError) as e:
        logger.debug(f"Reverse lookup failed for {ip}: {e}")
        return None
    except OSError as e:
        logger.warning(f"Reverse lookup error for {ip}: {e}")
        return None


def truncate_user_agent(ua: Optional[str]) -> Optional[str]:
    """Clip a user agent to the column size."""
    if ua and len(ua) > USER_AGENT_MAX_LENGTH:
        ua = ua[:USER_AGENT_MAX_LENGTH]
    return ua
