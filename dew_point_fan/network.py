import logging
import socket
from typing import List

logger = logging.getLogger(__name__)


def ipv4_addresses() -> List[str]:
    """IPv4 addresses of this host: the default-route address first, then the hostname's."""
    addresses = []
    try:
        # no packet is sent for a UDP connect, it only selects the outgoing interface
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(("10.255.255.255", 1))
            addresses.append(s.getsockname()[0])
    except OSError as e:
        logger.warning(f"Network: no default route: {e}")
    try:
        for info in socket.getaddrinfo(socket.gethostname(), None, socket.AF_INET):
            address = info[4][0]
            if address not in addresses:
                addresses.append(address)
    except OSError as e:
        logger.warning(f"Network: hostname lookup failed: {e}")
    return addresses


def find_ip_address() -> str:
    """Log the IPv4 addresses found and return the first non localhost one ('' if none)."""
    ip_address = ""
    for address in ipv4_addresses():
        logger.info(address)
        if not ip_address and not address.startswith("127."):
            ip_address = address
    return ip_address
