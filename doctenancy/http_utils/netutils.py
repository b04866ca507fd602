# doctenancy/http_utils/netutils.py
from __future__ import annotations

import ipaddress
from typing import Iterable, Optional, Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

HEADER_X_FORWARDED_FOR = "x-forwarded-for"


def _parse_ip(value: str) -> Optional[IPAddress]:
    value = value.strip()
    try:
        return ipaddress.ip_address(value)
    except ValueError:
        pass
    # "host:port" peer addresses
    if value.count(":") == 1:
        try:
            return ipaddress.ip_address(value.split(":", 1)[0])
        except ValueError:
            return None
    return None


def get_ip_from_xff_depth(
    remote_addr: str,
    xff_values: Iterable[str],
    proxy_depth: int,
) -> Optional[IPAddress]:
    """Client address as seen ``proxy_depth`` proxies away.

    With ``proxy_depth == 0`` the peer address of the connection is used.
    Otherwise the address ``proxy_depth`` positions from the end of the
    X-Forwarded-For list is returned, scanning across repeated headers; None
    if the list is too short or the entry does not parse.
    """
    if proxy_depth == 0:
        return _parse_ip(remote_addr or "")

    values = list(xff_values)
    for raw in reversed(values):
        ip_list = raw.split(",")
        if len(ip_list) >= proxy_depth:
            return _parse_ip(ip_list[len(ip_list) - proxy_depth])
        proxy_depth -= len(ip_list)
    return None
