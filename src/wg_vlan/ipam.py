# src/wg_vlan/ipam.py
from __future__ import annotations

import ipaddress
from typing import Iterable, Tuple, Union

from .exceptions import InvalidCIDRError, NoAddressAvailableError

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


def parse_cidr(value: str, require_prefix: bool = False) -> Tuple[IPAddress, IPNetwork]:
    """
    Retourne (adresse, réseau) pour '10.20.30.1/24' ou une adresse nue.

    Une adresse nue devient une route hôte (/32 en IPv4, /128 en IPv6).
    """
    if not value:
        raise InvalidCIDRError("address is empty")
    if require_prefix and "/" not in value:
        raise InvalidCIDRError(f"missing prefix length: {value}")
    try:
        iface = ipaddress.ip_interface(value)
    except ValueError as e:
        raise InvalidCIDRError(f"invalid address '{value}': {e}") from e
    return iface.ip, iface.network


def ensure_ip_with_cidr(value: str) -> str:
    address, network = parse_cidr(value)
    return f"{address}/{network.prefixlen}"


def network_edges(subnet: IPNetwork) -> Tuple[int, int]:
    first = int(subnet.network_address)
    last = first + int(subnet.hostmask)
    return first, last


def pick_next_address(
    subnet: IPNetwork,
    taken_addresses: Iterable[IPAddress],
    taken_subnets: Iterable[IPNetwork],
) -> IPAddress:
    """
    Plus petite adresse libre de `subnet`.

    L'adresse réseau et la dernière adresse (broadcast) ne sont jamais attribuées.
    Une adresse comprise dans un sous-réseau déjà pris fait sauter le curseur
    directement après la fin de ce sous-réseau.
    """
    address_cls = type(subnet.network_address)
    taken = {int(a) for a in taken_addresses if a.version == subnet.version}
    blocks = [
        (int(n.network_address), int(n.broadcast_address))
        for n in taken_subnets
        if n.version == subnet.version
    ]

    first, last = network_edges(subnet)
    current = first + 1
    while current < last:
        if current in taken:
            current += 1
            continue

        block = next(((lo, hi) for lo, hi in blocks if lo <= current <= hi), None)
        if block is not None:
            current = block[1] + 1
            continue

        return address_cls(current)

    raise NoAddressAvailableError(f"No free address available in {subnet}")
