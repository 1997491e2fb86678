"""
Manage a declarative WireGuard VLAN (one server, N clients) and render its peer configs.
"""
from .models import VLAN, VLANClient, VLANServer
from .wireguard import (
    add_client,
    add_client_with_public_key,
    next_address,
    render_client_conf,
    render_server_conf,
)

__version__ = "0.1.0"

__all__ = [
    "VLAN",
    "VLANClient",
    "VLANServer",
    "add_client",
    "add_client_with_public_key",
    "next_address",
    "render_client_conf",
    "render_server_conf",
]
