# src/wg_vlan/init_server.py

from __future__ import annotations
from logging import getLogger
from pathlib import Path
from typing import Iterable, Optional

from . import settings
from .keys import decode_private_key, derive_public_key, encode_key, generate_private_key
from .models import VLAN, VLANServer
from .state import save_vlan
from .wireguard import add_client

LOGGER = getLogger(__name__)


def init_vlan(
    peer_name: str = settings.DEFAULT_SERVER_NAME,
    network: str = settings.DEFAULT_NETWORK,
    listen_port: int = settings.DEFAULT_LISTEN_PORT,
    endpoint: Optional[str] = None,
    private_key: Optional[str] = None,
    keep_alive: int = settings.DEFAULT_KEEP_ALIVE,
    interface: str = settings.DEFAULT_INTERFACE,
    clients: Iterable[str] = (),
    state_path: Optional[Path] = None,
) -> VLAN:
    if private_key:
        key = decode_private_key(private_key)
    else:
        LOGGER.info("generating private key")
        key = generate_private_key()
        LOGGER.info("generated new private key; public=%s", encode_key(derive_public_key(key)))

    server = VLANServer(
        interface=interface,
        peer_name=peer_name,
        listen_port=listen_port,
        network=network,
        private_key=encode_key(key),
        public_key=encode_key(derive_public_key(key)),
    )

    vlan = VLAN(
        server=server,
        clients=[],  # vide pour l'instant
        public_endpoint=endpoint,
        keep_alive=keep_alive,
    )

    for name in clients:
        add_client(vlan, name)

    if state_path is not None:
        save_vlan(vlan, state_path)
    return vlan
