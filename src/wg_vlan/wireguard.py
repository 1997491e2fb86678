# src/wg_vlan/wireguard.py
from __future__ import annotations

from logging import getLogger
from pathlib import Path
from typing import Optional

from . import settings
from .exceptions import (
    DuplicateNameError,
    MissingPrivateKeyError,
    NoPublicEndpointError,
    NoSuchClientError,
)
from .ini import INTERFACE, PEER, WireguardConfig
from .ipam import IPAddress, ensure_ip_with_cidr, pick_next_address
from .keys import (
    decode_private_key,
    decode_public_key,
    derive_public_key,
    encode_key,
    generate_preshared_key,
    generate_private_key,
)
from .models import VLAN, VLANClient, check_client_name

LOGGER = getLogger(__name__)


# ---------- Attribution d'adresses ----------

def next_address(vlan: VLAN) -> IPAddress:
    taken_ips = [vlan.server.address]
    taken_nets = []
    for client in vlan.clients:
        client_ip, client_net = client.cidr()
        taken_ips.append(client_ip)
        taken_nets.append(client_net)

    return pick_next_address(vlan.server.subnet, taken_ips, taken_nets)


# ---------- Gestion des clients ----------

def _check_new_name(vlan: VLAN, name: str) -> None:
    check_client_name(name)
    if vlan.find_client(name) is not None:
        raise DuplicateNameError(f"name is already in use: {name}")


def add_client(
    vlan: VLAN,
    name: str,
    private_key: Optional[str] = None,
) -> VLANClient:
    """
    Ajoute un client avec une paire de clés gérée côté serveur.

    Sans `private_key`, une nouvelle clé est générée.
    """
    _check_new_name(vlan, name)
    ip = next_address(vlan)

    key = decode_private_key(private_key) if private_key else generate_private_key()

    client = VLANClient(
        peer_name=name,
        network=str(ip),
        private_key=encode_key(key),
        public_key=encode_key(derive_public_key(key)),
        preshared_key=generate_preshared_key(),
    )

    vlan.clients.append(client)
    LOGGER.info("added client %s at %s", name, ip)
    return client


def add_client_with_public_key(vlan: VLAN, name: str, public_key: str) -> VLANClient:
    """
    Ajoute un client qui garde sa clé privée : seule la clé publique est stockée.
    """
    _check_new_name(vlan, name)
    decode_public_key(public_key)
    ip = next_address(vlan)

    client = VLANClient(
        peer_name=name,
        network=str(ip),
        public_key=public_key,
        preshared_key=generate_preshared_key(),
    )

    vlan.clients.append(client)
    LOGGER.info("added public-key-only client %s at %s", name, ip)
    return client


# ---------- Rendu des configs ----------

def server_config(vlan: VLAN) -> WireguardConfig:
    s = vlan.server
    conf = WireguardConfig()

    iface = conf.add_section(INTERFACE, comment=f"VLAN Server: {s.peer_name}")
    iface.set("Address", ensure_ip_with_cidr(s.network))
    iface.set("ListenPort", s.listen_port or "")
    iface.set("PrivateKey", s.private_key)
    for key, value in s.extra.items():
        iface.set(key, value)

    for c in vlan.clients:
        peer = conf.add_section(PEER, comment=f"VLAN Client: {c.peer_name}")
        peer.set("AllowedIPs", ensure_ip_with_cidr(c.network))
        peer.set("PublicKey", c.resolve_public_key())
        peer.set("PresharedKey", c.preshared_key)
        if vlan.keep_alive:
            peer.set("PersistentKeepalive", vlan.keep_alive)

    return conf


def client_config(vlan: VLAN, name: str) -> WireguardConfig:
    c = vlan.find_client(name)
    if c is None:
        raise NoSuchClientError(f"no such client: {name}")
    if not c.private_key:
        raise MissingPrivateKeyError(f"client has no private key defined: {name}")
    if not vlan.public_endpoint:
        raise NoPublicEndpointError("vlan has no configured public endpoint")

    s = vlan.server
    conf = WireguardConfig()

    iface = conf.add_section(INTERFACE, comment=f"VLAN Client: {c.peer_name}")
    iface.set("Address", ensure_ip_with_cidr(c.network))
    iface.set("PrivateKey", c.private_key)
    for key, value in c.extra.items():
        iface.set(key, value)

    peer = conf.add_section(PEER, comment=f"VLAN Server: {s.peer_name}")
    peer.set("Endpoint", vlan.public_endpoint)
    peer.set("AllowedIPs", str(s.subnet))
    peer.set("PublicKey", s.resolve_public_key())
    peer.set("PresharedKey", c.preshared_key)
    if vlan.keep_alive:
        peer.set("PersistentKeepalive", vlan.keep_alive)

    return conf


def render_server_conf(vlan: VLAN) -> str:
    return server_config(vlan).render()


def render_client_conf(vlan: VLAN, name: str) -> str:
    return client_config(vlan, name).render()


# ---------- Écriture des fichiers ----------

def _write_conf(path: Path, conf: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)

    # contient des clés privées : 600
    with path.open("w", encoding="utf-8") as f:
        f.write(conf)
    path.chmod(0o600)
    return path


def write_server_conf(vlan: VLAN, directory: Optional[Path] = None) -> Path:
    """
    Écrit <directory>/<interface>.conf
    """
    directory = directory or settings.CONFIGS_DIR
    path = _write_conf(directory / f"{vlan.server.interface_name}.conf", render_server_conf(vlan))
    LOGGER.info("wrote server config to %s", path)
    return path


def write_client_conf(vlan: VLAN, name: str, directory: Optional[Path] = None) -> Path:
    directory = directory or settings.CONFIGS_DIR
    path = _write_conf(directory / f"{name}.conf", render_client_conf(vlan, name))
    LOGGER.info("wrote client config for %s to %s", name, path)
    return path
