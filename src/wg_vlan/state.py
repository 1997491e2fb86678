# src/wg_vlan/state.py
from __future__ import annotations

from logging import getLogger
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from . import settings
from .exceptions import DocumentError
from .models import VLAN, VLANClient, VLANServer

LOGGER = getLogger(__name__)

SERVER_FIELDS = ("interface", "peer_name", "listen_port", "network", "private_key", "public_key")
CLIENT_FIELDS = ("peer_name", "network", "private_key", "public_key", "preshared_key")


def _extra_fields(data: dict, known: tuple) -> Dict[str, Any]:
    nested = data.get("extra") or {}
    if not isinstance(nested, dict):
        raise DocumentError("field 'extra' must be a mapping")
    extra = {str(k): v for k, v in nested.items()}
    for key, value in data.items():
        if key in known or key == "extra":
            continue
        extra[str(key)] = value
    return extra


def _str(data: dict, key: str, default: str = "") -> str:
    value = data.get(key)
    return default if value is None else str(value)


def _int(data: dict, key: str) -> int:
    value = data.get(key) or 0
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise DocumentError(f"field '{key}' must be an integer, got {value!r}") from e
    if number < 0:
        raise DocumentError(f"field '{key}' must not be negative, got {number}")
    return number


def _put_extra(out: Dict[str, Any], extra: Dict[str, Any], nested: bool) -> None:
    # même forme qu'au chargement : mapping "extra:" ou clés en ligne
    if nested:
        out["extra"] = dict(extra)
    else:
        out.update(extra)


def vlan_to_dict(vlan: VLAN) -> dict:
    s = vlan.server
    server: Dict[str, Any] = {}
    if s.interface:
        server["interface"] = s.interface
    server.update({
        "peer_name": s.peer_name,
        "listen_port": s.listen_port,
        "network": s.network,
        "private_key": s.private_key,
        "public_key": s.public_key,
    })
    _put_extra(server, s.extra, s.nested_extra)

    clients = []
    for c in vlan.clients:
        client: Dict[str, Any] = {
            "peer_name": c.peer_name,
            "network": c.network,
            "private_key": c.private_key,
            "public_key": c.public_key,
            "preshared_key": c.preshared_key,
        }
        _put_extra(client, c.extra, c.nested_extra)
        clients.append(client)

    return {
        "public_endpoint": vlan.public_endpoint or "",
        "keep_alive": vlan.keep_alive,
        "server": server,
        "clients": clients,
    }


def dict_to_vlan(data: dict) -> VLAN:
    if not isinstance(data, dict):
        raise DocumentError("VLAN document must be a mapping")

    server_data = data.get("server")
    if not isinstance(server_data, dict):
        raise DocumentError("VLAN document has no 'server' mapping")

    server = VLANServer(
        interface=_str(server_data, "interface"),
        peer_name=_str(server_data, "peer_name"),
        listen_port=_int(server_data, "listen_port"),
        network=_str(server_data, "network"),
        private_key=_str(server_data, "private_key"),
        public_key=_str(server_data, "public_key"),
        extra=_extra_fields(server_data, SERVER_FIELDS),
        nested_extra="extra" in server_data,
    )

    clients = []
    for idx, c in enumerate(data.get("clients") or []):
        if not isinstance(c, dict):
            raise DocumentError(f"client[{idx}] must be a mapping")
        clients.append(VLANClient(
            peer_name=_str(c, "peer_name"),
            network=_str(c, "network"),
            private_key=_str(c, "private_key"),
            public_key=_str(c, "public_key"),
            preshared_key=_str(c, "preshared_key"),
            extra=_extra_fields(c, CLIENT_FIELDS),
            nested_extra="extra" in c,
        ))

    return VLAN(
        server=server,
        clients=clients,
        public_endpoint=_str(data, "public_endpoint") or None,
        keep_alive=_int(data, "keep_alive"),
    )


def vlan_to_yaml(vlan: VLAN) -> str:
    return yaml.safe_dump(vlan_to_dict(vlan), sort_keys=False, default_flow_style=False)


def vlan_from_yaml(text: str) -> VLAN:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise DocumentError(f"failed to decode VLAN document: {e}") from e
    return dict_to_vlan(data).normalize()


def load_vlan(path: Optional[Path] = None, validate: bool = True) -> VLAN:
    path = path or settings.DEFAULT_CONFIG_PATH
    if not path.exists():
        raise FileNotFoundError(f"VLAN config file not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        vlan = vlan_from_yaml(f.read())

    if validate:
        check_vlan(vlan)
    return vlan


def check_vlan(vlan: VLAN) -> None:
    """
    Journalise les avertissements de validate() et lève l'erreur agrégée s'il y en a une.
    """
    warnings, error = vlan.validate()
    for w in warnings:
        LOGGER.warning("config warning: %s", w)
    if error is not None:
        raise error


def save_vlan(vlan: VLAN, path: Optional[Path] = None) -> None:
    path = path or settings.DEFAULT_CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        f.write(vlan_to_yaml(vlan))
